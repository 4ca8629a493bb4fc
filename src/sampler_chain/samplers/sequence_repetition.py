"""Sequence repetition penalty.

Penalizes the token that would extend a sequence already present in the
recent history. With history ``1, 2, 3, 4, 1, 2, 3`` and ``min_length=3``
the tail ``1, 2, 3`` was earlier followed by ``4``, so ``4`` is penalized.

``tolerance`` is how many tokens of the tail may fail to match. Each miss
consumes one history token, and the next tail token may then be found up
to ``max_merge`` tokens further on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from sampler_chain.exceptions import InvalidInputError
from sampler_chain.samplers.base import Sampler, recent_tokens
from sampler_chain.samplers.options import SamplerOption
from sampler_chain.samplers.registry import SamplerRegistry

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sampler_chain.config import SamplerChainConfig
    from sampler_chain.logits import Logits
    from sampler_chain.resources import SamplerResources


def _fuzzy_match(
    hay: Sequence[int],
    needle: Sequence[int],
    tolerance: int,
    max_merge: int,
) -> list[int]:
    """Hay lengths consumed by each full-length match of *needle*.

    Matching walks *hay* from its start. A needle token that finds no match
    within the current window spends one unit of *tolerance* and widens the
    window for the next needle token to ``max_merge + 1``.
    """
    found: list[int] = []
    window = 1
    pos = 0
    for nidx, token in enumerate(needle):
        matched = False
        while window > 0:
            window -= 1
            if pos >= len(hay):
                return found
            candidate = hay[pos]
            pos += 1
            if candidate == token:
                if nidx + 1 >= len(needle):
                    found.append(pos)
                window = 1
                matched = True
                break
        if matched:
            continue
        if tolerance == 0:
            break
        tolerance -= 1
        window = max_merge + 1
    return found


def find_repeated_sequences(
    tokens: Sequence[int],
    min_length: int,
    tolerance: int = 0,
    max_merge: int = 1,
) -> list[tuple[int, ...]]:
    """Earlier sequences whose prefix matches a suffix of *tokens*.

    Each result is the matched span of history plus the token that followed
    it, so its last element is the token that would repeat the sequence.
    Suffixes of length ``min_length`` and up are tried against every start
    position.
    """
    total = len(tokens)
    if total < min_length * 2:
        return []

    found: list[tuple[int, ...]] = []
    for start in range(total - min_length):
        hay = tokens[start:]
        nlen = min_length
        while total >= nlen + min_length:
            needle = tokens[total - nlen :]
            if hay[0] == needle[0]:
                for consumed in _fuzzy_match(hay, needle, tolerance, max_merge):
                    if len(hay) > len(needle) and len(hay) > consumed + 1:
                        found.append(tuple(hay[: consumed + 1]))
            nlen += 1
            if nlen >= len(hay):
                break
    return found


@SamplerRegistry.register("seq_repetition")
class SampleSeqRepetition(Sampler):
    """Subtract ``stacking_penalty * length + flat_penalty`` from repeating tokens.

    ``length`` is the longest matched sequence (including the continuation
    token) that the token would repeat. Disabled when both penalties are
    zero, ``min_length < 2`` or ``last_n < min_length``. Otherwise the
    history resource is required.
    """

    name = "seq_repetition"
    description = "Penalize tokens that continue a sequence already seen"
    options = (
        SamplerOption("flat_penalty", "float", "Penalty for continuing a matched sequence"),
        SamplerOption("stacking_penalty", "float", "Penalty per token of the matched sequence"),
        SamplerOption("min_length", "uint", "Minimum length for a sequence to match"),
        SamplerOption("tolerance", "uint", "Number of wildcard tokens allowed while matching"),
        SamplerOption("max_merge", "uint", "Extra history tokens one wildcard may skip"),
        SamplerOption("last_n", "uint", "History window size"),
    )

    def __init__(
        self,
        flat_penalty: float = 0.0,
        stacking_penalty: float = 0.0,
        min_length: int = 4,
        tolerance: int = 0,
        max_merge: int = 1,
        last_n: int = 64,
    ) -> None:
        self.flat_penalty = float(flat_penalty)
        self.stacking_penalty = float(stacking_penalty)
        self.min_length = int(min_length)
        self.tolerance = int(tolerance)
        self.max_merge = int(max_merge)
        self.last_n = int(last_n)
        self._validate()

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleSeqRepetition:
        return cls(
            config.seq_repetition_flat_penalty,
            config.seq_repetition_stacking_penalty,
            config.seq_repetition_min_length,
            config.seq_repetition_tolerance,
            config.seq_repetition_max_merge,
            config.seq_repetition_last_n,
        )

    def _validate(self) -> None:
        if np.isnan(self.flat_penalty) or np.isnan(self.stacking_penalty):
            raise InvalidInputError("Sequence repetition penalties must not be NaN")
        for key in ("min_length", "tolerance", "max_merge", "last_n"):
            if getattr(self, key) < 0:
                raise InvalidInputError(f"{key} must be >= 0, got {getattr(self, key)}")

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        if (
            (self.flat_penalty == 0.0 and self.stacking_penalty == 0.0)
            or self.min_length < 2
            or self.last_n < self.min_length
        ):
            return logits
        recent = recent_tokens(res, self.last_n).tolist()
        if len(recent) < self.min_length * 2:
            return logits

        longest: dict[int, int] = {}
        matches = find_repeated_sequences(recent, self.min_length, self.tolerance, self.max_merge)
        for seq in matches:
            longest[seq[-1]] = max(longest.get(seq[-1], 0), len(seq))
        if not longest:
            return logits

        penalized = np.fromiter(longest.keys(), dtype=np.int64, count=len(longest))
        lengths = np.fromiter(longest.values(), dtype=np.float64, count=len(longest))
        order = np.argsort(penalized)
        penalized, lengths = penalized[order], lengths[order]

        token_ids = logits.token_ids
        pos = np.minimum(np.searchsorted(penalized, token_ids), penalized.size - 1)
        hit = penalized[pos] == token_ids
        if not np.any(hit):
            return logits
        scores = logits.scores.copy()
        scores[hit] -= lengths[pos[hit]] * self.stacking_penalty + self.flat_penalty
        logits.replace_scores(scores)
        return logits
