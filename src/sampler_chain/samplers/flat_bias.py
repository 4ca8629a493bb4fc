"""Flat bias: add a fixed offset to selected token ids."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

import numpy as np

from sampler_chain.exceptions import InvalidInputError
from sampler_chain.samplers.base import Sampler
from sampler_chain.samplers.registry import SamplerRegistry

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from sampler_chain.config import SamplerChainConfig
    from sampler_chain.logits import Logits
    from sampler_chain.resources import SamplerResources


@SamplerRegistry.register("flat_bias")
class SampleFlatBias(Sampler):
    """Add ``bias[token_id]`` to the score of each listed token.

    An offset of ``-inf`` removes the token from consideration. Ids that are
    not present in the container are ignored, so one bias table can be
    reused across steps whose candidate sets differ.

    Args:
        bias: Mapping or iterable of ``(token_id, offset)`` pairs.

    Raises:
        InvalidInputError: If an id is negative or an offset is NaN/+inf.
    """

    name = "flat_bias"
    description = "Add a fixed offset to the scores of selected tokens"

    def __init__(self, bias: Mapping[int, float] | Iterable[tuple[int, float]] = ()) -> None:
        items = bias.items() if hasattr(bias, "items") else bias
        table: dict[int, float] = {}
        for token_id, offset in items:
            token_id = int(token_id)
            offset = float(offset)
            if token_id < 0:
                raise InvalidInputError(f"Bias token id must be non-negative, got {token_id}")
            if math.isnan(offset) or offset == math.inf:
                raise InvalidInputError(f"Bias for token {token_id} must not be NaN or +inf")
            table[token_id] = offset
        ids = np.array(sorted(table), dtype=np.int64)
        self._ids = ids
        self._offsets = np.array([table[i] for i in ids], dtype=np.float64)

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleFlatBias:
        return cls(config.flat_bias)

    @property
    def bias(self) -> dict[int, float]:
        """The bias table as a fresh dict."""
        return dict(zip(self._ids.tolist(), self._offsets.tolist()))

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        if self._ids.size == 0:
            return logits
        token_ids = logits.token_ids
        pos = np.searchsorted(self._ids, token_ids)
        pos = np.minimum(pos, self._ids.size - 1)
        hit = self._ids[pos] == token_ids
        if not np.any(hit):
            return logits
        scores = logits.scores.copy()
        scores[hit] += self._offsets[pos[hit]]
        logits.replace_scores(scores)
        return logits

    def __repr__(self) -> str:
        return f"SampleFlatBias(bias={self.bias!r})"
