"""Frequency and presence penalties."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from sampler_chain.exceptions import InvalidInputError
from sampler_chain.samplers.base import Sampler, recent_tokens
from sampler_chain.samplers.options import SamplerOption
from sampler_chain.samplers.registry import SamplerRegistry

if TYPE_CHECKING:
    from sampler_chain.config import SamplerChainConfig
    from sampler_chain.logits import Logits
    from sampler_chain.resources import SamplerResources


@SamplerRegistry.register("freq_presence")
class SampleFreqPresence(Sampler):
    """Subtract ``frequency_penalty * count + presence_penalty * (count > 0)``.

    ``count`` is how often the token occurs in the last ``last_n`` history
    entries. Disabled when both coefficients are zero or ``last_n == 0``.
    Otherwise the history resource is required.
    """

    name = "freq_presence"
    description = "Penalize tokens by how often they were recently emitted"
    options = (
        SamplerOption("frequency_penalty", "float", "Penalty per occurrence"),
        SamplerOption("presence_penalty", "float", "Penalty for occurring at all"),
        SamplerOption("last_n", "uint", "History window size (0 disables)"),
    )

    def __init__(
        self,
        frequency_penalty: float = 0.0,
        presence_penalty: float = 0.0,
        last_n: int = 64,
    ) -> None:
        self.frequency_penalty = float(frequency_penalty)
        self.presence_penalty = float(presence_penalty)
        self.last_n = int(last_n)
        self._validate()

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleFreqPresence:
        return cls(
            config.frequency_penalty,
            config.presence_penalty,
            config.freq_presence_last_n,
        )

    def _validate(self) -> None:
        if np.isnan(self.frequency_penalty) or np.isnan(self.presence_penalty):
            raise InvalidInputError("Frequency and presence penalties must not be NaN")
        if self.last_n < 0:
            raise InvalidInputError(f"last_n must be >= 0, got {self.last_n}")

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        if self.last_n == 0 or (self.frequency_penalty == 0.0 and self.presence_penalty == 0.0):
            return logits
        recent = recent_tokens(res, self.last_n)
        if recent.size == 0:
            return logits
        seen, counts = np.unique(recent, return_counts=True)
        token_ids = logits.token_ids
        pos = np.minimum(np.searchsorted(seen, token_ids), seen.size - 1)
        hit = seen[pos] == token_ids
        if not np.any(hit):
            return logits
        # Computed only for hit entries so an infinite coefficient never meets a zero count.
        hit_counts = counts[pos[hit]].astype(np.float64)
        scores = logits.scores.copy()
        scores[hit] -= hit_counts * self.frequency_penalty + self.presence_penalty
        logits.replace_scores(scores)
        return logits
