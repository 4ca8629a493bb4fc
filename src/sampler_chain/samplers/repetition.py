"""Repetition penalty over the recent token history."""

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


@SamplerRegistry.register("repetition")
class SampleRepetition(Sampler):
    """Discourage tokens that appeared in the last ``last_n`` history entries.

    Positive scores are divided by ``penalty``; zero and negative scores are
    multiplied by it, so a penalty above 1 always lowers the score.

    The stage is disabled when ``last_n == 0`` or ``penalty == 1``; it then
    does not touch the history resource at all.
    """

    name = "repetition"
    description = "Scale the scores of recently emitted tokens"
    options = (
        SamplerOption("penalty", "float", "Penalty factor (> 0, 1.0 disables)"),
        SamplerOption("last_n", "uint", "History window size (0 disables)"),
    )

    def __init__(self, penalty: float = 1.1, last_n: int = 64) -> None:
        self.penalty = float(penalty)
        self.last_n = int(last_n)
        self._validate()

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleRepetition:
        return cls(config.repetition_penalty, config.repetition_last_n)

    def _validate(self) -> None:
        if not self.penalty > 0:
            raise InvalidInputError(f"Repetition penalty must be > 0, got {self.penalty}")
        if self.last_n < 0:
            raise InvalidInputError(f"last_n must be >= 0, got {self.last_n}")

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        if self.last_n == 0 or self.penalty == 1.0:
            return logits
        recent = recent_tokens(res, self.last_n)
        if recent.size == 0:
            return logits
        hit = np.isin(logits.token_ids, recent)
        if not np.any(hit):
            return logits
        scores = logits.scores.copy()
        penalized = scores[hit]
        scores[hit] = np.where(penalized > 0, penalized / self.penalty, penalized * self.penalty)
        logits.replace_scores(scores)
        return logits
