"""Nucleus (top-p) truncation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from sampler_chain.exceptions import InvalidInputError
from sampler_chain.samplers.base import Sampler
from sampler_chain.samplers.options import SamplerOption
from sampler_chain.samplers.registry import SamplerRegistry

if TYPE_CHECKING:
    from sampler_chain.config import SamplerChainConfig
    from sampler_chain.logits import Logits
    from sampler_chain.resources import SamplerResources


@SamplerRegistry.register("top_p")
class SampleTopP(Sampler):
    """Keep the shortest prefix whose cumulative probability reaches ``p``.

    The prefix never drops below ``min_keep`` entries. ``p == 0`` keeps only
    the most likely entry; ``p == 1`` keeps everything.
    """

    name = "top_p"
    description = "Nucleus sampling: keep the most likely tokens up to mass p"
    options = (
        SamplerOption("p", "float", "Cumulative probability threshold in [0, 1]"),
        SamplerOption("min_keep", "uint", "Lower bound on kept entries"),
    )

    def __init__(self, p: float = 0.9, min_keep: int = 1) -> None:
        self.p = float(p)
        self.min_keep = int(min_keep)
        self._validate()

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleTopP:
        return cls(config.top_p, config.min_keep)

    def _validate(self) -> None:
        if not 0.0 <= self.p <= 1.0:
            raise InvalidInputError(f"top_p requires 0 <= p <= 1, got {self.p}")
        if self.min_keep < 0:
            raise InvalidInputError(f"min_keep must be >= 0, got {self.min_keep}")

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        if self.p >= 1.0:
            return logits
        logits.ensure_softmax()
        cumulative = np.cumsum(logits.probs)
        positions = np.arange(1, len(logits) + 1)
        candidates = np.flatnonzero((cumulative >= self.p) & (positions >= self.min_keep))
        if candidates.size == 0:
            return logits
        return logits.truncate(int(candidates[0]) + 1)
