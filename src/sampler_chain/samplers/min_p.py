"""Min-p truncation."""

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


def truncate_below(logits: Logits, threshold: float, min_keep: int) -> Logits:
    """Drop the sorted tail whose probabilities fall below *threshold*.

    At least ``max(min_keep, 1)`` entries survive. *logits* must already be
    softmaxed.
    """
    below = np.flatnonzero(logits.probs < threshold)
    below = below[below >= max(min_keep, 1)]
    if below.size == 0:
        return logits
    return logits.truncate(int(below[0]))


@SamplerRegistry.register("min_p")
class SampleMinP(Sampler):
    """Drop entries less likely than ``p`` times the most likely one."""

    name = "min_p"
    description = "Keep tokens at least p times as likely as the top token"
    options = (
        SamplerOption("p", "float", "Fraction of the top probability (>= 0)"),
        SamplerOption("min_keep", "uint", "Lower bound on kept entries"),
    )

    def __init__(self, p: float = 0.05, min_keep: int = 1) -> None:
        self.p = float(p)
        self.min_keep = int(min_keep)
        self._validate()

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleMinP:
        return cls(config.min_p, config.min_keep)

    def _validate(self) -> None:
        if not (self.p >= 0.0 and np.isfinite(self.p)):
            raise InvalidInputError(f"min_p requires a finite p >= 0, got {self.p}")
        if self.min_keep < 0:
            raise InvalidInputError(f"min_keep must be >= 0, got {self.min_keep}")

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        if self.p == 0.0 or len(logits) < 2:
            return logits
        logits.ensure_softmax()
        return truncate_below(logits, float(logits.probs[0]) * self.p, self.min_keep)
