"""Top-a truncation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from sampler_chain.exceptions import InvalidInputError
from sampler_chain.samplers.base import Sampler
from sampler_chain.samplers.min_p import truncate_below
from sampler_chain.samplers.options import SamplerOption
from sampler_chain.samplers.registry import SamplerRegistry

if TYPE_CHECKING:
    from sampler_chain.config import SamplerChainConfig
    from sampler_chain.logits import Logits
    from sampler_chain.resources import SamplerResources


@SamplerRegistry.register("top_a")
class SampleTopA(Sampler):
    """Drop entries below ``a1 * max_prob ** a2``.

    With a peaked distribution the threshold is high and few tokens survive;
    with a flat one almost everything does.
    """

    name = "top_a"
    description = "Threshold scaled by a power of the top probability"
    options = (
        SamplerOption("a1", "float", "Threshold coefficient (>= 0)"),
        SamplerOption("a2", "float", "Exponent applied to the top probability (>= 0)"),
        SamplerOption("min_keep", "uint", "Lower bound on kept entries"),
    )

    def __init__(self, a1: float = 0.0, a2: float = 2.0, min_keep: int = 1) -> None:
        self.a1 = float(a1)
        self.a2 = float(a2)
        self.min_keep = int(min_keep)
        self._validate()

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleTopA:
        return cls(config.top_a_a1, config.top_a_a2, config.min_keep)

    def _validate(self) -> None:
        for key in ("a1", "a2"):
            value = getattr(self, key)
            if not (value >= 0.0 and np.isfinite(value)):
                raise InvalidInputError(f"top_a requires a finite {key} >= 0, got {value}")
        if self.min_keep < 0:
            raise InvalidInputError(f"min_keep must be >= 0, got {self.min_keep}")

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        if self.a1 == 0.0 or self.a2 == 0.0 or len(logits) < 2:
            return logits
        logits.ensure_softmax()
        threshold = self.a1 * float(logits.probs[0]) ** self.a2
        return truncate_below(logits, threshold, self.min_keep)
