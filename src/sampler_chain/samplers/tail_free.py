"""Tail-free sampling.

Reference: https://www.trentonbricken.com/Tail-Free-Sampling/
"""

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


@SamplerRegistry.register("tail_free")
class SampleTailFree(Sampler):
    """Cut the tail where the sorted distribution flattens out.

    The absolute second derivatives of the sorted probabilities are
    normalized to sum to 1 and accumulated. The first index ``i`` (with
    ``i >= min_keep``) whose running sum reaches ``z`` becomes the number of
    kept entries.
    """

    name = "tail_free"
    description = "Remove the flat tail of the distribution"
    options = (
        SamplerOption("z", "float", "Second-derivative mass threshold in (0, 1]"),
        SamplerOption("min_keep", "uint", "Lower bound on kept entries"),
    )

    def __init__(self, z: float = 1.0, min_keep: int = 1) -> None:
        self.z = float(z)
        self.min_keep = int(min_keep)
        self._validate()

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleTailFree:
        return cls(config.tail_free_z, config.min_keep)

    def _validate(self) -> None:
        if not 0.0 < self.z <= 1.0:
            raise InvalidInputError(f"tail_free requires 0 < z <= 1, got {self.z}")
        if self.min_keep < 0:
            raise InvalidInputError(f"min_keep must be >= 0, got {self.min_keep}")

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        if self.z >= 1.0 or len(logits) < 3:
            return logits
        logits.ensure_softmax()
        second = np.abs(np.diff(logits.probs, n=2))
        total = second.sum()
        if not total > 0:
            return logits
        cumulative = np.cumsum(second / total)
        indices = np.arange(cumulative.size)
        candidates = np.flatnonzero((cumulative >= self.z) & (indices >= max(self.min_keep, 1)))
        if candidates.size == 0:
            return logits
        return logits.truncate(int(candidates[0]))
