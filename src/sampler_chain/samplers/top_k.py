"""Top-k truncation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sampler_chain.exceptions import InvalidInputError
from sampler_chain.samplers.base import Sampler
from sampler_chain.samplers.options import SamplerOption
from sampler_chain.samplers.registry import SamplerRegistry

if TYPE_CHECKING:
    from sampler_chain.config import SamplerChainConfig
    from sampler_chain.logits import Logits
    from sampler_chain.resources import SamplerResources


@SamplerRegistry.register("top_k")
class SampleTopK(Sampler):
    """Keep the ``max(k, min_keep)`` highest-scoring entries."""

    name = "top_k"
    description = "Keep only the k most likely tokens"
    options = (
        SamplerOption("k", "uint", "Number of entries to keep (>= 1)"),
        SamplerOption("min_keep", "uint", "Lower bound on kept entries"),
    )

    def __init__(self, k: int = 40, min_keep: int = 1) -> None:
        self.k = int(k)
        self.min_keep = int(min_keep)
        self._validate()

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleTopK:
        return cls(config.top_k, config.min_keep)

    def _validate(self) -> None:
        if self.k < 1:
            raise InvalidInputError(f"top_k requires k >= 1, got {self.k}")
        if self.min_keep < 0:
            raise InvalidInputError(f"min_keep must be >= 0, got {self.min_keep}")

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        keep = max(self.k, self.min_keep)
        if keep >= len(logits):
            return logits
        return logits.truncate(keep)
