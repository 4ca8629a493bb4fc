"""Temperature scaling."""

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


@SamplerRegistry.register("temperature")
class SampleTemperature(Sampler):
    """Divide every score by ``temperature``.

    Values below 1 sharpen the distribution, values above 1 flatten it.
    Ranking is unchanged, so the sorted flag survives.
    """

    name = "temperature"
    description = "Scale scores by 1 / temperature"
    options = (SamplerOption("temperature", "float", "Temperature (> 0)"),)

    def __init__(self, temperature: float = 0.8) -> None:
        self.temperature = float(temperature)
        self._validate()

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleTemperature:
        return cls(config.temperature)

    def _validate(self) -> None:
        if not (self.temperature > 0.0 and np.isfinite(self.temperature)):
            raise InvalidInputError(f"Temperature must be finite and > 0, got {self.temperature}")

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        if self.temperature == 1.0:
            return logits
        return logits.replace_scores(logits.scores / self.temperature, keep_order=True)
