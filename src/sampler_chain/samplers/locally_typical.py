"""Locally typical sampling.

Reference: Meister et al., "Locally Typical Sampling" (arXiv:2202.00666).
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


@SamplerRegistry.register("locally_typical")
class SampleLocallyTypical(Sampler):
    """Keep the tokens whose surprisal is closest to the distribution's entropy.

    Entries are ranked by ``|-ln p - H|`` and taken in that order until their
    cumulative probability reaches ``p``. The survivors are returned in
    descending score order.
    """

    name = "locally_typical"
    description = "Keep tokens with typical information content"
    options = (
        SamplerOption("p", "float", "Cumulative probability threshold in (0, 1]"),
        SamplerOption("min_keep", "uint", "Lower bound on kept entries"),
    )

    def __init__(self, p: float = 1.0, min_keep: int = 1) -> None:
        self.p = float(p)
        self.min_keep = int(min_keep)
        self._validate()

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleLocallyTypical:
        return cls(config.typical_p, config.min_keep)

    def _validate(self) -> None:
        if not 0.0 < self.p <= 1.0:
            raise InvalidInputError(f"locally_typical requires 0 < p <= 1, got {self.p}")
        if self.min_keep < 0:
            raise InvalidInputError(f"min_keep must be >= 0, got {self.min_keep}")

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        if self.p >= 1.0:
            return logits
        logits.ensure_softmax()
        probs = logits.probs
        with np.errstate(divide="ignore"):
            neg_log = -np.log(probs)
        nonzero = probs > 0
        entropy = float(np.sum(probs[nonzero] * neg_log[nonzero]))
        order = np.argsort(np.abs(neg_log - entropy), kind="stable")
        cumulative = np.cumsum(probs[order])
        counts = np.arange(1, len(logits) + 1)
        candidates = np.flatnonzero((cumulative >= self.p) & (counts >= self.min_keep))
        keep = len(logits) if candidates.size == 0 else int(candidates[0]) + 1
        return logits.select(np.sort(order[:keep]), keeps_order=True)
