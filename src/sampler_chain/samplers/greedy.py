"""Greedy selection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from sampler_chain.exceptions import InvalidInputError
from sampler_chain.samplers.base import Sampler
from sampler_chain.samplers.registry import SamplerRegistry

if TYPE_CHECKING:
    from sampler_chain.logits import Logits
    from sampler_chain.resources import SamplerResources


@SamplerRegistry.register("greedy")
class SampleGreedy(Sampler):
    """Select the highest-scoring token; ties go to the lowest id.

    The container is left untouched.

    Raises:
        InvalidInputError: If every remaining score is ``-inf``.
    """

    name = "greedy"
    description = "Select the most likely token"

    def __init__(self) -> None:
        self._token_id: int | None = None

    @property
    def sampled_token_id(self) -> int | None:
        return self._token_id

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        self._token_id = None
        scores = logits.scores
        top = scores.max()
        if not np.isfinite(top):
            raise InvalidInputError("Every candidate has been excluded (all scores are -inf)")
        best = np.flatnonzero(scores == top)
        self._token_id = int(logits.token_ids[best].min())
        return logits
