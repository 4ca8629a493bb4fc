"""Random selection from the remaining distribution."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sampler_chain.samplers.base import Sampler
from sampler_chain.samplers.registry import SamplerRegistry

if TYPE_CHECKING:
    from sampler_chain.logits import Logits
    from sampler_chain.resources import SamplerResources


@SamplerRegistry.register("rand_distrib")
class SampleRandDistrib(Sampler):
    """Draw a token with probability proportional to its softmax weight.

    Requires the random source resource.
    """

    name = "rand_distrib"
    description = "Select a token at random according to its probability"

    def __init__(self) -> None:
        self._token_id: int | None = None

    @property
    def sampled_token_id(self) -> int | None:
        return self._token_id

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        self._token_id = None
        logits.ensure_softmax()
        probs = logits.probs
        index = res.with_rng(lambda rng: rng.weighted_index(probs))
        self._token_id = int(logits.token_ids[index])
        return logits
