"""Ordered composition of samplers.

A :class:`SamplerChain` runs its stages in insertion order over one
:class:`~sampler_chain.logits.Logits`. Any stage may select a token; the
last stage that does so determines the chain's result. Stages after a
selecting stage still run, so a chain may filter, select, and then let a
later selector override the choice.

The first exception raised by a stage aborts the run and propagates
unchanged. The container is left in whatever state that stage produced.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sampler_chain.samplers.base import Sampler

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from sampler_chain.logits import Logits
    from sampler_chain.resources import SamplerResources

logger = logging.getLogger("sampler_chain")


class SamplerChain(Sampler):
    """A sampler made of other samplers.

    Because the chain is itself a :class:`Sampler`, chains nest.

    Args:
        samplers: Initial stages, in order.
    """

    name = "chain"
    description = "Run a sequence of samplers"

    def __init__(self, samplers: Iterable[Sampler] = ()) -> None:
        self._samplers: list[Sampler] = []
        self._token_id: int | None = None
        for sampler in samplers:
            self.push_sampler(sampler)

    def push_sampler(self, sampler: Sampler) -> SamplerChain:
        """Append *sampler* as the last stage and return the chain."""
        if not isinstance(sampler, Sampler):
            raise TypeError(f"Expected a Sampler, got {type(sampler).__name__}")
        self._samplers.append(sampler)
        return self

    @property
    def samplers(self) -> tuple[Sampler, ...]:
        return tuple(self._samplers)

    @property
    def sampled_token_id(self) -> int | None:
        return self._token_id

    def __len__(self) -> int:
        return len(self._samplers)

    def __iter__(self) -> Iterator[Sampler]:
        return iter(self._samplers)

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        self._token_id = None
        for sampler in self._samplers:
            sampler.sample(res, logits)
            token_id = sampler.sampled_token_id
            if token_id is not None:
                self._token_id = token_id
            logger.debug(
                "chain stage %s: %d candidates, selected=%s",
                sampler.name,
                len(logits),
                token_id,
            )
        return logits

    def reset(self) -> None:
        """Reset every stage that keeps state between steps."""
        for sampler in self._samplers:
            reset = getattr(sampler, "reset", None)
            if callable(reset):
                reset()

    def __repr__(self) -> str:
        return f"SamplerChain([{', '.join(repr(s) for s in self._samplers)}])"
