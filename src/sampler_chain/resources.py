"""Resource capability sets handed to samplers.

Samplers never own the random source or the token history. They borrow them
for the duration of a closure through the scoped accessors below, which lets
the resource object decide how access is synchronized. A resource set may be
shared by several generation threads; :class:`SimpleSamplerResources` guards
each slot with its own lock, and readers of the history get an immutable
snapshot so an append can never tear a read.

Each slot is optional. A missing slot is only an error when a sampler
actually asks for it.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, TypeVar

from sampler_chain.exceptions import ResourceUnavailableError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from sampler_chain.rng.base import RandomSource

T = TypeVar("T")


class SamplerResources:
    """Capability interface consulted by samplers.

    The base implementation provides nothing: every accessor raises
    :class:`ResourceUnavailableError`. Implementations override the
    accessors for the resources they hold.
    """

    @property
    def has_rng(self) -> bool:
        """Whether a random source is configured."""
        return False

    @property
    def has_last_tokens(self) -> bool:
        """Whether a token history is configured."""
        return False

    def with_rng(self, fun: Callable[[RandomSource], T]) -> T:
        """Call ``fun(rng)`` with exclusive access and return its result.

        Raises:
            ResourceUnavailableError: If no random source is configured.
        """
        raise ResourceUnavailableError("rng")

    def with_last_tokens(self, fun: Callable[[tuple[int, ...]], T]) -> T:
        """Call ``fun(history)`` with a read-only snapshot of the history.

        Raises:
            ResourceUnavailableError: If no token history is configured.
        """
        raise ResourceUnavailableError("last_tokens")

    def with_last_tokens_mut(self, fun: Callable[[list[int]], T]) -> T:
        """Call ``fun(history)`` with write access to the history list.

        Used by callers to append a chosen token; samplers only read.

        Raises:
            ResourceUnavailableError: If no token history is configured.
        """
        raise ResourceUnavailableError("last_tokens")

    def close(self) -> None:
        """Release held resources."""


class NilSamplerResources(SamplerResources):
    """Resource set with no RNG and no history.

    Enough for chains built only from deterministic, history-free samplers
    (bias, temperature, truncation, greedy).
    """

    def __repr__(self) -> str:
        return "NilSamplerResources()"


class SimpleSamplerResources(SamplerResources):
    """Owns an optional random source and an optional token history.

    Args:
        rng: Random source for samplers that draw tokens.
        last_tokens: Initial history of emitted token ids, oldest first.
            ``None`` means no history slot at all; an empty iterable means
            an empty but available history.
    """

    def __init__(
        self,
        rng: RandomSource | None = None,
        last_tokens: Iterable[int] | None = None,
    ) -> None:
        self._rng = rng
        self._last_tokens: list[int] | None = (
            None if last_tokens is None else [int(t) for t in last_tokens]
        )
        self._rng_lock = threading.Lock()
        self._tokens_lock = threading.Lock()

    @property
    def has_rng(self) -> bool:
        return self._rng is not None

    @property
    def has_last_tokens(self) -> bool:
        return self._last_tokens is not None

    def with_rng(self, fun: Callable[[RandomSource], T]) -> T:
        if self._rng is None:
            raise ResourceUnavailableError("rng")
        with self._rng_lock:
            return fun(self._rng)

    def with_last_tokens(self, fun: Callable[[tuple[int, ...]], T]) -> T:
        if self._last_tokens is None:
            raise ResourceUnavailableError("last_tokens")
        with self._tokens_lock:
            snapshot = tuple(self._last_tokens)
        return fun(snapshot)

    def with_last_tokens_mut(self, fun: Callable[[list[int]], T]) -> T:
        if self._last_tokens is None:
            raise ResourceUnavailableError("last_tokens")
        with self._tokens_lock:
            return fun(self._last_tokens)

    def append_token(self, token_id: int) -> None:
        """Append *token_id* to the history."""
        self.with_last_tokens_mut(lambda tokens: tokens.append(int(token_id)))

    def clear_history(self) -> None:
        """Empty the history, keeping the slot available."""
        if self._last_tokens is not None:
            self.with_last_tokens_mut(lambda tokens: tokens.clear())

    def close(self) -> None:
        if self._rng is not None:
            self._rng.close()

    def __repr__(self) -> str:
        history: Any = None if self._last_tokens is None else len(self._last_tokens)
        rng_name = None if self._rng is None else self._rng.name
        return f"SimpleSamplerResources(rng={rng_name!r}, last_tokens={history})"
