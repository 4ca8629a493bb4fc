"""Fallback random source with transparent failover.

``FallbackRandomSource`` wraps a *primary* and a *fallback* source. When the
primary raises :class:`~sampler_chain.exceptions.ResourceUnavailableError`,
the request is served by the fallback. Every other exception propagates
unchanged: only unavailability is recoverable.

The built-in ``system`` and ``seeded`` sources never report themselves
unavailable, so failover only happens when the primary is a plugin source
loaded from the ``sampler_chain.random_sources`` entry-point group (for
example a hardware or network RNG). ``build_random_source`` wraps any
primary whose name differs from ``fallback_mode``.
"""

from __future__ import annotations

import logging
from typing import Any

from sampler_chain.exceptions import ResourceUnavailableError
from sampler_chain.rng.base import RandomSource

logger = logging.getLogger("sampler_chain")


class FallbackRandomSource(RandomSource):
    """Tries *primary*, falls back on ``ResourceUnavailableError``.

    Args:
        primary: The preferred random source.
        fallback: The source used while the primary is unavailable.
    """

    def __init__(self, primary: RandomSource, fallback: RandomSource) -> None:
        self._primary = primary
        self._fallback = fallback
        self._last_source_used: str = primary.name

    @property
    def name(self) -> str:
        """Compound name ``'<primary>+<fallback>'``."""
        return f"{self._primary.name}+{self._fallback.name}"

    @property
    def is_available(self) -> bool:
        return self._primary.is_available or self._fallback.is_available

    @property
    def primary(self) -> RandomSource:
        return self._primary

    @property
    def last_source_used(self) -> str:
        """Name of the source that served the most recent request."""
        return self._last_source_used

    @property
    def used_fallback(self) -> bool:
        return self._last_source_used != self._primary.name

    def get_random_bytes(self, n: int) -> bytes:
        """Bytes from the primary, or from the fallback if it is unavailable.

        Raises:
            ResourceUnavailableError: If both sources are unavailable.
        """
        try:
            data = self._primary.get_random_bytes(n)
        except ResourceUnavailableError:
            logger.warning(
                "Primary random source %r unavailable, falling back to %r",
                self._primary.name,
                self._fallback.name,
            )
            data = self._fallback.get_random_bytes(n)
            self._last_source_used = self._fallback.name
        else:
            self._last_source_used = self._primary.name
        return data

    def random(self) -> float:
        """Uniform variate with the same failover rule as the byte path."""
        try:
            value = self._primary.random()
        except ResourceUnavailableError:
            logger.warning(
                "Primary random source %r unavailable, falling back to %r",
                self._primary.name,
                self._fallback.name,
            )
            value = self._fallback.random()
            self._last_source_used = self._fallback.name
        else:
            self._last_source_used = self._primary.name
        return value

    def close(self) -> None:
        self._primary.close()
        self._fallback.close()

    def health_check(self) -> dict[str, Any]:
        """Health of both sources plus which one served last."""
        return {
            "source": self.name,
            "healthy": self.is_available,
            "primary": self._primary.health_check(),
            "fallback": self._fallback.health_check(),
            "last_source_used": self._last_source_used,
        }
