"""System random source using ``os.urandom()``.

The default source and the default fallback. Cryptographically secure,
always available, not reproducible.
"""

from __future__ import annotations

import os

from sampler_chain.rng.base import RandomSource
from sampler_chain.rng.registry import register_random_source


@register_random_source("system")
class SystemRandomSource(RandomSource):
    """``os.urandom()`` wrapper. Uniform variates come from the base class."""

    @property
    def name(self) -> str:
        """Return ``'system'``."""
        return "system"

    @property
    def is_available(self) -> bool:
        """Always ``True``."""
        return True

    def get_random_bytes(self, n: int) -> bytes:
        return os.urandom(n)

    def close(self) -> None:
        """No-op."""
