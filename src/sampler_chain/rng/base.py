"""Abstract base class for all random sources.

Every random source (OS randomness, a seeded numpy generator, a test double)
implements this interface. Samplers only ever need two capabilities: a
uniform variate and a weighted index draw. The ABC derives both from
``get_random_bytes()``, so a minimal subclass implements just ``name``,
``is_available``, ``get_random_bytes()`` and ``close()``. Subclasses with a
native float generator may override ``random()``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import numpy as np

from sampler_chain.exceptions import InvalidInputError

if TYPE_CHECKING:
    from collections.abc import Sequence

# 53 bits of mantissa: the precision of a float64 in [0, 1).
_FLOAT_BITS = 53
_FLOAT_SCALE = 1.0 / (1 << _FLOAT_BITS)


class RandomSource(ABC):
    """Abstract base for all random sources.

    Instances are stateful and are not safe for unsynchronized concurrent
    use; resource holders serialize access (see
    :class:`~sampler_chain.resources.SimpleSamplerResources`).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable source identifier (e.g., ``'system'``, ``'seeded'``)."""

    @property
    @abstractmethod
    def is_available(self) -> bool:
        """Whether the source can currently provide randomness."""

    @abstractmethod
    def get_random_bytes(self, n: int) -> bytes:
        """Return exactly *n* random bytes.

        Raises:
            ResourceUnavailableError: If the source cannot provide bytes.
        """

    def random(self) -> float:
        """Return a uniform float in ``[0, 1)``.

        The default implementation takes 8 bytes, keeps the top 53 bits and
        scales them into the unit interval.
        """
        raw = int.from_bytes(self.get_random_bytes(8), "little")
        return (raw >> (64 - _FLOAT_BITS)) * _FLOAT_SCALE

    def weighted_index(self, weights: Sequence[float] | np.ndarray) -> int:
        """Draw an index with probability proportional to its weight.

        Builds a CDF, scales one uniform variate by the total weight and
        binary-searches it. Zero-weight entries are never chosen.

        Args:
            weights: Non-negative weights; need not sum to 1.

        Returns:
            Index into *weights*.

        Raises:
            InvalidInputError: If *weights* is empty, has a negative or
                non-finite entry, or sums to zero.
        """
        w = np.asarray(weights, dtype=np.float64)
        if w.ndim != 1 or w.shape[0] == 0:
            raise InvalidInputError("Weighted draw needs a non-empty 1-D weight vector")
        if not np.all(np.isfinite(w)) or np.any(w < 0):
            raise InvalidInputError("Weights must be finite and non-negative")
        cdf = np.cumsum(w)
        total = float(cdf[-1])
        if total <= 0.0:
            raise InvalidInputError("Weights sum to zero")
        u = self.random() * total
        idx = int(np.searchsorted(cdf, u, side="right"))
        # Rounding can push u onto the last CDF value.
        return min(idx, int(np.flatnonzero(w)[-1]))

    @abstractmethod
    def close(self) -> None:
        """Release resources (file handles, connections)."""

    def health_check(self) -> dict[str, Any]:
        """Return a status dictionary for this source.

        Returns:
            Dictionary with at least ``'source'`` and ``'healthy'`` keys.
        """
        return {"source": self.name, "healthy": self.is_available}
