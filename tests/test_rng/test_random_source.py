"""Tests for the RandomSource base class helpers."""

from __future__ import annotations

import numpy as np
import pytest

from sampler_chain.exceptions import InvalidInputError
from sampler_chain.rng.base import RandomSource


class _FixedBytesSource(RandomSource):
    """Test double: returns a fixed byte pattern."""

    def __init__(self, fill: int) -> None:
        self._fill = fill

    @property
    def name(self) -> str:
        return "fixed"

    @property
    def is_available(self) -> bool:
        return True

    def get_random_bytes(self, n: int) -> bytes:
        return bytes([self._fill]) * n

    def close(self) -> None:
        pass


class _FixedUniformSource(_FixedBytesSource):
    """Test double: returns a fixed uniform variate."""

    def __init__(self, u: float) -> None:
        super().__init__(0)
        self._u = u

    def random(self) -> float:
        return self._u


class TestRandom:
    """Default byte-to-float conversion."""

    def test_zero_bytes_give_zero(self) -> None:
        assert _FixedBytesSource(0x00).random() == 0.0

    def test_max_bytes_stay_below_one(self) -> None:
        value = _FixedBytesSource(0xFF).random()
        assert 0.99 < value < 1.0


class TestWeightedIndex:
    """CDF-based weighted draws."""

    @pytest.mark.parametrize(
        ("u", "expected"),
        [(0.0, 0), (0.09, 0), (0.1, 1), (0.35, 2), (0.99, 3)],
    )
    def test_cdf_positions(self, u: float, expected: int) -> None:
        source = _FixedUniformSource(u)
        assert source.weighted_index([0.1, 0.2, 0.3, 0.4]) == expected

    def test_unnormalized_weights(self) -> None:
        assert _FixedUniformSource(0.5).weighted_index(np.array([1.0, 3.0])) == 1

    def test_zero_weight_never_chosen(self) -> None:
        source = _FixedUniformSource(np.nextafter(1.0, 0.0))
        assert source.weighted_index([1.0, 1.0, 0.0]) == 1

    @pytest.mark.parametrize(
        "weights",
        [[], [0.0, 0.0], [1.0, -0.5], [1.0, np.inf], [np.nan]],
    )
    def test_invalid_weights(self, weights: list[float]) -> None:
        with pytest.raises(InvalidInputError):
            _FixedUniformSource(0.5).weighted_index(weights)

    def test_health_check(self) -> None:
        status = _FixedBytesSource(0).health_check()
        assert status == {"source": "fixed", "healthy": True}
