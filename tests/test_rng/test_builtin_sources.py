"""Tests for SystemRandomSource and SeededRandomSource."""

from __future__ import annotations

import numpy as np

from sampler_chain.rng.seeded import SeededRandomSource
from sampler_chain.rng.system import SystemRandomSource


class TestSystemRandomSource:
    """os.urandom-backed source."""

    def test_name_and_availability(self) -> None:
        source = SystemRandomSource()
        assert source.name == "system"
        assert source.is_available

    def test_returns_requested_length(self) -> None:
        source = SystemRandomSource()
        assert len(source.get_random_bytes(0)) == 0
        assert len(source.get_random_bytes(64)) == 64

    def test_random_in_unit_interval(self) -> None:
        source = SystemRandomSource()
        values = [source.random() for _ in range(200)]
        assert all(0.0 <= v < 1.0 for v in values)


class TestSeededRandomSource:
    """Reproducible numpy-backed source."""

    def test_same_seed_same_stream(self) -> None:
        a = SeededRandomSource(seed=7)
        b = SeededRandomSource(seed=7)
        assert [a.random() for _ in range(5)] == [b.random() for _ in range(5)]
        assert a.get_random_bytes(16) == b.get_random_bytes(16)

    def test_different_seeds_differ(self) -> None:
        a = SeededRandomSource(seed=1)
        b = SeededRandomSource(seed=2)
        assert [a.random() for _ in range(5)] != [b.random() for _ in range(5)]

    def test_wraps_existing_generator(self) -> None:
        gen = np.random.default_rng(3)
        expected = np.random.default_rng(3).random()
        assert SeededRandomSource(generator=gen).random() == expected

    def test_seed_property(self) -> None:
        assert SeededRandomSource(seed=11).seed == 11
        assert SeededRandomSource().seed is None

    def test_weighted_index_reproducible(self) -> None:
        weights = [0.1, 0.2, 0.3, 0.4]
        a = SeededRandomSource(seed=5)
        b = SeededRandomSource(seed=5)
        assert [a.weighted_index(weights) for _ in range(20)] == [
            b.weighted_index(weights) for _ in range(20)
        ]
