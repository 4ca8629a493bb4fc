"""Shared pytest fixtures for sampler-chain tests.

Provides reusable configuration objects, resource sets with deterministic
random sources, and sample score arrays used across test modules.
"""

from __future__ import annotations

import numpy as np
import pytest

from sampler_chain.config import SamplerChainConfig
from sampler_chain.resources import NilSamplerResources, SimpleSamplerResources
from sampler_chain.rng.seeded import SeededRandomSource


@pytest.fixture
def default_config() -> SamplerChainConfig:
    """Return a SamplerChainConfig with all default values."""
    return SamplerChainConfig(_env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def silent_config() -> SamplerChainConfig:
    """Return a seeded config with no logging for noise-free tests."""
    return SamplerChainConfig(
        _env_file=None,  # type: ignore[call-arg]
        random_source_type="seeded",
        random_seed=1234,
        fallback_mode="error",
        log_level="none",
    )


@pytest.fixture
def diagnostic_config() -> SamplerChainConfig:
    """Return a seeded config with diagnostic mode and full logging."""
    return SamplerChainConfig(
        _env_file=None,  # type: ignore[call-arg]
        random_source_type="seeded",
        random_seed=1234,
        fallback_mode="error",
        log_level="full",
        diagnostic_mode=True,
    )


@pytest.fixture
def nil_resources() -> NilSamplerResources:
    """Resource set with neither RNG nor history."""
    return NilSamplerResources()


@pytest.fixture
def seeded_resources() -> SimpleSamplerResources:
    """Resource set with a seeded RNG and an empty history."""
    return SimpleSamplerResources(rng=SeededRandomSource(seed=42), last_tokens=[])


@pytest.fixture
def uniform_scores() -> np.ndarray:
    """Five equal scores; every token equally likely."""
    return np.log(np.full(5, 0.2))


@pytest.fixture
def ascending_scores() -> np.ndarray:
    """Scores for probabilities [0.1, 0.2, 0.3, 0.4] (token 3 most likely)."""
    return np.log(np.array([0.1, 0.2, 0.3, 0.4]))
