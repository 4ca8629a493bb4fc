"""Tests for building chains, random sources and resources from config."""

from __future__ import annotations

import pytest

from sampler_chain.config import SamplerChainConfig
from sampler_chain.exceptions import (
    ConfigValidationError,
    InvalidInputError,
    ResourceUnavailableError,
)
from sampler_chain.factory import (
    _accepts_config,
    build_chain,
    build_random_source,
    build_resources,
    parse_chain_spec,
)
from sampler_chain.logits import Logits
from sampler_chain.resources import NilSamplerResources, SimpleSamplerResources
from sampler_chain.rng.base import RandomSource
from sampler_chain.rng.fallback import FallbackRandomSource
from sampler_chain.rng.registry import RandomSourceRegistry
from sampler_chain.rng.seeded import SeededRandomSource
from sampler_chain.rng.system import SystemRandomSource
from sampler_chain.samplers.greedy import SampleGreedy
from sampler_chain.samplers.rand_distrib import SampleRandDistrib
from sampler_chain.samplers.temperature import SampleTemperature
from sampler_chain.samplers.top_k import SampleTopK


def _config(**kwargs: object) -> SamplerChainConfig:
    return SamplerChainConfig(_env_file=None, **kwargs)  # type: ignore[call-arg, arg-type]


class TestParseChainSpec:
    """Chain description parsing."""

    def test_names_and_options(self) -> None:
        assert parse_chain_spec("top_k:k=40, temperature:0.8 ,rand_distrib") == [
            ("top_k", "k=40"),
            ("temperature", "0.8"),
            ("rand_distrib", ""),
        ]

    def test_multiple_options_kept_together(self) -> None:
        assert parse_chain_spec("repetition:penalty=1.2:last_n=8") == [
            ("repetition", "penalty=1.2:last_n=8")
        ]

    @pytest.mark.parametrize("spec", ["", " , ,"])
    def test_empty_rejected(self, spec: str) -> None:
        with pytest.raises(ConfigValidationError):
            parse_chain_spec(spec)


class TestBuildChain:
    """Chains from config."""

    def test_default_chain(self) -> None:
        chain = build_chain(_config())
        assert [s.name for s in chain] == [
            "repetition",
            "freq_presence",
            "top_k",
            "tail_free",
            "locally_typical",
            "top_p",
            "temperature",
            "rand_distrib",
        ]

    def test_config_defaults_then_inline_options(self) -> None:
        chain = build_chain(_config(chain="top_k:k=3,temperature,greedy", temperature=0.4))
        top_k, temperature, greedy = chain.samplers
        assert isinstance(top_k, SampleTopK)
        assert top_k.k == 3
        assert isinstance(temperature, SampleTemperature)
        assert temperature.temperature == 0.4
        assert isinstance(greedy, SampleGreedy)

    def test_penalty_chain_selects_expected_token(self) -> None:
        config = _config(
            chain="repetition:penalty=1.1:last_n=64,freq_presence:frequency=.5:last_n=4,greedy"
        )
        chain = build_chain(config)
        res = build_resources(config, last_tokens=[0, 1, 2, 3, 3, 0, 0])
        assert chain.sample_token(res, Logits.from_scores([0.2, 0.2, 0.2, 0.2])) == 1

    def test_unknown_stage(self) -> None:
        with pytest.raises(ConfigValidationError, match="nucleus"):
            build_chain(_config(chain="top_k,nucleus"))

    def test_unknown_option(self) -> None:
        with pytest.raises(ConfigValidationError):
            build_chain(_config(chain="top_k:q=3"))

    def test_invalid_configured_value(self) -> None:
        with pytest.raises(InvalidInputError):
            build_chain(_config(chain="temperature", temperature=0.0))

    def test_flat_bias_from_config(self) -> None:
        chain = build_chain(_config(chain="flat_bias,greedy", flat_bias={0: 5.0}))
        assert chain.sample_token(NilSamplerResources(), Logits.from_scores([0.0, 1.0])) == 0


class TestBuildRandomSource:
    """Random source selection and fallback wrapping."""

    def test_error_mode_returns_primary(self) -> None:
        source = build_random_source(_config(random_source_type="seeded", fallback_mode="error"))
        assert isinstance(source, SeededRandomSource)

    def test_seed_passed_through(self) -> None:
        config = _config(random_source_type="seeded", random_seed=21, fallback_mode="error")
        a = build_random_source(config)
        b = build_random_source(config)
        assert [a.random() for _ in range(3)] == [b.random() for _ in range(3)]

    def test_wraps_with_system_fallback(self) -> None:
        source = build_random_source(_config(random_source_type="seeded", fallback_mode="system"))
        assert isinstance(source, FallbackRandomSource)
        assert source.name == "seeded+system"

    def test_same_fallback_not_wrapped(self) -> None:
        source = build_random_source(_config())
        assert isinstance(source, SystemRandomSource)

    def test_seeded_fallback(self) -> None:
        source = build_random_source(_config(fallback_mode="seeded"))
        assert isinstance(source, FallbackRandomSource)
        assert source.name == "system+seeded"

    def test_unknown_source(self) -> None:
        with pytest.raises(ConfigValidationError, match="no_such_rng"):
            build_random_source(_config(random_source_type="no_such_rng"))

    def test_unknown_fallback_mode(self) -> None:
        with pytest.raises(ConfigValidationError, match="fallback_mode"):
            build_random_source(_config(fallback_mode="mock"))

    def test_accepts_config_detection(self) -> None:
        class WithConfig:
            def __init__(self, config: SamplerChainConfig) -> None:
                self.config = config

        class Untyped:
            def __init__(self, config) -> None:  # type: ignore[no-untyped-def]
                self.config = config

        assert _accepts_config(WithConfig)
        assert _accepts_config(Untyped)
        assert not _accepts_config(SeededRandomSource)


class _OfflineSource(RandomSource):
    """Plugin-style source whose device is never reachable."""

    @property
    def name(self) -> str:
        return "offline"

    @property
    def is_available(self) -> bool:
        return False

    def get_random_bytes(self, n: int) -> bytes:
        raise ResourceUnavailableError("rng", "device offline")

    def close(self) -> None:
        pass


class TestPluginSourceFailover:
    """An unavailable plugin source falls back through the factory."""

    def setup_method(self) -> None:
        self._saved_registry = dict(RandomSourceRegistry._registry)
        RandomSourceRegistry.register("offline")(_OfflineSource)

    def teardown_method(self) -> None:
        RandomSourceRegistry._registry = self._saved_registry

    def test_draw_served_by_fallback(self, caplog: pytest.LogCaptureFixture) -> None:
        config = _config(random_source_type="offline", fallback_mode="seeded", random_seed=5)
        source = build_random_source(config)
        assert isinstance(source, FallbackRandomSource)

        res = SimpleSamplerResources(rng=source)
        with caplog.at_level("WARNING", logger="sampler_chain"):
            token = SampleRandDistrib().sample_token(res, Logits.from_scores([0.0, 1.0]))
        assert token in (0, 1)
        assert source.used_fallback
        assert source.last_source_used == "seeded"
        assert "unavailable" in caplog.text

    def test_error_mode_propagates(self) -> None:
        source = build_random_source(_config(random_source_type="offline", fallback_mode="error"))
        res = SimpleSamplerResources(rng=source)
        with pytest.raises(ResourceUnavailableError):
            SampleRandDistrib().sample(res, Logits.from_scores([0.0, 1.0]))


class TestBuildResources:
    """Resource sets from config."""

    def test_has_rng_and_empty_history(self) -> None:
        res = build_resources(_config(random_source_type="seeded", fallback_mode="error"))
        assert res.has_rng
        assert res.with_last_tokens(len) == 0

    def test_initial_history(self) -> None:
        res = build_resources(_config(), last_tokens=[4, 5])
        assert res.with_last_tokens(list) == [4, 5]
