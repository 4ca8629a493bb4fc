"""Tests for SamplerRegistry."""

from __future__ import annotations

import pytest

import sampler_chain.samplers  # noqa: F401
from sampler_chain.config import SamplerChainConfig
from sampler_chain.logits import Logits
from sampler_chain.samplers.base import Sampler
from sampler_chain.samplers.registry import SamplerRegistry
from sampler_chain.samplers.top_k import SampleTopK

BUILTIN_NAMES = [
    "flat_bias",
    "freq_presence",
    "greedy",
    "locally_typical",
    "min_p",
    "mirostat1",
    "mirostat2",
    "rand_distrib",
    "repetition",
    "seq_repetition",
    "tail_free",
    "temperature",
    "top_a",
    "top_k",
    "top_p",
]


class TestSamplerRegistry:
    """Name-based lookup and construction."""

    def setup_method(self) -> None:
        self._saved_registry = dict(SamplerRegistry._registry)

    def teardown_method(self) -> None:
        SamplerRegistry._registry = self._saved_registry

    def test_builtins_registered(self) -> None:
        assert SamplerRegistry.list_registered() == BUILTIN_NAMES

    def test_registered_name_matches_class_name(self) -> None:
        for name in BUILTIN_NAMES:
            assert SamplerRegistry.get(name).name == name

    def test_get_unknown_raises_key_error(self) -> None:
        with pytest.raises(KeyError, match="no_such_stage"):
            SamplerRegistry.get("no_such_stage")

    def test_duplicate_rejected(self) -> None:
        with pytest.raises(ValueError, match="already registered"):

            @SamplerRegistry.register("top_k")
            class Duplicate(SampleTopK):
                pass

    def test_build_without_config_uses_defaults(self) -> None:
        sampler = SamplerRegistry.build("top_k")
        assert isinstance(sampler, SampleTopK)
        assert sampler.k == 40

    def test_build_from_config(self) -> None:
        config = SamplerChainConfig(_env_file=None, top_k=7, min_keep=2)  # type: ignore[call-arg]
        sampler = SamplerRegistry.build("top_k", config)
        assert sampler.option_values() == {"k": 7, "min_keep": 2}

    def test_every_builtin_builds_from_default_config(self) -> None:
        config = SamplerChainConfig(_env_file=None)  # type: ignore[call-arg]
        for name in BUILTIN_NAMES:
            assert isinstance(SamplerRegistry.build(name, config), Sampler)

    def test_register_custom_sampler(self) -> None:
        @SamplerRegistry.register("negate")
        class Negate(Sampler):
            name = "negate"

            def sample(self, res, logits: Logits) -> Logits:
                return logits.replace_scores(-logits.scores)

        assert SamplerRegistry.get("negate") is Negate
