"""Build chains, random sources and resource sets from configuration.

A chain description is a comma-separated list of stage names, each optionally
followed by an option string::

    repetition:penalty=1.1:last_n=64,top_k:k=40,temperature:0.8,rand_distrib

Each stage starts from the defaults in :class:`SamplerChainConfig` and then
applies its inline options with :meth:`Sampler.configure`.
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

import sampler_chain.samplers  # noqa: F401  (registers built-in samplers)
from sampler_chain.chain import SamplerChain
from sampler_chain.config import SamplerChainConfig
from sampler_chain.exceptions import ConfigValidationError
from sampler_chain.resources import SimpleSamplerResources
from sampler_chain.rng.fallback import FallbackRandomSource
from sampler_chain.rng.registry import RandomSourceRegistry
from sampler_chain.rng.seeded import SeededRandomSource
from sampler_chain.rng.system import SystemRandomSource
from sampler_chain.samplers.registry import SamplerRegistry

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sampler_chain.rng.base import RandomSource

logger = logging.getLogger("sampler_chain")

_FALLBACK_MODES = frozenset({"error", "system", "seeded"})


def _accepts_config(cls: type) -> bool:
    """Check whether *cls* takes a SamplerChainConfig as its first argument.

    Matches a first parameter annotated as ``SamplerChainConfig`` or, when
    unannotated, named ``config``.
    """
    try:
        sig = inspect.signature(cls)
    except (ValueError, TypeError):
        return False

    for param in sig.parameters.values():
        annotation = param.annotation
        if annotation is inspect.Parameter.empty:
            return param.name == "config"
        return annotation is SamplerChainConfig or (
            isinstance(annotation, str) and "SamplerChainConfig" in annotation
        )
    return False


def _accepts_seed(cls: type) -> bool:
    try:
        return "seed" in inspect.signature(cls).parameters
    except (ValueError, TypeError):
        return False


def build_random_source(config: SamplerChainConfig) -> RandomSource:
    """Build the random source from config, wrapping with fallback if needed.

    Args:
        config: Configuration specifying source type, seed and fallback mode.

    Returns:
        A RandomSource, wrapped in FallbackRandomSource unless
        ``fallback_mode == 'error'``.

    Raises:
        ConfigValidationError: If the source type or fallback mode is unknown.
    """
    try:
        source_cls = RandomSourceRegistry.get(config.random_source_type)
    except KeyError as exc:
        raise ConfigValidationError(str(exc.args[0])) from exc

    if _accepts_config(source_cls):
        primary: RandomSource = source_cls(config)  # type: ignore[call-arg]
    elif _accepts_seed(source_cls):
        primary = source_cls(seed=config.random_seed)  # type: ignore[call-arg]
    else:
        primary = source_cls()

    if config.fallback_mode not in _FALLBACK_MODES:
        raise ConfigValidationError(
            f"Unknown fallback_mode {config.fallback_mode!r}; "
            f"expected one of {', '.join(sorted(_FALLBACK_MODES))}"
        )
    if config.fallback_mode == "error" or config.fallback_mode == primary.name:
        return primary

    fallback: RandomSource
    if config.fallback_mode == "seeded":
        fallback = SeededRandomSource(seed=config.random_seed)
    else:
        fallback = SystemRandomSource()
    logger.debug("Random source %s with %s fallback", primary.name, fallback.name)
    return FallbackRandomSource(primary, fallback)


def build_resources(
    config: SamplerChainConfig,
    last_tokens: Iterable[int] | None = None,
) -> SimpleSamplerResources:
    """Build a resource set holding the configured random source.

    Args:
        config: Configuration for the random source.
        last_tokens: Initial token history. ``None`` starts an empty history.
    """
    return SimpleSamplerResources(
        rng=build_random_source(config),
        last_tokens=() if last_tokens is None else last_tokens,
    )


def parse_chain_spec(spec: str) -> list[tuple[str, str]]:
    """Split a chain description into ``(stage_name, option_string)`` pairs.

    Raises:
        ConfigValidationError: If the description names no stages.
    """
    items: list[tuple[str, str]] = []
    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        name, _, options = part.partition(":")
        items.append((name.strip(), options.strip()))
    if not items:
        raise ConfigValidationError(f"Chain description {spec!r} names no stages")
    return items


def build_chain(config: SamplerChainConfig) -> SamplerChain:
    """Build the chain described by ``config.chain``.

    Raises:
        ConfigValidationError: On unknown stage names or bad options.
        InvalidInputError: If a configured value fails a stage's checks.
    """
    chain = SamplerChain()
    for name, options in parse_chain_spec(config.chain):
        try:
            sampler = SamplerRegistry.build(name, config)
        except KeyError as exc:
            raise ConfigValidationError(str(exc.args[0])) from exc
        if options:
            sampler.configure(options)
        chain.push_sampler(sampler)
    logger.debug("Built chain: %s", ", ".join(s.name for s in chain))
    return chain
