"""sampler-chain: composable token sampling for language-model inference.

Builds an ordered chain of sampling stages (penalties, truncation filters,
temperature, Mirostat and terminal selectors) that transforms one step's
logits and optionally selects a token. Random draws and token history are
borrowed from a resource set the caller owns.
"""

from __future__ import annotations

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("sampler-chain")
except PackageNotFoundError:
    __version__ = "0.0.0"

from sampler_chain.chain import SamplerChain
from sampler_chain.config import SamplerChainConfig, resolve_config, validate_overrides
from sampler_chain.exceptions import (
    ConfigValidationError,
    InternalSamplerError,
    InvalidInputError,
    ResourceUnavailableError,
    SamplerChainError,
)
from sampler_chain.factory import build_chain, build_random_source, build_resources
from sampler_chain.logits import LogitEntry, Logits
from sampler_chain.resources import (
    NilSamplerResources,
    SamplerResources,
    SimpleSamplerResources,
)
from sampler_chain.samplers import Sampler, SamplerRegistry
from sampler_chain.session import SamplingSession

__all__ = [
    "ConfigValidationError",
    "InternalSamplerError",
    "InvalidInputError",
    "LogitEntry",
    "Logits",
    "NilSamplerResources",
    "ResourceUnavailableError",
    "Sampler",
    "SamplerChain",
    "SamplerChainConfig",
    "SamplerChainError",
    "SamplerRegistry",
    "SamplerResources",
    "SamplingSession",
    "SimpleSamplerResources",
    "__version__",
    "build_chain",
    "build_random_source",
    "build_resources",
    "resolve_config",
    "validate_overrides",
]
