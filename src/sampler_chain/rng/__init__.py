"""Random source subsystem for sampler-chain.

Re-exports the ABC, the registry and the built-in sources::

    from sampler_chain.rng import RandomSource, SeededRandomSource
"""

from sampler_chain.rng.base import RandomSource
from sampler_chain.rng.fallback import FallbackRandomSource
from sampler_chain.rng.registry import RandomSourceRegistry, register_random_source
from sampler_chain.rng.seeded import SeededRandomSource
from sampler_chain.rng.system import SystemRandomSource

__all__ = [
    "FallbackRandomSource",
    "RandomSource",
    "RandomSourceRegistry",
    "SeededRandomSource",
    "SystemRandomSource",
    "register_random_source",
]
