"""Diagnostic logging subsystem for sampler-chain.

Provides immutable per-step records and a configurable logger that supports
none/summary/full verbosity and in-memory diagnostic mode.
"""

from sampler_chain.logging.logger import SamplingLogger
from sampler_chain.logging.types import ChainSamplingRecord

__all__ = [
    "ChainSamplingRecord",
    "SamplingLogger",
]
