"""Configuration system for sampler-chain.

Uses pydantic-settings for declarative, layered configuration:
init kwargs -> environment variables (SC_*) -> .env file -> field defaults.

Per-session overrides are applied via resolve_config() which creates a new
config instance without mutating the defaults. Infrastructure fields (which
random source backs the chain) are protected from override.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from sampler_chain.exceptions import ConfigValidationError

_PREFIX = "sc_"

# Fields that can be overridden per session.
_PER_REQUEST_FIELDS: frozenset[str] = frozenset(
    {
        "chain",
        "flat_bias",
        "repetition_penalty",
        "repetition_last_n",
        "frequency_penalty",
        "presence_penalty",
        "freq_presence_last_n",
        "seq_repetition_flat_penalty",
        "seq_repetition_stacking_penalty",
        "seq_repetition_min_length",
        "seq_repetition_tolerance",
        "seq_repetition_max_merge",
        "seq_repetition_last_n",
        "top_k",
        "top_p",
        "tail_free_z",
        "typical_p",
        "min_p",
        "top_a_a1",
        "top_a_a2",
        "min_keep",
        "temperature",
        "mirostat_tau",
        "mirostat_eta",
        "mirostat_m",
        "mirostat_n_vocab",
        "log_level",
        "diagnostic_mode",
    }
)

_ALL_FIELDS: frozenset[str] = frozenset()


class SamplerChainConfig(BaseSettings):
    """Configuration for sampler-chain.

    Resolution order: init kwargs -> env vars (SC_*) -> .env file -> defaults.

    Fields are divided into groups:
    - **Infrastructure**: random source selection and fallback. NOT
      overridable per session.
    - **Chain**: the stage list and each stage's default parameters.
    - **Logging**: verbosity and in-memory diagnostic mode.
    """

    model_config = SettingsConfigDict(
        env_prefix="SC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Infrastructure (NOT per-session overridable) ---

    random_source_type: str = Field(
        default="system",
        description="Primary random source identifier ('system', 'seeded', or a plugin)",
    )
    random_seed: int | None = Field(
        default=None,
        description="Seed for the 'seeded' random source (None = fresh OS entropy)",
    )
    fallback_mode: str = Field(
        default="system",
        description="Fallback random source: 'error', 'system', 'seeded'",
    )

    # --- Chain layout (per-session overridable) ---

    chain: str = Field(
        default=(
            "repetition,freq_presence,top_k,tail_free,locally_typical,"
            "top_p,temperature,rand_distrib"
        ),
        description="Comma-separated stages, each 'name' or 'name:key=value:...'",
    )

    # --- Penalties ---

    flat_bias: dict[int, float] = Field(
        default_factory=dict,
        description="Token id -> score offset for the flat_bias stage",
    )
    repetition_penalty: float = Field(
        default=1.1,
        description="Repetition penalty factor (1.0 disables)",
    )
    repetition_last_n: int = Field(
        default=64,
        description="History window for the repetition penalty",
    )
    frequency_penalty: float = Field(
        default=0.0,
        description="Score penalty per recent occurrence",
    )
    presence_penalty: float = Field(
        default=0.0,
        description="Score penalty for any recent occurrence",
    )
    freq_presence_last_n: int = Field(
        default=64,
        description="History window for frequency/presence penalties",
    )
    seq_repetition_flat_penalty: float = Field(
        default=0.0,
        description="Flat penalty for continuing a repeated sequence",
    )
    seq_repetition_stacking_penalty: float = Field(
        default=0.0,
        description="Penalty per token of the repeated sequence",
    )
    seq_repetition_min_length: int = Field(
        default=4,
        description="Minimum length of a repeated sequence",
    )
    seq_repetition_tolerance: int = Field(
        default=0,
        description="Wildcard tokens allowed when matching sequences",
    )
    seq_repetition_max_merge: int = Field(
        default=1,
        description="Consecutive tokens one wildcard may cover",
    )
    seq_repetition_last_n: int = Field(
        default=64,
        description="History window for the sequence repetition penalty",
    )

    # --- Distribution shaping ---

    top_k: int = Field(
        default=40,
        description="Entries kept by top_k",
    )
    top_p: float = Field(
        default=0.9,
        description="Nucleus threshold (1.0 disables)",
    )
    tail_free_z: float = Field(
        default=1.0,
        description="Tail-free threshold (1.0 disables)",
    )
    typical_p: float = Field(
        default=1.0,
        description="Locally typical threshold (1.0 disables)",
    )
    min_p: float = Field(
        default=0.05,
        description="Min-p fraction of the top probability (0.0 disables)",
    )
    top_a_a1: float = Field(
        default=0.0,
        description="Top-a coefficient (0.0 disables)",
    )
    top_a_a2: float = Field(
        default=2.0,
        description="Top-a exponent",
    )
    min_keep: int = Field(
        default=1,
        description="Lower bound on entries kept by the shaping stages",
    )

    # --- Scaling and selection ---

    temperature: float = Field(
        default=0.8,
        description="Temperature divisor (> 0)",
    )
    mirostat_tau: float = Field(
        default=5.0,
        description="Mirostat target surprise in bits",
    )
    mirostat_eta: float = Field(
        default=0.1,
        description="Mirostat learning rate",
    )
    mirostat_m: int = Field(
        default=100,
        description="Mirostat V1 entries used for the Zipf estimate",
    )
    mirostat_n_vocab: int = Field(
        default=0,
        description="Mirostat V1 vocabulary size (0 = candidate count)",
    )

    # --- Logging ---

    log_level: str = Field(
        default="summary",
        description="Logging verbosity: 'none', 'summary', 'full'",
    )
    diagnostic_mode: bool = Field(
        default=False,
        description="Store all step records in memory for analysis",
    )


_ALL_FIELDS = frozenset(SamplerChainConfig.model_fields.keys())


def _strip_prefix(key: str) -> str:
    if key.startswith(_PREFIX):
        return key[len(_PREFIX) :]
    return key


def validate_overrides(overrides: dict[str, Any]) -> None:
    """Validate override keys without creating a config.

    Keys may carry an optional ``sc_`` prefix.

    Args:
        overrides: Field names (or ``sc_``-prefixed names) mapped to values.

    Raises:
        ConfigValidationError: If any key is unknown or non-overridable.
    """
    for key in overrides:
        field_name = _strip_prefix(key)
        if field_name not in _ALL_FIELDS:
            raise ConfigValidationError(
                f"Unknown config field: '{key}' (no field '{field_name}' exists)"
            )
        if field_name not in _PER_REQUEST_FIELDS:
            raise ConfigValidationError(
                f"Field '{field_name}' is an infrastructure field and cannot be overridden"
            )


def resolve_config(
    defaults: SamplerChainConfig,
    overrides: dict[str, Any] | None,
) -> SamplerChainConfig:
    """Create a new config instance merging defaults with overrides.

    Args:
        defaults: The base configuration loaded from environment.
        overrides: Per-session field overrides, with or without ``sc_``.

    Returns:
        A new SamplerChainConfig with overrides applied, or *defaults*
        itself when there is nothing to override.

    Raises:
        ConfigValidationError: If any key is unknown or non-overridable,
            or a value fails validation.
    """
    if not overrides:
        return defaults

    validate_overrides(overrides)

    # model_copy(update=...) skips validation, so "100" would stay a str.
    merged = defaults.model_dump()
    merged.update({_strip_prefix(k): v for k, v in overrides.items()})
    try:
        return SamplerChainConfig.model_validate(merged)
    except ValueError as exc:
        raise ConfigValidationError(str(exc)) from exc
