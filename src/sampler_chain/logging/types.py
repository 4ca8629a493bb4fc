"""Data types for the diagnostic logging subsystem."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ChainSamplingRecord:
    """Immutable record of one chain run.

    Attributes:
        timestamp_ns: Wall-clock time of sampling (nanoseconds since epoch).
        total_sampling_ms: Time spent running the chain (milliseconds).
        stage_names: Names of the chain's stages, in order.
        candidates_in: Candidate count before the chain ran.
        candidates_out: Candidate count after the chain ran.
        token_id: Selected token, or ``None`` if no stage selected.
        token_prob: Probability of the selected token in the final
            distribution, or ``None`` when unavailable.
        mirostat_mu: Current ``mu`` of the first Mirostat stage, if any.
    """

    # Timing
    timestamp_ns: int
    total_sampling_ms: float

    # Chain
    stage_names: tuple[str, ...]
    candidates_in: int
    candidates_out: int

    # Selection
    token_id: int | None
    token_prob: float | None
    mirostat_mu: float | None = None
