"""Diagnostic logger for per-step sampling events.

Uses the standard ``logging`` module with the ``"sampler_chain"`` logger.
Supports three verbosity levels and an in-memory diagnostic mode for
post-hoc analysis.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sampler_chain.config import SamplerChainConfig
    from sampler_chain.logging.types import ChainSamplingRecord

logger = logging.getLogger("sampler_chain")


class SamplingLogger:
    """Per-step diagnostic logger.

    Log levels:
        ``"none"``: No logging output. Records are still stored if
        ``diagnostic_mode=True``.

        ``"summary"``: One line per step with the selected token, its
        probability, candidate counts and timing.

        ``"full"``: Full JSON dump of all record fields.
    """

    def __init__(self, config: SamplerChainConfig) -> None:
        self._log_level = config.log_level
        self._diagnostic_mode = config.diagnostic_mode
        self._records: list[ChainSamplingRecord] = []

    def log_step(self, record: ChainSamplingRecord) -> None:
        """Log a single chain run.

        Args:
            record: Immutable record of the run.
        """
        if self._diagnostic_mode:
            self._records.append(record)

        if self._log_level == "none":
            return

        if self._log_level == "summary":
            logger.info(
                "token=%s prob=%s candidates=%d->%d%s total=%.2fms",
                record.token_id,
                "n/a" if record.token_prob is None else f"{record.token_prob:.4f}",
                record.candidates_in,
                record.candidates_out,
                "" if record.mirostat_mu is None else f" mu={record.mirostat_mu:.3f}",
                record.total_sampling_ms,
            )
        elif self._log_level == "full":
            logger.info("sampling_record: %s", json.dumps(asdict(record), default=str))

    def get_diagnostic_data(self) -> list[ChainSamplingRecord]:
        """Return all stored records (requires ``diagnostic_mode=True``)."""
        return list(self._records)

    def get_summary_stats(self) -> dict[str, Any]:
        """Compute summary statistics over all stored records.

        Returns:
            Dictionary with aggregate stats, or empty dict if no records.
        """
        if not self._records:
            return {}

        n = len(self._records)
        selected = [r for r in self._records if r.token_id is not None]
        probs = [r.token_prob for r in selected if r.token_prob is not None]
        totals = [r.total_sampling_ms for r in self._records]
        kept = [r.candidates_out for r in self._records]
        return {
            "total_steps": n,
            "selected_count": len(selected),
            "mean_prob": sum(probs) / len(probs) if probs else None,
            "mean_candidates_out": sum(kept) / n,
            "mean_total_ms": sum(totals) / n,
            "max_total_ms": max(totals),
        }
