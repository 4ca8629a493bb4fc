"""Caller-side helper that drives a chain over successive generation steps.

The chain itself never records its output. A :class:`SamplingSession` does
what a generation loop would otherwise do by hand: build a fresh
:class:`Logits` from each step's model output, run the chain, append the
chosen token to the history, and log a :class:`ChainSamplingRecord`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import numpy as np

from sampler_chain.chain import SamplerChain
from sampler_chain.config import SamplerChainConfig, resolve_config
from sampler_chain.factory import build_chain, build_resources
from sampler_chain.logging.logger import SamplingLogger
from sampler_chain.logging.types import ChainSamplingRecord
from sampler_chain.logits import Logits

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sampler_chain.resources import SamplerResources

logger = logging.getLogger("sampler_chain")


def _find_mirostat_mu(chain: SamplerChain) -> float | None:
    """``mu`` of the first Mirostat stage, searching nested chains in order."""
    for sampler in chain:
        if isinstance(sampler, SamplerChain):
            mu = _find_mirostat_mu(sampler)
        else:
            mu = getattr(sampler, "mu", None)
        if mu is not None:
            return float(mu)
    return None


def _to_logits(model_output: Any) -> Logits:
    if isinstance(model_output, Logits):
        return model_output.copy()
    if isinstance(model_output, Mapping):
        return Logits.from_pairs(model_output.items())
    return Logits.from_scores(model_output)


class SamplingSession:
    """One generation stream: a chain, its resources and a logger.

    Args:
        config: Base configuration. ``None`` loads it from the environment.
        chain: Chain to run. ``None`` builds one from ``config.chain``.
        resources: Resource set. ``None`` builds one with the configured
            random source and an empty history.
        auto_append: Append each selected token to the history.
        overrides: Per-session config overrides, see
            :func:`~sampler_chain.config.resolve_config`.
        last_tokens: Initial history, used only when *resources* is ``None``.
    """

    def __init__(
        self,
        config: SamplerChainConfig | None = None,
        chain: SamplerChain | None = None,
        resources: SamplerResources | None = None,
        auto_append: bool = True,
        *,
        overrides: dict[str, Any] | None = None,
        last_tokens: Iterable[int] | None = None,
    ) -> None:
        base = config if config is not None else SamplerChainConfig()
        self._config = resolve_config(base, overrides)
        self._chain = chain if chain is not None else build_chain(self._config)
        self._resources = (
            resources if resources is not None else build_resources(self._config, last_tokens)
        )
        self._auto_append = auto_append
        self._logger = SamplingLogger(self._config)
        self._steps = 0

        logger.info(
            "SamplingSession initialized: stages=%s, resources=%r",
            ",".join(s.name for s in self._chain),
            self._resources,
        )

    @property
    def config(self) -> SamplerChainConfig:
        return self._config

    @property
    def chain(self) -> SamplerChain:
        return self._chain

    @property
    def resources(self) -> SamplerResources:
        return self._resources

    @property
    def sampling_logger(self) -> SamplingLogger:
        return self._logger

    @property
    def steps(self) -> int:
        """Number of completed :meth:`step` calls."""
        return self._steps

    def step(self, model_output: Any) -> int | None:
        """Sample one token from this step's model output.

        Args:
            model_output: A 1-D array or sequence of scores (token id =
                position), a mapping of token id to score, or a
                :class:`Logits` (copied, never mutated).

        Returns:
            The selected token id, or ``None`` if no stage selected one.

        Raises:
            SamplerChainError: Whatever the chain raised; the history is
                left unchanged.
        """
        t_start_ns = time.perf_counter_ns()
        logits = _to_logits(model_output)
        candidates_in = len(logits)

        token_id = self._chain.sample_token(self._resources, logits)

        if token_id is not None and self._auto_append and self._resources.has_last_tokens:
            self._resources.with_last_tokens_mut(lambda tokens: tokens.append(token_id))
        self._steps += 1

        t_end_ns = time.perf_counter_ns()
        self._logger.log_step(
            ChainSamplingRecord(
                timestamp_ns=time.time_ns(),
                total_sampling_ms=(t_end_ns - t_start_ns) / 1_000_000,
                stage_names=tuple(s.name for s in self._chain),
                candidates_in=candidates_in,
                candidates_out=len(logits),
                token_id=token_id,
                token_prob=self._selected_prob(logits, token_id),
                mirostat_mu=self._mirostat_mu(),
            )
        )
        return token_id

    @staticmethod
    def _selected_prob(logits: Logits, token_id: int | None) -> float | None:
        if token_id is None or token_id not in logits.token_ids:
            return None
        if not np.any(np.isfinite(logits.scores)):
            return None
        return logits.prob_of(token_id)

    def _mirostat_mu(self) -> float | None:
        return _find_mirostat_mu(self._chain)

    def reset(self, clear_history: bool = True) -> None:
        """Reset stateful stages and, optionally, the token history."""
        self._chain.reset()
        if clear_history and self._resources.has_last_tokens:
            self._resources.with_last_tokens_mut(lambda tokens: tokens.clear())
        self._steps = 0

    def close(self) -> None:
        """Release the resource set (closes the random source)."""
        self._resources.close()

    def __enter__(self) -> SamplingSession:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
