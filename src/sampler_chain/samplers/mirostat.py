"""Mirostat adaptive-perplexity samplers.

Reference: Basu et al., "Mirostat: A Neural Text Decoding Algorithm that
Directly Controls Perplexity" (arXiv:2007.14966).

Both variants keep a running target ``mu`` (initially ``2 * tau``) across
calls. After each draw ``mu`` moves by ``eta`` times the error between the
chosen token's surprisal and ``tau``, so the instance is stateful and
should serve a single generation stream.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

import numpy as np

from sampler_chain.exceptions import InvalidInputError
from sampler_chain.samplers.base import Sampler
from sampler_chain.samplers.options import SamplerOption
from sampler_chain.samplers.registry import SamplerRegistry

if TYPE_CHECKING:
    from sampler_chain.config import SamplerChainConfig
    from sampler_chain.logits import Logits
    from sampler_chain.resources import SamplerResources

logger = logging.getLogger("sampler_chain")

_EPS_LIMIT = 1e-9


def estimate_zipf_exponent(probs: np.ndarray, m: int) -> float:
    """Least-squares estimate of the Zipf exponent of sorted *probs*.

    Uses the log ratios of the first ``m`` adjacent probabilities against
    the log ratios of their ranks. With ``m == 2`` this reduces to
    ``ln(p0 / p1) / ln 2``.

    Returns:
        The estimate, or ``0.0`` when fewer than two positive
        probabilities are available.
    """
    head = probs[: max(m, 2)]
    head = head[head > 0]
    if head.size < 2:
        return 0.0
    ranks = np.arange(head.size - 1, dtype=np.float64)
    t = np.log((ranks + 2.0) / (ranks + 1.0))
    b = np.log(head[:-1] / head[1:])
    return float(np.sum(t * b) / np.sum(t * t))


def mirostat_k(s_hat: float, mu: float, n_vocab: int, size: int) -> int:
    """Number of candidates to keep for Mirostat V1, clamped to ``[1, size]``."""
    eps = s_hat - 1.0
    v = np.float64(n_vocab)
    with np.errstate(all="ignore"):
        if abs(eps) < _EPS_LIMIT:
            factor = 1.0 / np.log(v)
        else:
            factor = eps / (1.0 - v ** (-eps))
        base = factor * (np.exp2(np.float64(mu)) - 1.0)
        k = np.power(base, 1.0 / s_hat) if s_hat > 0 else np.float64(np.inf)
    if np.isnan(k):
        return 1
    if not np.isfinite(k):
        return size
    return int(min(max(math.floor(k), 1), size))


class _MirostatBase(Sampler):
    """Shared state handling for both Mirostat variants."""

    def __init__(self, tau: float, eta: float) -> None:
        self.tau = float(tau)
        self.eta = float(eta)
        self.mu = 2.0 * self.tau
        self._validate()
        self._token_id: int | None = None

    @property
    def sampled_token_id(self) -> int | None:
        return self._token_id

    def reset(self) -> None:
        """Restore ``mu`` to ``2 * tau``."""
        self.mu = 2.0 * self.tau

    def _validate(self) -> None:
        if not (self.tau >= 0.0 and np.isfinite(self.tau)):
            raise InvalidInputError(f"Mirostat tau must be finite and >= 0, got {self.tau}")
        if not (self.eta >= 0.0 and np.isfinite(self.eta)):
            raise InvalidInputError(f"Mirostat eta must be finite and >= 0, got {self.eta}")
        if np.isnan(self.mu):
            raise InvalidInputError("Mirostat mu must not be NaN")

    def _post_set_option(self, key: str) -> None:
        if key == "tau":
            self.reset()

    def _draw_and_update(self, res: SamplerResources, logits: Logits) -> None:
        """Draw from the truncated, renormalized *logits* and adjust ``mu``."""
        logits.ensure_softmax()
        probs = logits.probs
        index = res.with_rng(lambda rng: rng.weighted_index(probs))
        self._token_id = int(logits.token_ids[index])
        surprise = -math.log2(float(probs[index]))
        self.mu -= self.eta * (surprise - self.tau)
        logger.debug(
            "%s: token=%d surprise=%.4f mu=%.4f", self.name, self._token_id, surprise, self.mu
        )


@SamplerRegistry.register("mirostat1")
class SampleMirostat1(_MirostatBase):
    """Mirostat V1: truncate to ``k`` tokens derived from a Zipf estimate.

    Args:
        tau: Target surprise in bits.
        eta: Learning rate for ``mu``.
        m: Number of top probabilities used to estimate the Zipf exponent.
        n_vocab: Vocabulary size used in the ``k`` formula; ``0`` uses the
            current candidate count.
    """

    name = "mirostat1"
    description = "Mirostat V1 adaptive sampling"
    options = (
        SamplerOption("tau", "float", "Target surprise in bits"),
        SamplerOption("mu", "float", "Current surprise target (reset to 2 * tau)"),
        SamplerOption("eta", "float", "Learning rate"),
        SamplerOption("m", "uint", "Entries used for the Zipf estimate (>= 2)"),
        SamplerOption("n_vocab", "uint", "Vocabulary size (0 = candidate count)"),
    )

    def __init__(self, tau: float = 5.0, eta: float = 0.1, m: int = 100, n_vocab: int = 0) -> None:
        self.m = int(m)
        self.n_vocab = int(n_vocab)
        super().__init__(tau, eta)

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleMirostat1:
        return cls(
            config.mirostat_tau,
            config.mirostat_eta,
            config.mirostat_m,
            config.mirostat_n_vocab,
        )

    def _validate(self) -> None:
        super()._validate()
        if self.m < 2:
            raise InvalidInputError(f"Mirostat m must be >= 2, got {self.m}")
        if self.n_vocab < 0:
            raise InvalidInputError(f"n_vocab must be >= 0, got {self.n_vocab}")

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        self._token_id = None
        logits.ensure_softmax()
        if len(logits) > 1:
            s_hat = estimate_zipf_exponent(logits.probs, self.m)
            n_vocab = self.n_vocab or len(logits)
            logits.truncate(mirostat_k(s_hat, self.mu, n_vocab, len(logits)))
        self._draw_and_update(res, logits)
        return logits


@SamplerRegistry.register("mirostat2")
class SampleMirostat2(_MirostatBase):
    """Mirostat V2: keep tokens whose surprise does not exceed ``mu``."""

    name = "mirostat2"
    description = "Mirostat V2 adaptive sampling"
    options = (
        SamplerOption("tau", "float", "Target surprise in bits"),
        SamplerOption("mu", "float", "Current surprise target (reset to 2 * tau)"),
        SamplerOption("eta", "float", "Learning rate"),
    )

    def __init__(self, tau: float = 5.0, eta: float = 0.1) -> None:
        super().__init__(tau, eta)

    @classmethod
    def from_config(cls, config: SamplerChainConfig) -> SampleMirostat2:
        return cls(config.mirostat_tau, config.mirostat_eta)

    def sample(self, res: SamplerResources, logits: Logits) -> Logits:
        self._token_id = None
        logits.ensure_softmax()
        with np.errstate(divide="ignore"):
            surprise = -np.log2(logits.probs)
        above = np.flatnonzero(surprise > self.mu)
        above = above[above >= 1]
        if above.size:
            logits.truncate(int(above[0]))
        self._draw_and_update(res, logits)
        return logits
