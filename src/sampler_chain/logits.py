"""Logits container shared by every sampler in a chain.

A :class:`Logits` holds one generation step's candidate set as parallel
numpy arrays (token ids and scores) plus two pieces of derived state:

- ``is_sorted``: entries are in descending score order (ties by ascending id).
- ``is_softmax``: ``probs`` holds a normalized distribution over the
  current entries.

Samplers mutate the container in place. Any mutation that removes, reorders
or rescales entries clears the flags it invalidates, so the next sampler that
needs order or probabilities recomputes them exactly once.

A container is single-use: after a chain has run, it carries that step's
filtering and permutation and must not be fed to the next step.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from sampler_chain.exceptions import InternalSamplerError, InvalidInputError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence


@dataclass(frozen=True, slots=True)
class LogitEntry:
    """Read-only view of a single candidate.

    Attributes:
        token_id: Vocabulary id of the candidate.
        score: Current (possibly penalized or scaled) score.
        prob: Probability if the container is normalized, else ``None``.
    """

    token_id: int
    score: float
    prob: float | None


class Logits:
    """Mutable candidate set for one generation step.

    Use :meth:`from_scores` or :meth:`from_pairs` rather than the constructor
    when building from raw model output; both validate their input.
    """

    __slots__ = ("_probs", "_scores", "_softmax", "_sorted", "_token_ids")

    def __init__(self, token_ids: np.ndarray, scores: np.ndarray) -> None:
        token_ids = np.asarray(token_ids, dtype=np.int64)
        scores = np.asarray(scores, dtype=np.float64)
        _validate(token_ids, scores)
        self._token_ids = token_ids.copy()
        self._scores = scores.copy()
        self._probs: np.ndarray | None = None
        self._sorted = False
        self._softmax = False

    @classmethod
    def from_scores(cls, scores: Iterable[float] | np.ndarray) -> Logits:
        """Build from scores in vocabulary order (token id = position).

        Args:
            scores: One score per token id, starting at id 0.

        Returns:
            A new unsorted container.

        Raises:
            InvalidInputError: If *scores* is empty or has a non-finite value.
        """
        arr = np.asarray(scores if isinstance(scores, np.ndarray) else list(scores))
        if arr.ndim != 1:
            raise InvalidInputError(f"Scores must be 1-D, got shape {arr.shape}")
        return cls(np.arange(arr.shape[0], dtype=np.int64), arr)

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[int, float]]) -> Logits:
        """Build from explicit ``(token_id, score)`` pairs.

        Raises:
            InvalidInputError: If *pairs* is empty, has a non-finite score,
                a negative id, or a repeated id.
        """
        items = list(pairs)
        if not items:
            raise InvalidInputError("Cannot build logits from an empty source")
        ids = np.array([tid for tid, _ in items], dtype=np.int64)
        scores = np.array([score for _, score in items], dtype=np.float64)
        return cls(ids, scores)

    # --- Derived state ---

    @property
    def is_sorted(self) -> bool:
        return self._sorted

    @property
    def is_softmax(self) -> bool:
        return self._softmax

    @property
    def token_ids(self) -> np.ndarray:
        """Read-only view of the token ids in current order."""
        return _readonly(self._token_ids)

    @property
    def scores(self) -> np.ndarray:
        """Read-only view of the scores in current order."""
        return _readonly(self._scores)

    @property
    def probs(self) -> np.ndarray | None:
        """Read-only view of the probabilities, or ``None`` if not normalized."""
        if not self._softmax or self._probs is None:
            return None
        return _readonly(self._probs)

    def __len__(self) -> int:
        return int(self._token_ids.shape[0])

    def __iter__(self) -> Iterator[LogitEntry]:
        probs = self.probs
        for idx in range(len(self)):
            yield LogitEntry(
                token_id=int(self._token_ids[idx]),
                score=float(self._scores[idx]),
                prob=None if probs is None else float(probs[idx]),
            )

    def __repr__(self) -> str:
        return (
            f"Logits(len={len(self)}, sorted={self._sorted}, softmax={self._softmax})"
        )

    def copy(self) -> Logits:
        """Return an independent copy carrying the same flags."""
        clone = Logits.__new__(Logits)
        clone._token_ids = self._token_ids.copy()
        clone._scores = self._scores.copy()
        clone._probs = None if self._probs is None else self._probs.copy()
        clone._sorted = self._sorted
        clone._softmax = self._softmax
        return clone

    def position_of(self, token_id: int) -> int:
        """Return the current position of *token_id*.

        Raises:
            InternalSamplerError: If the id is not among the candidates.
        """
        hits = np.flatnonzero(self._token_ids == token_id)
        if hits.size == 0:
            raise InternalSamplerError(f"Token {token_id} is not in the candidate set")
        return int(hits[0])

    def prob_of(self, token_id: int) -> float:
        """Probability of *token_id*, normalizing first if needed."""
        self.ensure_softmax()
        assert self._probs is not None
        return float(self._probs[self.position_of(token_id)])

    # --- Mutations ---

    def ensure_sorted(self) -> Logits:
        """Sort descending by score, ties by ascending token id.

        Does nothing when the container is already sorted, so repeated calls
        never reshuffle tied entries.
        """
        if self._sorted:
            return self
        order = np.lexsort((self._token_ids, -self._scores))
        self._token_ids = self._token_ids[order]
        self._scores = self._scores[order]
        if self._probs is not None:
            self._probs = self._probs[order]
        self._sorted = True
        return self

    def ensure_softmax(self) -> Logits:
        """Convert the current scores to a probability distribution.

        Numerically stable: shift by the maximum score, exponentiate,
        normalize. Sorts first so the maximum is the leading entry.

        Raises:
            InvalidInputError: If every remaining score is ``-inf``.
        """
        if self._softmax:
            return self
        self.ensure_sorted()
        max_score = self._scores[0]
        if not np.isfinite(max_score):
            raise InvalidInputError("Every candidate has been excluded (all scores are -inf)")
        exp_shifted = np.exp(self._scores - max_score)
        self._probs = exp_shifted / np.sum(exp_shifted)
        self._softmax = True
        return self

    def truncate(self, k: int) -> Logits:
        """Keep only the *k* highest-scoring entries.

        *k* is clamped to the current length.

        Raises:
            InvalidInputError: If ``k <= 0``.
        """
        if k <= 0:
            raise InvalidInputError(f"Truncating to {k} entries would discard entire distribution")
        self.ensure_sorted()
        if k >= len(self):
            return self
        self._token_ids = self._token_ids[:k]
        self._scores = self._scores[:k]
        self._probs = None if self._probs is None else self._probs[:k]
        self._softmax = False
        return self

    def select(self, positions: Sequence[int] | np.ndarray, *, keeps_order: bool = False) -> Logits:
        """Keep the entries at *positions*, in the given order.

        Args:
            positions: Indices into the current entry order.
            keeps_order: Whether the selection preserves descending score
                order. If ``False`` the sorted flag is cleared.

        Raises:
            InternalSamplerError: If *positions* is empty.
        """
        idx = np.asarray(positions, dtype=np.int64)
        if idx.size == 0:
            raise InternalSamplerError("Selection produced an empty candidate set")
        changed = idx.size != len(self) or not np.array_equal(idx, np.arange(len(self)))
        if not changed:
            return self
        self._token_ids = self._token_ids[idx]
        self._scores = self._scores[idx]
        self._probs = None if self._probs is None else self._probs[idx]
        self._sorted = self._sorted and keeps_order
        self._softmax = False
        return self

    def replace_scores(self, scores: np.ndarray, *, keep_order: bool = False) -> Logits:
        """Overwrite the scores in place (same positions).

        Args:
            scores: New scores, one per current entry. ``-inf`` is allowed
                here so that bias stages can hard-exclude tokens.
            keep_order: Set when the transform is monotonic (e.g. dividing by
                a positive temperature) so the sorted flag survives.

        Raises:
            InvalidInputError: If the shape differs or a score is NaN/+inf.
        """
        new = np.asarray(scores, dtype=np.float64)
        if new.shape != self._scores.shape:
            raise InvalidInputError(
                f"Score shape {new.shape} does not match candidate count {self._scores.shape}"
            )
        if np.any(np.isnan(new)) or np.any(new == np.inf):
            raise InvalidInputError("Scores must not be NaN or +inf")
        self._scores = new.copy()
        self._softmax = False
        self._probs = None
        if not keep_order:
            self._sorted = False
        return self


def _validate(token_ids: np.ndarray, scores: np.ndarray) -> None:
    if token_ids.ndim != 1 or scores.ndim != 1:
        raise InvalidInputError("Token ids and scores must be 1-D")
    if token_ids.shape != scores.shape:
        raise InvalidInputError(
            f"Got {token_ids.shape[0]} token ids for {scores.shape[0]} scores"
        )
    if scores.shape[0] == 0:
        raise InvalidInputError("Cannot build logits from an empty source")
    if not np.all(np.isfinite(scores)):
        raise InvalidInputError("Logit scores must all be finite")
    if np.any(token_ids < 0):
        raise InvalidInputError("Token ids must be non-negative")
    if np.unique(token_ids).shape[0] != token_ids.shape[0]:
        raise InvalidInputError("Token ids must be unique within one logits container")


def _readonly(arr: np.ndarray) -> np.ndarray:
    view = arr.view()
    view.flags.writeable = False
    return view
