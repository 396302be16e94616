"""Data types for the selection subsystem."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class ScoredIndex:
    """A score paired with the vocabulary index it came from.

    Attributes:
        score: Logit, or probability once a softmax stage has run.
        index: Position in the original vocabulary.
    """

    score: float
    index: int


class CandidateSet:
    """Parallel arrays of scores and vocabulary indices.

    Both arrays are private copies: nothing a stage does to a candidate set
    can reach the logits buffer it was built from. Stages never mutate a set
    in place; they return a new one.

    Args:
        scores: 1-D float scores.
        indices: 1-D vocabulary indices, same length as *scores*.
    """

    __slots__ = ("_indices", "_scores")

    def __init__(self, scores: np.ndarray, indices: np.ndarray) -> None:
        scores = np.array(scores, dtype=np.float64, copy=True).reshape(-1)
        indices = np.array(indices, dtype=np.int64, copy=True).reshape(-1)
        if scores.shape != indices.shape:
            raise ValueError(
                f"scores and indices must have equal length, got {scores.size} and {indices.size}"
            )
        scores.flags.writeable = False
        indices.flags.writeable = False
        self._scores = scores
        self._indices = indices

    @classmethod
    def from_logits(cls, logits: np.ndarray) -> CandidateSet:
        """Pair every logit with its vocabulary index."""
        logits = np.asarray(logits).reshape(-1)
        return cls(logits, np.arange(logits.size, dtype=np.int64))

    @classmethod
    def from_pairs(cls, pairs: list[ScoredIndex] | list[tuple[float, int]]) -> CandidateSet:
        """Build a set from ``ScoredIndex`` values or ``(score, index)`` tuples."""
        scores = [float(p[0]) if isinstance(p, tuple) else p.score for p in pairs]
        indices = [int(p[1]) if isinstance(p, tuple) else p.index for p in pairs]
        return cls(np.asarray(scores, dtype=np.float64), np.asarray(indices, dtype=np.int64))

    @property
    def scores(self) -> np.ndarray:
        """Read-only score array."""
        return self._scores

    @property
    def indices(self) -> np.ndarray:
        """Read-only vocabulary index array."""
        return self._indices

    def with_scores(self, scores: np.ndarray) -> CandidateSet:
        """Return a set with the same indices and new scores."""
        return CandidateSet(scores, self._indices)

    def take(self, positions: np.ndarray | slice) -> CandidateSet:
        """Return the entries at *positions*, in that order."""
        return CandidateSet(self._scores[positions], self._indices[positions])

    def total(self) -> float:
        """Sum of all scores."""
        return float(np.sum(self._scores))

    def __len__(self) -> int:
        return int(self._scores.size)

    def __getitem__(self, position: int) -> ScoredIndex:
        return ScoredIndex(float(self._scores[position]), int(self._indices[position]))

    def __iter__(self) -> Iterator[ScoredIndex]:
        for score, index in zip(self._scores.tolist(), self._indices.tolist()):
            yield ScoredIndex(score, index)

    def __repr__(self) -> str:
        return f"CandidateSet(size={len(self)})"


@dataclass(frozen=True, slots=True)
class SelectionResult:
    """Outcome of picking one token from a candidate set.

    Attributes:
        token_id: Vocabulary index of the selected token.
        token_rank: Position in the descending candidate order (0 = best).
        token_prob: Probability of the selected token (1.0 for argmax).
        num_candidates: Size of the set the token was picked from.
        u_value: Uniform draw used, or None when no draw was needed.
    """

    token_id: int
    token_rank: int
    token_prob: float
    num_candidates: int
    u_value: float | None = None
