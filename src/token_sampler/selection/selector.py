"""Candidate selection stages.

Each stage takes a CandidateSet and returns a new one, so the stages chain
into the per-policy pipelines used by the Sampler:

    top_k:  select_top_k -> scaled_softmax -> draw
    top_p:  select_top_k -> scaled_softmax -> select_top_p -> normalize -> draw
    greedy: argmax

Ordering contract: after select_top_k a set is sorted by descending score,
ties by ascending vocabulary index. softmax, top-p truncation and the draw
all walk the set in that order.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

from token_sampler.exceptions import InternalSamplingError, InvalidArgumentError
from token_sampler.selection.types import CandidateSet, SelectionResult

if TYPE_CHECKING:
    from token_sampler.streams.base import RandomStream


def _require_candidates(candidates: CandidateSet, stage: str) -> None:
    if len(candidates) == 0:
        raise InternalSamplingError(f"{stage} received an empty candidate set")


class TokenSelector:
    """Stateless selection stages.

    All methods are static. The only state touched is the random stream
    passed to :meth:`draw`, which the caller owns.
    """

    @staticmethod
    def sort_descending(candidates: CandidateSet) -> CandidateSet:
        """Sort by descending score, ties by ascending vocabulary index."""
        # lexsort orders by the last key first.
        order = np.lexsort((candidates.indices, -candidates.scores))
        return candidates.take(order)

    @staticmethod
    def select_top_k(candidates: CandidateSet, k: int) -> CandidateSet:
        """Keep the *k* highest-scoring entries, sorted.

        Ties at the cut-off go to the lowest vocabulary indices. ``k <= 0``
        or ``k >= len(candidates)`` keeps everything.

        Args:
            candidates: Scored entries in any order.
            k: Number of entries to keep.

        Returns:
            The retained entries, sorted descending.

        Raises:
            InternalSamplingError: If *candidates* is empty.
        """
        _require_candidates(candidates, "select_top_k")
        n = len(candidates)
        if 0 < k < n:
            scores = candidates.scores
            indices = candidates.indices
            # O(n) partial selection of the k-th largest score.
            threshold = np.partition(scores, n - k)[n - k]
            above = np.flatnonzero(scores > threshold)
            tied = np.flatnonzero(scores == threshold)
            tied = tied[np.argsort(indices[tied], kind="stable")[: k - above.size]]
            candidates = candidates.take(np.concatenate((above, tied)))
        return TokenSelector.sort_descending(candidates)

    @staticmethod
    def scaled_softmax(
        candidates: CandidateSet,
        temperature: float,
        normalize: bool = True,
    ) -> CandidateSet:
        """Temperature-scaled softmax via shift-by-max.

        Every score is divided by *temperature*; the largest scaled score is
        subtracted before exponentiating so large logits cannot overflow.
        When the largest scaled score is not finite, the weight goes
        uniformly to the entries equal to it.

        Args:
            candidates: Scored entries.
            temperature: Positive divisor.
            normalize: Rescale the weights to sum to 1.

        Returns:
            A set with the same order whose scores are the (normalized)
            exponentiated values.

        Raises:
            InternalSamplingError: If *candidates* is empty.
            InvalidArgumentError: If *temperature* is not positive.
        """
        _require_candidates(candidates, "scaled_softmax")
        if not temperature > 0:
            raise InvalidArgumentError(f"temperature must be > 0, got {temperature}")

        scaled = candidates.scores / temperature
        peak = np.max(scaled)
        if np.isfinite(peak):
            weights = np.exp(scaled - peak)
        else:
            weights = (scaled == peak).astype(np.float64)

        if normalize:
            weights = weights / np.sum(weights)
        return candidates.with_scores(weights)

    @staticmethod
    def normalize(candidates: CandidateSet) -> CandidateSet:
        """Rescale scores so they sum to 1.

        Raises:
            InternalSamplingError: If *candidates* is empty or carries no
                positive finite mass.
        """
        _require_candidates(candidates, "normalize")
        total = candidates.total()
        if not (np.isfinite(total) and total > 0):
            raise InternalSamplingError(f"cannot normalize a candidate set with total mass {total}")
        return candidates.with_scores(candidates.scores / total)

    @staticmethod
    def select_top_p(candidates: CandidateSet, p: float) -> CandidateSet:
        """Keep the shortest leading run whose cumulative probability reaches *p*.

        *candidates* must be sorted and normalized. The first entry is always
        kept. If rounding keeps the running sum below *p* throughout, every
        entry is kept.

        Raises:
            InternalSamplingError: If *candidates* is empty.
        """
        _require_candidates(candidates, "select_top_p")
        cumulative = np.cumsum(candidates.scores)
        reached = np.flatnonzero(cumulative >= p)
        keep = int(reached[0]) + 1 if reached.size else len(candidates)
        return candidates.take(slice(0, keep))

    @staticmethod
    def draw(candidates: CandidateSet, stream: RandomStream) -> SelectionResult:
        """Draw one entry from a sorted, normalized distribution.

        A uniform ``u`` in ``[0, 1)`` is taken from *stream* and the CDF is
        walked in set order; the first entry whose cumulative probability is
        ``>= u`` wins. If rounding leaves the whole CDF below ``u``, the last
        entry wins. A single-entry set is returned without advancing the
        stream.

        Raises:
            InternalSamplingError: If *candidates* is empty.
        """
        _require_candidates(candidates, "draw")
        n = len(candidates)
        if n == 1:
            return SelectionResult(
                token_id=int(candidates.indices[0]),
                token_rank=0,
                token_prob=float(candidates.scores[0]),
                num_candidates=1,
            )

        u = stream.uniform()
        cdf = np.cumsum(candidates.scores)
        rank = int(np.searchsorted(cdf, u, side="left"))
        rank = min(rank, n - 1)
        return SelectionResult(
            token_id=int(candidates.indices[rank]),
            token_rank=rank,
            token_prob=float(candidates.scores[rank]),
            num_candidates=n,
            u_value=u,
        )

    @staticmethod
    def argmax(candidates: CandidateSet) -> SelectionResult:
        """Pick the highest score, lowest vocabulary index among exact ties.

        Raises:
            InternalSamplingError: If *candidates* is empty.
        """
        _require_candidates(candidates, "argmax")
        scores = candidates.scores
        tied = np.flatnonzero(scores == np.max(scores))
        position = int(tied[np.argmin(candidates.indices[tied])])
        return SelectionResult(
            token_id=int(candidates.indices[position]),
            token_rank=0,
            token_prob=1.0,
            num_candidates=len(candidates),
        )
