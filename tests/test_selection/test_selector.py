"""Tests for the TokenSelector stages."""

from __future__ import annotations

import numpy as np
import pytest

from token_sampler.exceptions import InternalSamplingError, InvalidArgumentError
from token_sampler.selection.selector import TokenSelector
from token_sampler.selection.types import CandidateSet
from token_sampler.streams.pcg64 import PCG64Stream


@pytest.fixture()
def selector() -> TokenSelector:
    """Default TokenSelector."""
    return TokenSelector()


@pytest.fixture()
def empty() -> CandidateSet:
    """Candidate set with no entries."""
    return CandidateSet(np.array([]), np.array([], dtype=np.int64))


class TestSelectTopK:
    """Tests for partial top-k selection."""

    def test_keeps_k_largest_sorted(self, selector: TokenSelector) -> None:
        """The k largest scores come back in descending order."""
        cands = CandidateSet.from_logits(np.array([0.1, 5.0, 3.0, 4.0, -1.0]))
        result = selector.select_top_k(cands, 3)
        assert result.indices.tolist() == [1, 3, 2]
        assert result.scores.tolist() == [5.0, 4.0, 3.0]

    def test_ties_at_cutoff_prefer_lowest_index(
        self, selector: TokenSelector, example_logits: np.ndarray
    ) -> None:
        """Tied maxima are both kept, lower index first."""
        result = selector.select_top_k(CandidateSet.from_logits(example_logits), 2)
        assert result.indices.tolist() == [1, 4]

    def test_ties_straddling_cutoff(self, selector: TokenSelector) -> None:
        """Only the lowest tied indices fill the remaining slots."""
        logits = np.array([2.0, 7.0, 2.0, 2.0, 9.0, 2.0])
        result = selector.select_top_k(CandidateSet.from_logits(logits), 4)
        assert result.indices.tolist() == [4, 1, 0, 2]

    @pytest.mark.parametrize("k", [0, -3, 5, 100])
    def test_non_restricting_k_keeps_everything_sorted(
        self, selector: TokenSelector, example_logits: np.ndarray, k: int
    ) -> None:
        """k <= 0 or k >= n keeps and sorts every entry."""
        result = selector.select_top_k(CandidateSet.from_logits(example_logits), k)
        assert result.indices.tolist() == [1, 4, 2, 0, 3]

    def test_unsorted_input_indices(self, selector: TokenSelector) -> None:
        """Tie-break uses vocabulary index, not position in the set."""
        cands = CandidateSet.from_pairs([(1.0, 9), (1.0, 2), (0.0, 0), (1.0, 5)])
        result = selector.select_top_k(cands, 2)
        assert result.indices.tolist() == [2, 5]

    def test_matches_full_sort_on_large_vocab(self, selector: TokenSelector) -> None:
        """Partial selection agrees with a full lexsort."""
        rng = np.random.default_rng(7)
        # Rounded values force plenty of ties.
        logits = np.round(rng.standard_normal(5000), 1)
        result = selector.select_top_k(CandidateSet.from_logits(logits), 50)
        expected = np.lexsort((np.arange(logits.size), -logits))[:50]
        assert result.indices.tolist() == expected.tolist()

    def test_handles_negative_infinity(self, selector: TokenSelector) -> None:
        """-inf entries sort last and can still be kept."""
        logits = np.array([-np.inf, 1.0, -np.inf, 0.0])
        result = selector.select_top_k(CandidateSet.from_logits(logits), 3)
        assert result.indices.tolist() == [1, 3, 0]

    def test_empty_raises(self, selector: TokenSelector, empty: CandidateSet) -> None:
        """An empty set raises InternalSamplingError."""
        with pytest.raises(InternalSamplingError, match="select_top_k"):
            selector.select_top_k(empty, 2)


class TestScaledSoftmax:
    """Tests for temperature-scaled, max-shifted softmax."""

    def test_normalized_sums_to_one(self, selector: TokenSelector) -> None:
        """Normalized weights sum to 1 across temperatures."""
        rng = np.random.default_rng(0)
        for temperature in (0.05, 0.7, 1.0, 3.0, 50.0):
            cands = selector.sort_descending(CandidateSet.from_logits(rng.normal(size=257) * 8))
            probs = selector.scaled_softmax(cands, temperature, normalize=True)
            assert abs(probs.total() - 1.0) < 1e-5

    def test_unnormalized_peak_is_one(self, selector: TokenSelector) -> None:
        """Without normalization the max entry maps to exp(0) = 1."""
        cands = selector.sort_descending(CandidateSet.from_logits(np.array([1.0, 3.0, 2.0])))
        weights = selector.scaled_softmax(cands, 1.0, normalize=False)
        assert weights.scores[0] == pytest.approx(1.0)
        assert weights.scores[1] == pytest.approx(np.exp(-1.0))
        assert weights.scores[2] == pytest.approx(np.exp(-2.0))

    def test_large_logits_do_not_overflow(self, selector: TokenSelector) -> None:
        """Huge logits stay finite."""
        cands = CandidateSet.from_logits(np.array([1e4, 1e4 - 1.0, -1e4]))
        probs = selector.scaled_softmax(cands, 1.0)
        assert np.all(np.isfinite(probs.scores))
        assert probs.scores[0] == pytest.approx(1.0 / (1.0 + np.exp(-1.0)))

    def test_temperature_sharpens(self, selector: TokenSelector) -> None:
        """Lower temperature moves mass to the top entry."""
        cands = CandidateSet.from_logits(np.array([2.0, 1.0]))
        cold = selector.scaled_softmax(cands, 0.1)
        hot = selector.scaled_softmax(cands, 10.0)
        assert cold.scores[0] > hot.scores[0] > 0.5

    def test_preserves_order_and_indices(self, selector: TokenSelector) -> None:
        """Entries keep their order and vocabulary indices."""
        cands = CandidateSet.from_pairs([(3.0, 4), (2.0, 0), (1.0, 7)])
        probs = selector.scaled_softmax(cands, 1.0)
        assert probs.indices.tolist() == [4, 0, 7]

    def test_single_entry_is_certain(self, selector: TokenSelector) -> None:
        """A lone entry gets probability 1."""
        probs = selector.scaled_softmax(CandidateSet.from_pairs([(-42.0, 3)]), 0.3)
        assert probs.scores.tolist() == [1.0]

    def test_all_negative_infinity_is_uniform(self, selector: TokenSelector) -> None:
        """All -inf spreads mass uniformly."""
        probs = selector.scaled_softmax(CandidateSet.from_logits(np.full(4, -np.inf)), 1.0)
        assert probs.scores.tolist() == [0.25, 0.25, 0.25, 0.25]

    def test_positive_infinity_takes_all_mass(self, selector: TokenSelector) -> None:
        """A +inf entry takes all the mass."""
        probs = selector.scaled_softmax(CandidateSet.from_logits(np.array([0.0, np.inf, 5.0])), 1.0)
        assert probs.scores.tolist() == [0.0, 1.0, 0.0]

    def test_non_positive_temperature_raises(self, selector: TokenSelector) -> None:
        """Zero temperature raises InvalidArgumentError."""
        with pytest.raises(InvalidArgumentError):
            selector.scaled_softmax(CandidateSet.from_logits(np.array([1.0])), 0.0)

    def test_empty_raises(self, selector: TokenSelector, empty: CandidateSet) -> None:
        """An empty set raises InternalSamplingError."""
        with pytest.raises(InternalSamplingError, match="scaled_softmax"):
            selector.scaled_softmax(empty, 1.0)


class TestSelectTopP:
    """Tests for nucleus truncation."""

    def _distribution(self, selector: TokenSelector, logits: np.ndarray) -> CandidateSet:
        return selector.scaled_softmax(selector.select_top_k(CandidateSet.from_logits(logits), 0), 1.0)

    def test_example_keeps_three(self, selector: TokenSelector, example_logits: np.ndarray) -> None:
        """p=0.9 on the example keeps indices 1, 4 and 2."""
        probs = self._distribution(selector, example_logits)
        kept = selector.select_top_p(probs, 0.9)
        assert kept.indices.tolist() == [1, 4, 2]

    def test_minimum_one_retained(self, selector: TokenSelector, example_logits: np.ndarray) -> None:
        """Small p still keeps the first entry."""
        probs = self._distribution(selector, example_logits)
        for p in (1e-9, 0.0, 0.1):
            assert len(selector.select_top_p(probs, p)) == 1

    def test_p_one_keeps_all(self, selector: TokenSelector, example_logits: np.ndarray) -> None:
        """p=1 keeps every entry."""
        probs = self._distribution(selector, example_logits)
        assert len(selector.select_top_p(probs, 1.0)) == 5

    def test_rounding_shortfall_keeps_all(self, selector: TokenSelector) -> None:
        """A sum that never reaches p keeps everything."""
        probs = CandidateSet.from_pairs([(0.5, 0), (0.4999999, 1)])
        assert len(selector.select_top_p(probs, 1.0)) == 2

    def test_monotonic_in_p(self, selector: TokenSelector) -> None:
        """The kept prefix shrinks as p falls."""
        rng = np.random.default_rng(11)
        probs = self._distribution(selector, rng.normal(size=300) * 3)
        sizes = [len(selector.select_top_p(probs, p)) for p in np.linspace(1.0, 0.01, 40)]
        assert sizes == sorted(sizes, reverse=True)

    def test_empty_raises(self, selector: TokenSelector, empty: CandidateSet) -> None:
        """An empty set raises InternalSamplingError."""
        with pytest.raises(InternalSamplingError, match="select_top_p"):
            selector.select_top_p(empty, 0.5)


class TestNormalize:
    """Tests for renormalization."""

    def test_rescales(self, selector: TokenSelector) -> None:
        """Scores are divided by their total."""
        result = selector.normalize(CandidateSet.from_pairs([(0.3, 0), (0.1, 1)]))
        assert result.scores.tolist() == pytest.approx([0.75, 0.25])

    def test_zero_mass_raises(self, selector: TokenSelector) -> None:
        """A zero total raises InternalSamplingError."""
        with pytest.raises(InternalSamplingError):
            selector.normalize(CandidateSet.from_pairs([(0.0, 0)]))


class TestDraw:
    """Tests for CDF draws."""

    def test_draw_walks_cdf(self, selector: TokenSelector, fixed_stream: type) -> None:
        """Each draw picks the first entry whose CDF reaches u."""
        probs = CandidateSet.from_pairs([(0.5, 1), (0.5, 4)])
        stream = fixed_stream([0.2, 0.7, 0.5])
        assert selector.draw(probs, stream).token_id == 1
        assert selector.draw(probs, stream).token_id == 4
        # The first cumulative value meeting the draw wins.
        assert selector.draw(probs, stream).token_id == 1

    def test_rounding_shortfall_returns_last(
        self, selector: TokenSelector, fixed_stream: type
    ) -> None:
        """A CDF ending below u returns the last entry."""
        probs = CandidateSet.from_pairs([(0.3, 8), (0.3, 2), (0.3, 5)])
        result = selector.draw(probs, fixed_stream([0.95]))
        assert result.token_id == 5
        assert result.token_rank == 2

    def test_result_fields(self, selector: TokenSelector, fixed_stream: type) -> None:
        """The result reports id, rank, probability and u."""
        probs = CandidateSet.from_pairs([(0.6, 3), (0.3, 0), (0.1, 9)])
        result = selector.draw(probs, fixed_stream([0.75]))
        assert result.token_id == 0
        assert result.token_rank == 1
        assert result.token_prob == pytest.approx(0.3)
        assert result.num_candidates == 3
        assert result.u_value == 0.75

    def test_single_candidate_skips_stream(self, selector: TokenSelector) -> None:
        """A single candidate is returned without a draw."""
        stream = PCG64Stream(seed=1)
        result = selector.draw(CandidateSet.from_pairs([(1.0, 17)]), stream)
        assert result.token_id == 17
        assert result.u_value is None
        assert stream.draws == 0

    def test_each_draw_advances_stream_once(self, selector: TokenSelector) -> None:
        """Every draw consumes one uniform."""
        stream = PCG64Stream(seed=1)
        probs = CandidateSet.from_pairs([(0.5, 0), (0.5, 1)])
        for _ in range(5):
            selector.draw(probs, stream)
        assert stream.draws == 5

    def test_empty_raises(self, selector: TokenSelector, empty: CandidateSet) -> None:
        """An empty set raises InternalSamplingError."""
        with pytest.raises(InternalSamplingError, match="draw"):
            selector.draw(empty, PCG64Stream())


class TestArgmax:
    """Tests for greedy selection."""

    def test_picks_maximum(self, selector: TokenSelector) -> None:
        """The highest score wins with probability 1."""
        result = selector.argmax(CandidateSet.from_logits(np.array([0.0, -1.0, 7.5, 2.0])))
        assert result.token_id == 2
        assert result.token_prob == 1.0

    def test_ties_pick_lowest_index(self, selector: TokenSelector, example_logits: np.ndarray) -> None:
        """Tied maxima resolve to the lowest index."""
        assert selector.argmax(CandidateSet.from_logits(example_logits)).token_id == 1

    def test_ties_in_reordered_set(self, selector: TokenSelector) -> None:
        """Ties use vocabulary index, not set position."""
        cands = CandidateSet.from_pairs([(2.0, 6), (2.0, 3), (1.0, 0)])
        assert selector.argmax(cands).token_id == 3

    def test_empty_raises(self, selector: TokenSelector, empty: CandidateSet) -> None:
        """An empty set raises InternalSamplingError."""
        with pytest.raises(InternalSamplingError, match="argmax"):
            selector.argmax(empty)
