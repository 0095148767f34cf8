"""
Test suite for Reciprocal Rank Fusion.

System role: Verification of hybrid ranking
"""

import pytest

from notegraph.core.rrf import (
    SearchSource,
    dedupe_preserving_order,
    reciprocal_rank_fusion,
    rrf_contribution,
)


class TestReciprocalRankFusion:
    """Test suite for reciprocal_rank_fusion()."""

    def test_should_merge_overlapping_rankings(self) -> None:
        """
        Test the worked example: lexical [A, B], semantic [C, A].

        A = 1/61 + 1/62, C = 1/61, B = 1/62.
        """
        # Act
        merged = reciprocal_rank_fusion(["A", "B"], ["C", "A"], k=60)

        # Assert
        assert [entry.id for entry in merged] == ["A", "C", "B"]
        assert merged[0].score == pytest.approx(0.03252, abs=1e-5)
        assert merged[1].score == pytest.approx(0.01639, abs=1e-5)
        assert merged[2].score == pytest.approx(0.01613, abs=1e-5)
        assert [entry.source for entry in merged] == [
            SearchSource.HYBRID,
            SearchSource.SEMANTIC,
            SearchSource.LEXICAL,
        ]

    def test_hybrid_score_should_be_sum_of_contributions(self) -> None:
        # Act
        merged = reciprocal_rank_fusion(["X", "Y", "Z"], ["Z"], k=60)
        z = next(entry for entry in merged if entry.id == "Z")

        # Assert
        assert z.score == pytest.approx(rrf_contribution(3) + rrf_contribution(1))
        assert z.contributions == [rrf_contribution(3), rrf_contribution(1)]

    def test_contribution_should_decrease_with_rank(self) -> None:
        scores = [rrf_contribution(rank) for rank in range(1, 20)]
        assert scores == sorted(scores, reverse=True)

    def test_ties_should_break_by_id(self) -> None:
        """Test equal scores fall back to ascending id order."""
        # Act
        merged = reciprocal_rank_fusion(["B"], ["A"], k=60)

        # Assert
        assert [entry.id for entry in merged] == ["A", "B"]

    def test_should_truncate_to_limit(self) -> None:
        merged = reciprocal_rank_fusion(["A", "B", "C"], ["D", "E"], limit=2)
        assert len(merged) == 2

    def test_empty_inputs_should_yield_empty_list(self) -> None:
        assert reciprocal_rank_fusion([], []) == []


class TestDedupePreservingOrder:
    """Test suite for dedupe_preserving_order()."""

    def test_should_keep_first_occurrence(self) -> None:
        assert dedupe_preserving_order(["A", "B", "A", "C", "B"]) == ["A", "B", "C"]
