"""Tests for cosine similarity scoring and top-k ranking."""

import pytest

from conftest import unit_vector
from pdf_rag.models.vector_chunk import ChunkSource, VectorChunk
from pdf_rag.retrieval.similarity_ranker import (
    ZERO_MAGNITUDE_SCORE,
    cosine_similarity,
    rank,
    rank_chunks,
)


class TestCosineSimilarity:
    """Test the scoring function."""

    @pytest.mark.parametrize(
        "vector",
        [[1.0, 0.0], [3.0, 4.0], [-2.5, 0.1, 7.0], [1e-8, 2e-8], [123456.0, -654321.0]],
    )
    def test_self_similarity_is_one(self, vector):
        assert cosine_similarity(vector, vector) == pytest.approx(1.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 2.0], [-1.0, -2.0]) == pytest.approx(-1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 5.0]) == pytest.approx(0.0)

    def test_scale_invariant(self):
        assert cosine_similarity([1.0, 2.0], [10.0, 20.0]) == pytest.approx(1.0)

    def test_zero_magnitude_falls_back_to_zero(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 1.0]) == ZERO_MAGNITUDE_SCORE
        assert cosine_similarity([1.0, 1.0], [0.0, 0.0]) == ZERO_MAGNITUDE_SCORE

    def test_dimension_mismatch_rejected(self):
        with pytest.raises(ValueError):
            cosine_similarity([1.0, 0.0], [1.0, 0.0, 0.0])


class TestRank:
    """Test top-k ranking."""

    def test_orders_by_score_descending(self):
        candidates = [("b", unit_vector(0.5)), ("a", unit_vector(0.9)), ("c", unit_vector(0.8))]

        result = rank([1.0, 0.0], candidates, k=3)

        assert [item_id for item_id, _ in result] == ["a", "c", "b"]
        assert [score for _, score in result] == pytest.approx([0.9, 0.8, 0.5])

    def test_never_returns_more_than_k(self):
        candidates = [(i, unit_vector(i / 10)) for i in range(10)]

        assert len(rank([1.0, 0.0], candidates, k=4)) == 4

    def test_never_returns_more_than_candidates(self):
        candidates = [("only", [1.0, 1.0])]

        assert len(rank([1.0, 0.0], candidates, k=10)) == 1

    def test_k_zero_returns_nothing(self):
        assert rank([1.0, 0.0], [("a", [1.0, 0.0])], k=0) == []

    def test_no_candidates_returns_nothing(self):
        assert rank([1.0, 0.0], [], k=3) == []

    def test_negative_k_rejected(self):
        with pytest.raises(ValueError):
            rank([1.0, 0.0], [("a", [1.0, 0.0])], k=-1)

    def test_ties_keep_input_order(self):
        candidates = [("first", [2.0, 0.0]), ("other", [0.0, 1.0]), ("second", [5.0, 0.0]), ("third", [1.0, 0.0])]

        result = rank([1.0, 0.0], candidates, k=3)

        assert [item_id for item_id, _ in result] == ["first", "second", "third"]

    def test_repeated_calls_are_identical(self):
        candidates = [(i, [float(i % 3), 1.0]) for i in range(12)]

        first = rank([1.0, 1.0], candidates, k=7)

        for _ in range(5):
            assert rank([1.0, 1.0], candidates, k=7) == first

    def test_zero_magnitude_candidate_kept_with_zero_score(self):
        candidates = [("zero", [0.0, 0.0]), ("negative", [-1.0, 0.0])]

        result = rank([1.0, 0.0], candidates, k=2)

        assert result == [("zero", 0.0), ("negative", pytest.approx(-1.0))]

    def test_zero_magnitude_query_scores_everything_zero(self):
        result = rank([0.0, 0.0], [("a", [1.0, 0.0]), ("b", [0.0, 1.0])], k=2)

        assert result == [("a", 0.0), ("b", 0.0)]

    def test_dimension_mismatch_rejected(self):
        with pytest.raises(ValueError):
            rank([1.0, 0.0], [("a", [1.0, 0.0]), ("b", [1.0, 0.0, 0.0])], k=2)

    def test_scores_stay_within_bounds(self):
        candidates = [(i, [float(i) - 5.0, 3.0 - i, 0.5 * i]) for i in range(11)]

        for _, score in rank([0.3, -0.7, 2.0], candidates, k=11):
            assert -1.0 <= score <= 1.0


class TestRankChunks:
    """Test ranking of stored chunks."""

    def test_returns_chunks_with_scores(self):
        chunks = [
            VectorChunk(text=name, embedding=unit_vector(similarity), source=ChunkSource("f", "doc.pdf", page))
            for page, (name, similarity) in enumerate([("A", 0.9), ("B", 0.5), ("C", 0.8)], start=1)
        ]

        ranked = rank_chunks([1.0, 0.0], chunks, k=2)

        assert [item.chunk.text for item in ranked] == ["A", "C"]
        assert [item.score for item in ranked] == pytest.approx([0.9, 0.8])
