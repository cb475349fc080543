"""Retrieval module: similarity scoring and top-k ranking."""

from pdf_rag.retrieval.similarity_ranker import (
    ZERO_MAGNITUDE_SCORE,
    cosine_similarity,
    rank,
    rank_chunks,
    score_candidates,
)

__all__ = [
    "ZERO_MAGNITUDE_SCORE",
    "cosine_similarity",
    "rank",
    "rank_chunks",
    "score_candidates",
]
