"""Brute-force cosine similarity ranking.

Every candidate is scored against the query in one linear scan
(O(N·D) for scoring, O(N log N) for sorting). There is no index; the
whole candidate set is expected to fit in memory.

A zero-magnitude vector has no direction, so its cosine similarity is
defined here as 0.0 rather than NaN. Such candidates stay in the ranking.
"""

from typing import Hashable, List, Sequence, Tuple

import numpy as np

from pdf_rag.models.vector_chunk import RankedChunk, VectorChunk

ZERO_MAGNITUDE_SCORE = 0.0


def _as_vector(values: Sequence[float]) -> np.ndarray:
    vector = np.asarray(values, dtype=np.float64)
    if vector.ndim != 1:
        raise ValueError(f"Expected a flat vector, got shape {vector.shape}")
    return vector


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors of equal length.

    Returns:
        Score in [-1, 1], or 0.0 when either vector has zero magnitude.

    Raises:
        ValueError: If the vectors differ in length.
    """
    va, vb = _as_vector(a), _as_vector(b)
    if va.shape != vb.shape:
        raise ValueError(f"Dimension mismatch: {va.shape[0]} vs {vb.shape[0]}")

    denominator = np.linalg.norm(va) * np.linalg.norm(vb)
    if denominator == 0:
        return ZERO_MAGNITUDE_SCORE
    return float(np.clip(np.dot(va, vb) / denominator, -1.0, 1.0))


def score_candidates(query_vector: Sequence[float], vectors: Sequence[Sequence[float]]) -> np.ndarray:
    """Cosine similarity of the query against each row, in input order."""
    query = _as_vector(query_vector)
    if not len(vectors):
        return np.zeros(0, dtype=np.float64)

    for position, vector in enumerate(vectors):
        if len(vector) != query.shape[0]:
            raise ValueError(
                f"Dimension mismatch at candidate {position}: "
                f"{len(vector)} vs query {query.shape[0]}"
            )

    matrix = np.asarray(vectors, dtype=np.float64)
    denominators = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
    dots = matrix @ query

    scores = np.full(dots.shape, ZERO_MAGNITUDE_SCORE, dtype=np.float64)
    np.divide(dots, denominators, out=scores, where=denominators > 0)
    return np.clip(scores, -1.0, 1.0)


def rank(
    query_vector: Sequence[float],
    candidates: Sequence[Tuple[Hashable, Sequence[float]]],
    k: int,
) -> List[Tuple[Hashable, float]]:
    """
    Return the top-k candidates by cosine similarity to the query.

    Args:
        query_vector: Query embedding.
        candidates: ``(id, vector)`` pairs sharing the query's dimensionality.
        k: Maximum number of results; must be >= 0.

    Returns:
        At most ``min(k, len(candidates))`` ``(id, score)`` pairs, score
        descending. Equal scores keep their input order.

    Raises:
        ValueError: If ``k`` is negative or a dimension differs.
    """
    if k < 0:
        raise ValueError(f"k must be >= 0, got {k}")
    if k == 0 or not candidates:
        return []

    scores = score_candidates(query_vector, [vector for _, vector in candidates])
    # Stable sort on the negated scores keeps first-seen candidates ahead on ties
    order = np.argsort(-scores, kind="stable")[:k]
    return [(candidates[i][0], float(scores[i])) for i in order]


def rank_chunks(query_vector: Sequence[float], chunks: Sequence[VectorChunk], k: int) -> List[RankedChunk]:
    """Rank stored chunks against a query embedding."""
    ranked = rank(query_vector, [(position, chunk.embedding) for position, chunk in enumerate(chunks)], k)
    return [RankedChunk(chunk=chunks[position], score=score) for position, score in ranked]
