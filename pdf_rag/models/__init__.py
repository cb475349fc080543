"""Data models module."""

from pdf_rag.models.stored_file import (
    NO_RELEVANT_CHUNKS_ANSWER,
    IngestionResult,
    QueryResult,
    StoredFile,
)
from pdf_rag.models.vector_chunk import ChunkSource, RankedChunk, VectorChunk

__all__ = [
    "NO_RELEVANT_CHUNKS_ANSWER",
    "ChunkSource",
    "IngestionResult",
    "QueryResult",
    "RankedChunk",
    "StoredFile",
    "VectorChunk",
]
