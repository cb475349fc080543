"""Models for uploaded files and ingestion/query outcomes."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

NO_RELEVANT_CHUNKS_ANSWER = "No relevant chunks found."


@dataclass(frozen=True)
class StoredFile:
    """Metadata record of an upload kept in the file bucket.

    The bytes themselves live in ordered pieces of at most ``piece_size``
    bytes, keyed by ``file_id``.
    """

    file_id: str
    filename: str
    length: int  # Total size in bytes
    piece_size: int  # Maximum size of each stored piece
    md5: str  # MD5 of the full content, checked on download
    upload_date: datetime


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of a successful ingestion."""

    file_id: str
    filename: str
    chunk_count: int


@dataclass(frozen=True)
class QueryResult:
    """Retrieved context for a question, in ranked order."""

    answer: str
    scores: List[float] = field(default_factory=list)
    sources: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.scores

    def to_response(self) -> Dict[str, Any]:
        """Render the JSON payload returned by POST /api/query."""
        if self.is_empty:
            return {"answer": self.answer}
        return {
            "answer": self.answer,
            "scores": list(self.scores),
            "sources": list(self.sources),
        }
