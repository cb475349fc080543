"""Chunk models for ingestion and retrieval."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ChunkSource:
    """Provenance of a chunk within its uploaded document."""

    file_id: str  # Identifier of the stored upload in the file bucket
    filename: str  # Original filename supplied by the client
    page: int  # 1-based position of the chunk within the document

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON shape returned by the query API."""
        return {"fileId": self.file_id, "filename": self.filename, "page": self.page}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkSource":
        return cls(
            file_id=str(data["fileId"]),
            filename=data["filename"],
            page=int(data["page"]),
        )


@dataclass(frozen=True)
class VectorChunk:
    """A persisted text segment with its embedding vector."""

    text: str
    embedding: List[float]
    source: ChunkSource
    id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class RankedChunk:
    """A chunk paired with its similarity to a query."""

    chunk: VectorChunk
    score: float
