"""Shared fixtures and fakes for the pdf-rag test suite."""

import math
from typing import Dict, List, Optional

import pytest
import pytest_asyncio

from pdf_rag.config.configuration import StorageConfig
from pdf_rag.exceptions import EmbeddingError, ExtractionError
from pdf_rag.ingestion.pdf_extraction import PdfTextExtractor
from pdf_rag.services.database import Database

DIMENSIONS = 2


def unit_vector(similarity: float) -> List[float]:
    """2-d vector whose cosine similarity with [1, 0] equals ``similarity``."""
    return [similarity, math.sqrt(1.0 - similarity ** 2)]


class FakeEmbeddingClient:
    """Deterministic stand-in for EmbeddingClient.

    Returns the vector registered for a text, or ``default`` otherwise.
    Texts listed in ``fail_on`` raise EmbeddingError.
    """

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        default: Optional[List[float]] = None,
        fail_on: Optional[set] = None,
    ):
        self.vectors = vectors or {}
        self.default = default or [1.0, 0.0]
        self.fail_on = fail_on or set()
        self.calls: List[str] = []

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if text in self.fail_on:
            raise EmbeddingError(f"provider rejected {text!r}")
        return list(self.vectors.get(text, self.default))

    async def close(self) -> None:
        pass


class FakeExtractor(PdfTextExtractor):
    """Returns canned text, or raises ExtractionError when ``text`` is None."""

    def __init__(self, text: Optional[str]):
        self.text = text
        self.received: List[bytes] = []

    async def extract_text(self, pdf_bytes: bytes, document_name: str) -> str:
        self.received.append(pdf_bytes)
        if self.text is None:
            raise ExtractionError(f"cannot parse {document_name}")
        return self.text


def sqlite_storage_config(piece_size_bytes: int = 8) -> StorageConfig:
    return StorageConfig(
        backend="sqlite",
        database_url="sqlite:///:memory:",
        timeout_seconds=5.0,
        piece_size_bytes=piece_size_bytes,
        cosmosdb=None,
    )


@pytest_asyncio.fixture
async def database():
    """Connected in-memory SQLite database, small pieces to exercise splitting."""
    db = Database(sqlite_storage_config())
    await db.connect()
    yield db
    await db.close()


@pytest.fixture
def embedding_client():
    return FakeEmbeddingClient()
