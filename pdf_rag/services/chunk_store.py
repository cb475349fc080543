"""Chunk store: append-only persistence of embedded chunks.

Two backends share one contract:
- SQLite (embeddings stored as JSON text, insertion order kept by rowid)
- Azure Cosmos DB (one item per chunk, partitioned by source file)

There is no update or delete operation; chunks are created once and read
back as a whole collection.
"""

import json
import logging
import sqlite3
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from azure.core.exceptions import AzureError

from pdf_rag.clients.cosmosdb_client import CosmosDBClient
from pdf_rag.clients.sqlite_client import SqliteClient
from pdf_rag.models.vector_chunk import ChunkSource, VectorChunk
from pdf_rag.services.storage_call import run_storage_call

logger = logging.getLogger(__name__)

# SQL statements
CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS vector_chunks (
    id TEXT PRIMARY KEY,
    text TEXT NOT NULL,
    embedding TEXT NOT NULL,
    file_id TEXT NOT NULL,
    filename TEXT NOT NULL,
    page INTEGER NOT NULL,
    created_at TEXT NOT NULL,
    UNIQUE (file_id, page)
)
"""

INSERT_CHUNK_SQL = """
INSERT INTO vector_chunks (id, text, embedding, file_id, filename, page, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?)
"""

SELECT_ALL_SQL = """
SELECT id, text, embedding, file_id, filename, page, created_at
FROM vector_chunks
ORDER BY rowid
"""


class ChunkStore(ABC):
    """Contract shared by all chunk store backends."""

    def __init__(self, timeout_seconds: float = 30.0):
        self._timeout_seconds = timeout_seconds

    @abstractmethod
    async def insert_chunk(self, chunk: VectorChunk) -> VectorChunk:
        """Persist a chunk and return it with its store-assigned id.

        Raises:
            StorageError: If the write fails or times out.
        """

    @abstractmethod
    async def find_all(self) -> List[VectorChunk]:
        """Load every stored chunk in insertion order.

        Raises:
            StorageError: If the read fails or times out.
        """

    async def count(self) -> int:
        return len(await self.find_all())


class SqliteChunkStore(ChunkStore):
    """Chunk store backed by a SQLite table."""

    def __init__(self, sqlite_client: SqliteClient, timeout_seconds: float = 30.0):
        super().__init__(timeout_seconds)
        self._sqlite_client = sqlite_client

    def ensure_schema(self) -> None:
        """Create the chunk table if it doesn't exist."""
        self._sqlite_client.execute_query(CREATE_TABLE_SQL)
        logger.debug("Vector chunk table initialized")

    async def insert_chunk(self, chunk: VectorChunk) -> VectorChunk:
        chunk_id = chunk.id or uuid.uuid4().hex

        async def _insert():
            await self._sqlite_client.execute_query_async(
                INSERT_CHUNK_SQL,
                (
                    chunk_id,
                    chunk.text,
                    json.dumps(chunk.embedding),
                    chunk.source.file_id,
                    chunk.source.filename,
                    chunk.source.page,
                    chunk.created_at.isoformat(),
                ),
            )

        await run_storage_call(
            _insert,
            f"storing chunk {chunk.source.page} of file {chunk.source.file_id}",
            self._timeout_seconds,
            (sqlite3.Error,),
        )
        return VectorChunk(
            text=chunk.text,
            embedding=chunk.embedding,
            source=chunk.source,
            id=chunk_id,
            created_at=chunk.created_at,
        )

    async def find_all(self) -> List[VectorChunk]:
        async def _select():
            return await self._sqlite_client.execute_query_async(SELECT_ALL_SQL)

        rows = await run_storage_call(
            _select, "loading chunks", self._timeout_seconds, (sqlite3.Error,)
        )
        return [
            VectorChunk(
                text=text,
                embedding=json.loads(embedding_json),
                source=ChunkSource(file_id=file_id, filename=filename, page=page),
                id=chunk_id,
                created_at=datetime.fromisoformat(created_at),
            )
            for chunk_id, text, embedding_json, file_id, filename, page, created_at in rows
        ]


class CosmosChunkStore(ChunkStore):
    """Chunk store backed by a Cosmos DB container partitioned by /source/fileId."""

    PARTITION_KEY_PATH = "/source/fileId"

    def __init__(
        self,
        cosmos_client: CosmosDBClient,
        container_name: str,
        timeout_seconds: float = 30.0,
    ):
        super().__init__(timeout_seconds)
        self._cosmos_client = cosmos_client
        self._container_name = container_name

    async def insert_chunk(self, chunk: VectorChunk) -> VectorChunk:
        item = {
            "id": chunk.id or uuid.uuid4().hex,
            "text": chunk.text,
            "embedding": list(chunk.embedding),
            "source": chunk.source.to_dict(),
            "created_at": chunk.created_at.isoformat(),
        }

        stored = await run_storage_call(
            lambda: self._cosmos_client.upsert_item(self._container_name, item),
            f"storing chunk {chunk.source.page} of file {chunk.source.file_id}",
            self._timeout_seconds,
            (AzureError,),
        )
        return self._to_chunk(stored)

    async def find_all(self) -> List[VectorChunk]:
        items = await run_storage_call(
            lambda: self._cosmos_client.query_items(
                self._container_name,
                "SELECT c.id, c.text, c.embedding, c.source, c.created_at FROM c",
            ),
            "loading chunks",
            self._timeout_seconds,
            (AzureError,),
        )
        # Cross-partition queries carry no order; restore insertion order
        items.sort(key=lambda item: item["created_at"])
        return [self._to_chunk(item) for item in items]

    @staticmethod
    def _to_chunk(item: dict) -> VectorChunk:
        return VectorChunk(
            text=item["text"],
            embedding=list(item["embedding"]),
            source=ChunkSource.from_dict(item["source"]),
            id=item["id"],
            created_at=datetime.fromisoformat(item["created_at"]),
        )
