"""Process-wide storage connection shared by the chunk store and file bucket.

The connection is opened once before the API starts serving and closed on
shutdown. The backend (SQLite or Cosmos DB) follows ``storage.backend``.
"""

import logging
import sqlite3
from typing import Optional, Union

from azure.core.exceptions import AzureError

from pdf_rag.clients.cosmosdb_client import CosmosDBClient
from pdf_rag.clients.sqlite_client import SqliteClient
from pdf_rag.config.configuration import StorageConfig
from pdf_rag.exceptions import StorageError
from pdf_rag.services.chunk_store import ChunkStore, CosmosChunkStore, SqliteChunkStore
from pdf_rag.services.file_bucket import CosmosFileBucket, FileBucket, SqliteFileBucket

logger = logging.getLogger(__name__)


class Database:
    """Owns the storage connection and the stores built on top of it."""

    def __init__(self, config: StorageConfig):
        self._config = config
        self._client: Optional[Union[SqliteClient, CosmosDBClient]] = None
        self._chunks: Optional[ChunkStore] = None
        self._files: Optional[FileBucket] = None

    @property
    def backend(self) -> str:
        return self._config.backend

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @property
    def chunks(self) -> ChunkStore:
        if self._chunks is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._chunks

    @property
    def files(self) -> FileBucket:
        if self._files is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._files

    async def connect(self) -> None:
        """
        Open the connection, prepare tables/containers and verify it answers.

        Raises:
            StorageError: If the backend cannot be reached.
        """
        if self.is_connected:
            return

        try:
            if self._config.backend == "cosmosdb":
                await self._connect_cosmosdb()
            else:
                self._connect_sqlite()
            await self.ping()
        # ValueError: malformed Cosmos DB connection string
        except (sqlite3.Error, AzureError, ValueError) as e:
            await self.close()
            raise StorageError(f"Failed to connect to {self._config.backend} storage: {e}") from e

        logger.info(f"Connected to {self._config.backend} storage")

    def _connect_sqlite(self) -> None:
        client = SqliteClient(self._config.database_url)
        self._client = client

        chunk_store = SqliteChunkStore(client, timeout_seconds=self._config.timeout_seconds)
        file_bucket = SqliteFileBucket(
            client,
            piece_size=self._config.piece_size_bytes,
            timeout_seconds=self._config.timeout_seconds,
        )
        chunk_store.ensure_schema()
        file_bucket.ensure_schema()

        self._chunks = chunk_store
        self._files = file_bucket

    async def _connect_cosmosdb(self) -> None:
        cosmos_config = self._config.cosmosdb
        if cosmos_config is None:
            raise StorageError("cosmosdb backend selected without a storage.cosmosdb section")

        client = CosmosDBClient(
            connection_string=self._config.database_url,
            database_name=cosmos_config.database_name,
            containers={
                cosmos_config.chunks_container: CosmosChunkStore.PARTITION_KEY_PATH,
                cosmos_config.uploads_container: CosmosFileBucket.PARTITION_KEY_PATH,
            },
        )
        self._client = client
        await client.connect()

        self._chunks = CosmosChunkStore(
            client,
            cosmos_config.chunks_container,
            timeout_seconds=self._config.timeout_seconds,
        )
        self._files = CosmosFileBucket(
            client,
            cosmos_config.uploads_container,
            piece_size=self._config.piece_size_bytes,
            timeout_seconds=self._config.timeout_seconds,
        )

    async def ping(self) -> None:
        """Round-trip the backend; raises the backend's own error on failure."""
        if isinstance(self._client, CosmosDBClient):
            await self._client.ping()
        elif isinstance(self._client, SqliteClient):
            self._client.ping()
        else:
            raise RuntimeError("Database not connected. Call connect() first.")

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        client, self._client = self._client, None
        self._chunks = None
        self._files = None

        if isinstance(client, CosmosDBClient):
            await client.close()
        elif isinstance(client, SqliteClient):
            client.close()

        if client is not None:
            logger.info(f"Closed {self._config.backend} storage connection")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.close()
        return False
