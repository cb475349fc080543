"""Composition root: wires config, storage and clients into request handlers."""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from pdf_rag.clients.embedding_client import EmbeddingClient
from pdf_rag.config.configuration import AppConfig
from pdf_rag.ingestion.pdf_ingestion import PDFIngestionPipeline, create_pipeline
from pdf_rag.services.database import Database
from pdf_rag.services.query_service import QueryService

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024


@dataclass
class AppContainer:
    """Long-lived components shared by all requests."""

    pipeline: PDFIngestionPipeline
    query_service: QueryService
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    database: Optional[Database] = None
    embedding_client: Optional[EmbeddingClient] = None

    async def close(self) -> None:
        if self.embedding_client is not None:
            await self.embedding_client.close()
        if self.database is not None:
            await self.database.close()


async def build_container(config: AppConfig) -> AppContainer:
    """
    Connect to storage and build the pipeline and query service.

    Raises:
        StorageError: If the storage connection cannot be established.
    """
    database = Database(config.storage)
    await database.connect()

    embedding_client = EmbeddingClient.from_config(config.openai)

    return AppContainer(
        pipeline=create_pipeline(config, database, embedding_client),
        query_service=QueryService(
            embedding_client=embedding_client,
            chunk_store=database.chunks,
            default_top_n=config.query.default_top_n,
        ),
        max_upload_bytes=config.api.max_upload_bytes,
        database=database,
        embedding_client=embedding_client,
    )


def get_container(request: Request) -> AppContainer:
    """FastAPI dependency returning the application's container."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Application container not initialized")
    return container
