"""Client modules for external services."""

from pdf_rag.clients.cosmosdb_client import CosmosDBClient
from pdf_rag.clients.document_intelligence_client import (
    DocumentIntelligenceError,
    extract_pages_from_pdf,
)
from pdf_rag.clients.embedding_client import EmbeddingClient
from pdf_rag.clients.sqlite_client import SqliteClient, database_path_from_url

__all__ = [
    "CosmosDBClient",
    "DocumentIntelligenceError",
    "EmbeddingClient",
    "SqliteClient",
    "database_path_from_url",
    "extract_pages_from_pdf",
]
