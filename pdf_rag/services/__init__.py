"""Storage and query services."""

from pdf_rag.services.chunk_store import ChunkStore, CosmosChunkStore, SqliteChunkStore
from pdf_rag.services.database import Database
from pdf_rag.services.file_bucket import (
    CosmosFileBucket,
    FileBucket,
    SqliteFileBucket,
    UploadStream,
)
from pdf_rag.services.query_service import (
    CONTEXT_DELIMITER,
    DEFAULT_TOP_N,
    QueryService,
    validate_top_n,
)

__all__ = [
    "CONTEXT_DELIMITER",
    "DEFAULT_TOP_N",
    "ChunkStore",
    "CosmosChunkStore",
    "CosmosFileBucket",
    "Database",
    "FileBucket",
    "QueryService",
    "SqliteChunkStore",
    "SqliteFileBucket",
    "UploadStream",
    "validate_top_n",
]
