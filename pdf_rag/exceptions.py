"""Error taxonomy shared by ingestion, storage and query code."""


class PdfRagError(Exception):
    """Base class for all pdf-rag errors."""

    pass


class ValidationError(PdfRagError):
    """Raised for bad or missing client input (client-correctable)."""

    pass


class UploadError(PdfRagError):
    """Raised when an upload carries no file bytes."""

    pass


class StorageError(PdfRagError):
    """Raised when the chunk store or file bucket fails to read or write."""

    pass


class StorageTimeoutError(StorageError):
    """Raised when a storage call exceeds its timeout."""

    pass


class ExtractionError(PdfRagError):
    """Raised when text cannot be extracted from an uploaded document."""

    pass


class EmbeddingError(PdfRagError):
    """Raised when the remote embedding call fails."""

    pass


class EmbeddingTimeoutError(EmbeddingError):
    """Raised when the remote embedding call exceeds its timeout."""

    pass


class PartialIngestionError(PdfRagError):
    """Raised when ingestion aborts after some chunks were already stored.

    Chunks persisted before the failure are not rolled back.
    """

    def __init__(self, file_id: str, persisted_chunks: int, total_chunks: int, reason: str):
        self.file_id = file_id
        self.persisted_chunks = persisted_chunks
        self.total_chunks = total_chunks
        super().__init__(
            f"Ingestion of file {file_id} aborted after {persisted_chunks}/{total_chunks} "
            f"chunks were stored: {reason}"
        )
