"""PDF ingestion pipeline.

upload bytes → file bucket → read back → extract text → chunk →
embed each chunk → store each chunk.

Chunks are embedded and stored in page order. If embedding or storing a
chunk fails, the remaining chunks are abandoned and the ones already stored
stay in the chunk store (no per-document rollback).
"""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from pdf_rag.clients.embedding_client import EmbeddingClient
from pdf_rag.config.configuration import AppConfig, get_config
from pdf_rag.exceptions import (
    EmbeddingError,
    PartialIngestionError,
    StorageError,
    UploadError,
)
from pdf_rag.ingestion.pdf_extraction import PdfTextExtractor, create_extractor
from pdf_rag.ingestion.text_chunker import TextChunker
from pdf_rag.models.stored_file import IngestionResult
from pdf_rag.models.vector_chunk import ChunkSource, VectorChunk
from pdf_rag.services.chunk_store import ChunkStore
from pdf_rag.services.database import Database
from pdf_rag.services.file_bucket import FileBucket

logger = logging.getLogger(__name__)


class PDFIngestionPipeline:
    """Turns one uploaded PDF into stored, embedded chunks."""

    def __init__(
        self,
        file_bucket: FileBucket,
        chunk_store: ChunkStore,
        embedding_client: EmbeddingClient,
        extractor: PdfTextExtractor,
        chunker: TextChunker,
        max_concurrency: int = 1,
    ):
        """
        Args:
            file_bucket: Storage for the raw upload.
            chunk_store: Storage for embedded chunks.
            embedding_client: Remote embedding provider.
            extractor: PDF text extractor.
            chunker: Text splitter.
            max_concurrency: Embedding calls allowed in flight at once.
                1 keeps the strict embed-then-store order per chunk.
        """
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be positive, got {max_concurrency}")
        self._file_bucket = file_bucket
        self._chunk_store = chunk_store
        self._embedding_client = embedding_client
        self._extractor = extractor
        self._chunker = chunker
        self._max_concurrency = max_concurrency

    async def ingest(self, file_bytes: Optional[bytes], filename: str) -> IngestionResult:
        """
        Ingest a single PDF upload.

        Args:
            file_bytes: Raw PDF bytes.
            filename: Original filename.

        Returns:
            IngestionResult with the stored file id and chunk count.

        Raises:
            UploadError: If no bytes were supplied.
            StorageError: If the upload cannot be stored or read back.
            ExtractionError: If text extraction fails.
            PartialIngestionError: If embedding or storing a chunk fails.
        """
        if not file_bytes:
            raise UploadError("No file uploaded")

        logger.info(f"Starting ingestion of {filename} ({len(file_bytes)} bytes)")

        file_id = await self._store_upload(file_bytes, filename)
        pdf_bytes = await self._file_bucket.download(file_id)

        text = await self._extractor.extract_text(pdf_bytes, filename)
        segments = self._chunker.split(text)

        if not segments:
            logger.warning(f"No text content extracted from {filename}")
            return IngestionResult(file_id=file_id, filename=filename, chunk_count=0)

        chunk_count = await self._embed_and_store(file_id, filename, segments)

        logger.info(f"Ingested {filename} as {file_id}: {chunk_count} chunks")
        return IngestionResult(file_id=file_id, filename=filename, chunk_count=chunk_count)

    async def _store_upload(self, file_bytes: bytes, filename: str) -> str:
        async with self._file_bucket.open_upload_stream(filename) as stream:
            await stream.write(file_bytes)
        return stream.file_id

    async def _embed_and_store(self, file_id: str, filename: str, segments: List[str]) -> int:
        # Pages are numbered before any embedding call is dispatched
        numbered: List[Tuple[int, str]] = list(enumerate(segments, start=1))
        persisted = 0

        for start in range(0, len(numbered), self._max_concurrency):
            window = numbered[start:start + self._max_concurrency]
            try:
                embeddings = await self._embed_window([text for _, text in window])
                for (page, text), embedding in zip(window, embeddings):
                    await self._chunk_store.insert_chunk(
                        VectorChunk(
                            text=text,
                            embedding=embedding,
                            source=ChunkSource(file_id=file_id, filename=filename, page=page),
                        )
                    )
                    persisted += 1
                    logger.debug(f"Stored chunk {page}/{len(numbered)} of {filename}")
            except (EmbeddingError, StorageError) as e:
                logger.warning(
                    f"Ingestion of {filename} ({file_id}) aborted: "
                    f"{persisted}/{len(numbered)} chunks remain stored"
                )
                raise PartialIngestionError(file_id, persisted, len(numbered), str(e)) from e

        return persisted

    async def _embed_window(self, texts: List[str]) -> List[List[float]]:
        if len(texts) == 1:
            return [await self._embedding_client.embed(texts[0])]

        tasks = [asyncio.create_task(self._embedding_client.embed(text)) for text in texts]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise


def create_pipeline(
    config: AppConfig,
    database: Database,
    embedding_client: EmbeddingClient,
) -> PDFIngestionPipeline:
    """Wire a pipeline from configuration and an open database."""
    return PDFIngestionPipeline(
        file_bucket=database.files,
        chunk_store=database.chunks,
        embedding_client=embedding_client,
        extractor=create_extractor(config.extraction),
        chunker=TextChunker(config.chunking.max_chars),
        max_concurrency=config.ingestion.max_concurrency,
    )


async def ingest_paths(paths: Sequence[Path], config: AppConfig) -> List[IngestionResult]:
    """Ingest local PDF files one after another through a fresh pipeline."""
    embedding_client = EmbeddingClient.from_config(config.openai)
    results = []

    try:
        async with Database(config.storage) as database:
            pipeline = create_pipeline(config, database, embedding_client)
            for path in paths:
                results.append(await pipeline.ingest(path.read_bytes(), path.name))
    finally:
        await embedding_client.close()

    return results


# --- Entry Point ---

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Ingest local PDF files into the chunk store.")
    parser.add_argument("files", nargs="+", type=Path, help="PDF files to ingest")
    args = parser.parse_args()

    app_config = get_config()
    logging.basicConfig(level=app_config.logging.level)

    for result in asyncio.run(ingest_paths(args.files, app_config)):
        print(f"{result.filename}: {result.chunk_count} chunks (file id {result.file_id})")
