"""Document ingestion module."""

from pdf_rag.ingestion.pdf_extraction import (
    DocumentIntelligenceExtractor,
    PdfPlumberExtractor,
    PdfTextExtractor,
    create_extractor,
)
from pdf_rag.ingestion.pdf_ingestion import (
    PDFIngestionPipeline,
    create_pipeline,
    ingest_paths,
)
from pdf_rag.ingestion.text_chunker import TextChunker, chunk_text

__all__ = [
    # Extraction
    "DocumentIntelligenceExtractor",
    "PdfPlumberExtractor",
    "PdfTextExtractor",
    "create_extractor",
    # Chunking
    "TextChunker",
    "chunk_text",
    # Pipeline
    "PDFIngestionPipeline",
    "create_pipeline",
    "ingest_paths",
]
