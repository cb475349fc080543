"""PDF text extraction backends.

- pdfplumber (local, default)
- Azure Document Intelligence (remote, prebuilt-layout model)

Both run the blocking library call in a worker thread and return the
document text with pages separated by a blank line.
"""

import asyncio
import logging
import unicodedata
from abc import ABC, abstractmethod
from io import BytesIO
from typing import List

import pdfplumber

from pdf_rag.clients.document_intelligence_client import (
    DocumentIntelligenceError,
    extract_pages_from_pdf,
)
from pdf_rag.config.configuration import DocumentIntelligenceConfig, ExtractionConfig
from pdf_rag.exceptions import ExtractionError

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"


class PdfTextExtractor(ABC):
    """Turns raw PDF bytes into plain text."""

    @abstractmethod
    async def extract_text(self, pdf_bytes: bytes, document_name: str) -> str:
        """
        Extract the text of a PDF.

        Raises:
            ExtractionError: If the document is corrupt or unsupported.
        """


class PdfPlumberExtractor(PdfTextExtractor):
    """Local extraction with pdfplumber."""

    async def extract_text(self, pdf_bytes: bytes, document_name: str) -> str:
        pages = await asyncio.to_thread(self._extract_pages, pdf_bytes, document_name)
        logger.info(f"Extracted {len(pages)} non-empty pages from {document_name}")
        return PAGE_SEPARATOR.join(pages)

    @staticmethod
    def _extract_pages(pdf_bytes: bytes, document_name: str) -> List[str]:
        try:
            with pdfplumber.open(BytesIO(pdf_bytes)) as pdf:
                pages = []
                for page in pdf.pages:
                    text = page.extract_text() or ""
                    text = unicodedata.normalize("NFKC", text).strip()
                    if text:
                        pages.append(text)
                return pages
        # pdfminer raises a variety of parser errors for corrupt input
        except Exception as e:
            raise ExtractionError(f"Failed to extract text from {document_name}: {e}") from e


class DocumentIntelligenceExtractor(PdfTextExtractor):
    """Remote extraction with Azure Document Intelligence."""

    def __init__(self, config: DocumentIntelligenceConfig):
        self._config = config

    async def extract_text(self, pdf_bytes: bytes, document_name: str) -> str:
        try:
            pages = await asyncio.to_thread(
                extract_pages_from_pdf, pdf_bytes, document_name, self._config
            )
        except DocumentIntelligenceError as e:
            raise ExtractionError(str(e)) from e
        return PAGE_SEPARATOR.join(pages)


def create_extractor(config: ExtractionConfig) -> PdfTextExtractor:
    """Create the extractor selected by ``extraction.backend``."""
    if config.backend == "document_intelligence":
        if config.document_intelligence is None:
            raise ValueError("document_intelligence backend selected without its settings")
        return DocumentIntelligenceExtractor(config.document_intelligence)
    return PdfPlumberExtractor()
