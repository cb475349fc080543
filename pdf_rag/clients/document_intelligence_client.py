"""Azure Document Intelligence client for PDF text extraction."""

import logging
from typing import List

from azure.ai.documentintelligence import DocumentIntelligenceClient
from azure.ai.documentintelligence.models import AnalyzeResult
from azure.core.credentials import AzureKeyCredential
from azure.core.exceptions import AzureError

from pdf_rag.config.configuration import DocumentIntelligenceConfig

logger = logging.getLogger(__name__)


class DocumentIntelligenceError(Exception):
    """Custom exception for Document Intelligence operations."""

    pass


def _create_document_intelligence_client(
    config: DocumentIntelligenceConfig,
) -> DocumentIntelligenceClient:
    """Create Azure Document Intelligence client using configuration."""
    return DocumentIntelligenceClient(
        endpoint=config.endpoint,
        credential=AzureKeyCredential(config.api_key),
    )


def _extract_page_text(page) -> str:
    """
    Extract all text content from a single page.

    Args:
        page: Azure Document Intelligence page object from AnalyzeResult.

    Returns:
        Concatenated text content from all lines on the page.
    """
    if not page.lines:
        return ""
    return "\n".join(line.content for line in page.lines)


def extract_pages_from_pdf(
    pdf_bytes: bytes,
    document_name: str,
    config: DocumentIntelligenceConfig,
) -> List[str]:
    """
    Extract the text of each non-empty page of a PDF.

    Blocking call; run it off the event loop.

    Args:
        pdf_bytes: Raw PDF file bytes.
        document_name: Name identifier for the document (used in logs).
        config: Document Intelligence endpoint, key and model.

    Returns:
        Page texts in page order.

    Raises:
        DocumentIntelligenceError: If extraction fails.
    """
    logger.info(f"Extracting pages from document: {document_name}")

    try:
        client = _create_document_intelligence_client(config)

        poller = client.begin_analyze_document(
            model_id=config.model_id,
            body=pdf_bytes,
        )
        result: AnalyzeResult = poller.result()
    except AzureError as e:
        raise DocumentIntelligenceError(
            f"Failed to extract pages from {document_name}: {e}"
        ) from e

    if not result.pages:
        logger.warning(f"No pages found in document: {document_name}")
        return []

    pages: List[str] = []
    for page in result.pages:
        page_text = _extract_page_text(page)

        if not page_text.strip():
            logger.debug(f"Skipping empty page {page.page_number} in {document_name}")
            continue

        pages.append(page_text)

    logger.info(
        f"Extracted {len(pages)} non-empty pages from {document_name} "
        f"(total pages: {len(result.pages)})"
    )
    return pages
