"""Upload controller: POST /api/file."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import JSONResponse

from pdf_rag.api.container import AppContainer, get_container
from pdf_rag.exceptions import StorageError, UploadError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["files"])

DEFAULT_FILENAME = "upload.pdf"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.post("/file")
async def upload_file(
    pdf: Optional[UploadFile] = File(None),
    container: AppContainer = Depends(get_container),
) -> JSONResponse:
    """
    Upload a PDF and ingest it into the chunk store.

    Expects a multipart form with the file in the ``pdf`` field.

    Returns:
        200 {"message": "Success", "chunks": N}
        400 when no file was sent, 413 when it is over the size limit,
        500 when storage, extraction or embedding fails.
    """
    if pdf is None:
        return _error(400, "No file uploaded")

    try:
        file_bytes = await pdf.read(container.max_upload_bytes + 1)
    finally:
        await pdf.close()

    if len(file_bytes) > container.max_upload_bytes:
        logger.info(f"Rejected upload {pdf.filename}: over {container.max_upload_bytes} bytes")
        return _error(413, "File too large")

    filename = pdf.filename or DEFAULT_FILENAME

    try:
        result = await container.pipeline.ingest(file_bytes, filename)
    except UploadError:
        return _error(400, "No file uploaded")
    except StorageError as e:
        logger.exception(f"File storage failed for {filename}: {e}")
        return _error(500, "File storage failed")
    except Exception as e:
        logger.exception(f"Processing failed for {filename}: {e}")
        return _error(500, "Processing failed")

    return JSONResponse(content={"message": "Success", "chunks": result.chunk_count})
