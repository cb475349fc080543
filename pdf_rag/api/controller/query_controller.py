"""Query controller: POST /api/query."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PayloadValidationError

from pdf_rag.api.container import AppContainer, get_container
from pdf_rag.exceptions import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["query"])


class QueryRequest(BaseModel):
    """Incoming query. Field values are checked by the query service."""

    model_config = ConfigDict(populate_by_name=True)

    question: Any = None
    top_n: Any = Field(default=None, alias="topN")


@router.post("/query")
async def query(
    request: Request,
    container: AppContainer = Depends(get_container),
) -> JSONResponse:
    """
    Return the stored chunks most similar to a question.

    Body: {"question": "...", "topN": 3}
    """
    raw_body = await request.body()

    try:
        payload = QueryRequest.model_validate_json(raw_body or b"{}")
    except PayloadValidationError as e:
        logger.info(f"Rejected malformed query body: {e.error_count()} errors")
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    try:
        result = await container.query_service.query(payload.question, payload.top_n)
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        logger.exception(f"Query failed: {e}")
        return JSONResponse(status_code=500, content={"error": "Query failed"})

    return JSONResponse(content=result.to_response())
