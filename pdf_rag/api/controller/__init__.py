"""HTTP controllers."""

from pdf_rag.api.controller.file_controller import router as file_router
from pdf_rag.api.controller.query_controller import router as query_router

__all__ = ["file_router", "query_router"]
