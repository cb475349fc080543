"""FastAPI application setup."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from pdf_rag.api.container import AppContainer, build_container
from pdf_rag.api.controller import file_router, query_router
from pdf_rag.config.configuration import AppConfig, get_config
from pdf_rag.exceptions import StorageError

logger = logging.getLogger(__name__)

UPLOAD_PATH = "/api/file"


def create_app(
    container: Optional[AppContainer] = None,
    config: Optional[AppConfig] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        container: Prebuilt components. When omitted, the storage connection
            and clients are created from configuration at startup and closed
            at shutdown.
        config: Configuration used to build the container; defaults to
            ``get_config()``.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_container = app.state.container is None
        if owns_container:
            try:
                app.state.container = await build_container(config or get_config())
            except StorageError as e:
                logger.error(f"Storage connection failed, refusing to start: {e}")
                raise

        yield

        if owns_container:
            await app.state.container.close()
            app.state.container = None

    app = FastAPI(
        title="PDF RAG API",
        description="Upload PDFs and retrieve the chunks most similar to a question",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Report malformed requests as 400 without echoing input or library messages."""
        logger.info(f"Rejected malformed request to {request.url.path}: {len(exc.errors())} errors")
        message = "No file uploaded" if request.url.path == UPLOAD_PATH else "Invalid request body"
        return JSONResponse(status_code=400, content={"error": message})

    # Include routers
    app.include_router(file_router)
    app.include_router(query_router)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        """Liveness check."""
        return "Server is running..."

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
