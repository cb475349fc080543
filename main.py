"""Start the PDF RAG API server."""

import logging

import uvicorn

from pdf_rag.api import create_app
from pdf_rag.config import get_config


def main() -> None:
    config = get_config()
    logging.basicConfig(
        level=config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Storage is connected in the app lifespan; uvicorn aborts startup if it fails
    uvicorn.run(create_app(config=config), host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
