"""pdf-rag: PDF ingestion and cosine-similarity chunk retrieval."""
