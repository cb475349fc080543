"""Query service: embed a question and return the most similar stored chunks."""

import logging
from typing import Any, Optional

from pdf_rag.clients.embedding_client import EmbeddingClient
from pdf_rag.exceptions import ValidationError
from pdf_rag.models.stored_file import NO_RELEVANT_CHUNKS_ANSWER, QueryResult
from pdf_rag.retrieval.similarity_ranker import rank_chunks
from pdf_rag.services.chunk_store import ChunkStore

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 3
CONTEXT_DELIMITER = "\n---\n"


def validate_top_n(top_n: Any, default: int = DEFAULT_TOP_N) -> int:
    """Return ``top_n`` or the default; reject anything but a positive integer."""
    if top_n is None:
        return default
    if isinstance(top_n, bool) or not isinstance(top_n, int) or top_n < 1:
        raise ValidationError("topN must be a positive integer")
    return top_n


class QueryService:
    """Answers questions with the top-N chunks from the whole chunk store.

    Every query loads the full chunk collection and scores it linearly,
    which only suits small corpora.
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        chunk_store: ChunkStore,
        default_top_n: int = DEFAULT_TOP_N,
    ):
        self._embedding_client = embedding_client
        self._chunk_store = chunk_store
        self._default_top_n = default_top_n

    async def query(self, question: Any, top_n: Any = None) -> QueryResult:
        """
        Retrieve the chunks most similar to a question.

        Args:
            question: Natural-language question.
            top_n: Number of chunks to return; defaults to ``default_top_n``.

        Returns:
            QueryResult with the joined chunk texts, scores and sources in
            ranked order, or the "no relevant chunks" answer when the store
            is empty.

        Raises:
            ValidationError: If the question is missing/blank or top_n is invalid.
            EmbeddingError: If the question cannot be embedded.
            StorageError: If the chunk store cannot be read.
        """
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("Question is required")
        k = validate_top_n(top_n, self._default_top_n)

        question_embedding = await self._embedding_client.embed(question)
        chunks = await self._chunk_store.find_all()
        ranked = rank_chunks(question_embedding, chunks, k)

        logger.info(f"Ranked {len(chunks)} chunks, returning top {len(ranked)}")

        if not ranked:
            return QueryResult(answer=NO_RELEVANT_CHUNKS_ANSWER)

        return QueryResult(
            answer=CONTEXT_DELIMITER.join(item.chunk.text for item in ranked),
            scores=[item.score for item in ranked],
            sources=[item.chunk.source.to_dict() for item in ranked],
        )
