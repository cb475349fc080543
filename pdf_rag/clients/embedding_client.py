"""OpenAI embedding client used for both chunk and query embeddings."""

import logging
from typing import List, Optional

from openai import APITimeoutError, AsyncOpenAI, OpenAIError

from pdf_rag.config.configuration import OpenAIConfig
from pdf_rag.exceptions import EmbeddingError, EmbeddingTimeoutError

logger = logging.getLogger(__name__)


class EmbeddingClient:
    """Maps a text string to a fixed-length vector via the OpenAI API.

    Every returned vector has exactly ``dimensions`` entries; anything else
    is treated as a provider failure so mixed dimensionalities never reach
    the chunk store. Calls are not retried.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        dimensions: int,
        timeout_seconds: float = 30.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self.dimensions = dimensions
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            max_retries=0,
        )

    @classmethod
    def from_config(cls, config: OpenAIConfig) -> "EmbeddingClient":
        """Create an embedding client from the OpenAI config section."""
        return cls(
            api_key=config.api_key,
            model=config.embedding_model,
            dimensions=config.embedding_dimensions,
            timeout_seconds=config.timeout_seconds,
        )

    async def embed(self, text: str) -> List[float]:
        """
        Generate the embedding vector for a text.

        Args:
            text: The text to embed.

        Returns:
            List of floats of length ``dimensions``.

        Raises:
            EmbeddingTimeoutError: If the request timed out.
            EmbeddingError: If the request failed or returned a malformed vector.
        """
        try:
            response = await self._client.embeddings.create(
                input=[text],
                model=self.model,
                dimensions=self.dimensions,
            )
        except APITimeoutError as e:
            raise EmbeddingTimeoutError(f"Embedding request timed out: {e}") from e
        except OpenAIError as e:
            raise EmbeddingError(f"Failed to generate embedding: {e}") from e

        if not response.data:
            raise EmbeddingError("Embedding response contained no data")

        embedding = list(response.data[0].embedding)
        if len(embedding) != self.dimensions:
            raise EmbeddingError(
                f"Embedding has {len(embedding)} dimensions, expected {self.dimensions}"
            )

        logger.debug(f"Embedded {len(text)} characters with {self.model}")
        return embedding

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        await self._client.close()
