"""Embedding generation with batching support."""
import logging
from abc import ABC, abstractmethod

from openai import OpenAI

from app.kb.errors import EmbeddingRequestError

logger = logging.getLogger(__name__)


class Embedder(ABC):
    """Turns texts into fixed-length vectors, one per input, in input order."""

    @abstractmethod
    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed a list of texts. Empty input returns an empty list."""
        ...

    def embed_query(self, text: str) -> list[float]:
        """Embed a single text (convenience wrapper)."""
        embeddings = self.embed_texts([text])
        return embeddings[0] if embeddings else []


class OpenAIEmbedder(Embedder):
    """OpenAI embeddings provider."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        batch_size: int = 100,
    ):
        self._api_key = api_key
        self._model = model
        self._batch_size = batch_size
        self._client: OpenAI | None = None

    def _get_client(self) -> OpenAI:
        """Get or create the OpenAI client."""
        if self._client is None:
            self._client = OpenAI(api_key=self._api_key)

        return self._client

    def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """
        Generate embeddings for multiple texts with batching.

        Either every text gets an embedding or EmbeddingRequestError is
        raised; partial results are never returned.

        Args:
            texts: List of text strings to embed

        Returns:
            List of embedding vectors (one per input text)

        Raises:
            EmbeddingRequestError: If any request to the embedding API fails
        """
        if not texts:
            return []

        all_embeddings = []

        try:
            client = self._get_client()

            # Process in batches to respect API rate limits
            for i in range(0, len(texts), self._batch_size):
                batch = texts[i:i + self._batch_size]

                logger.info(f"Generating embeddings for batch {i // self._batch_size + 1} ({len(batch)} texts)")

                response = client.embeddings.create(
                    input=batch,
                    model=self._model,
                )

                # Extract embeddings in order
                batch_embeddings = [item.embedding for item in response.data]
                all_embeddings.extend(batch_embeddings)

        except Exception as e:
            logger.error(f"Failed to generate embeddings: {e}")
            raise EmbeddingRequestError(str(e) or e.__class__.__name__) from e

        logger.info(f"Generated {len(all_embeddings)} embeddings total")
        return all_embeddings
