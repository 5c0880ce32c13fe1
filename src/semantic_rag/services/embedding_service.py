"""Embedding generation service backed by the OpenAI embeddings API."""

from __future__ import annotations

from typing import List, Optional, Sequence

from openai import AsyncOpenAI
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from semantic_rag.config import Settings
from semantic_rag.models.vector import Embedding
from semantic_rag.utils.errors import EmbeddingError
from semantic_rag.utils.logging import get_logger

logger = get_logger("embedding_service")


class EmbeddingService:
    """
    Turn text into fixed-length vectors.

    - `embed` returns one vector for one prompt.
    - `embed_batch` returns vectors in input order and fails as a whole when
      the upstream answers with fewer vectors than requested.

    Retries are governed by `EMBEDDING_MAX_RETRIES` (default: a single attempt).
    """

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None) -> None:
        self._settings = settings
        self._model_name = settings.embedding.model
        self._dimension = settings.embedding.dimension
        self._client = client  # lazy

    @property
    def dimension(self) -> int:
        return self._dimension

    def _get_client(self) -> AsyncOpenAI:
        if self._client is not None:
            return self._client

        if not self._settings.openai.api_key:
            raise EmbeddingError(
                "OPENAI_API_KEY is required for embeddings",
                model=self._model_name,
            )
        self._client = AsyncOpenAI(
            api_key=self._settings.openai.api_key,
            base_url=self._settings.openai.base_url,
            timeout=self._settings.embedding.timeout,
            # Retries are owned by _embed_with_retry
            max_retries=0,
        )
        return self._client

    async def _embed_request(self, inputs: List[str]) -> List[Embedding]:
        """Send one embeddings request."""
        client = self._get_client()
        try:
            resp = await client.embeddings.create(model=self._model_name, input=inputs)
        except Exception as e:
            raise EmbeddingError(f"Embedding request failed: {e}", model=self._model_name) from e
        return [d.embedding for d in resp.data]

    async def _embed_with_retry(self, inputs: List[str]) -> List[Embedding]:
        async for attempt in AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(self._settings.embedding.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=30),
            retry=retry_if_exception_type(EmbeddingError),
        ):
            with attempt:
                return await self._embed_request(inputs)
        # unreachable with reraise=True
        raise EmbeddingError("Embedding retries exhausted", model=self._model_name)

    def _check_dimension(self, vector: Embedding) -> None:
        if len(vector) != self._dimension:
            raise EmbeddingError(
                "Embedding dimension mismatch",
                model=self._model_name,
                details={"expected_dimension": self._dimension, "actual_dimension": len(vector)},
            )

    async def embed(self, text: str) -> Embedding:
        """Embed a single prompt."""
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text", model=self._model_name)

        vectors = await self._embed_with_retry([text])
        if not vectors:
            raise EmbeddingError(
                "There were no embeddings returned by the embedding service",
                model=self._model_name,
            )

        vector = vectors[0]
        self._check_dimension(vector)
        return vector

    async def embed_batch(self, texts: Sequence[str]) -> List[Embedding]:
        """
        Embed many texts, preserving order.

        Args:
            texts: Texts to embed

        Returns:
            One vector per input text, in the same order
        """
        if not texts:
            return []

        logger.info(
            f"Generating embeddings: model={self._model_name}, "
            f"texts={len(texts)}, batch_size={self._settings.embedding.batch_size}"
        )

        out: List[Embedding] = []
        batch_size = max(1, self._settings.embedding.batch_size)
        for start in range(0, len(texts), batch_size):
            batch = list(texts[start : start + batch_size])
            vectors = await self._embed_with_retry(batch)
            if not vectors:
                raise EmbeddingError(
                    "There were no embeddings returned by the embedding service",
                    model=self._model_name,
                    details={"batch_start": start, "batch_size": len(batch)},
                )
            if len(vectors) != len(batch):
                raise EmbeddingError(
                    "Embedding response size mismatch",
                    model=self._model_name,
                    details={"expected": len(batch), "got": len(vectors)},
                )
            for vector in vectors:
                self._check_dimension(vector)
            out.extend(vectors)

        logger.info(f"Embeddings generated successfully: count={len(out)}, dimension={self._dimension}")
        return out
