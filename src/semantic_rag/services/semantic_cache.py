"""Semantic answer cache on top of a dedicated vector collection.

Entries are keyed by the prompt embedding, not by the prompt text, so two
paraphrases whose embeddings land close together share an answer. The cache
is append-only: every miss adds a point and nothing is evicted.
"""

from typing import Optional

from semantic_rag.config import Settings
from semantic_rag.models.vector import Embedding
from semantic_rag.services.vector_store import VectorStoreService
from semantic_rag.utils.logging import get_logger

logger = get_logger("semantic_cache")

ANSWER_FIELD = "answer"


class SemanticCache:
    """Read-through cache policy for generated answers."""

    def __init__(self, store: VectorStoreService, settings: Settings) -> None:
        self._store = store
        self._settings = settings
        self.collection_name = settings.qdrant.cache_collection
        self.max_distance = settings.cache.max_distance

    async def setup(self) -> None:
        """Declare the cache collection (idempotent)."""
        await self._store.create_collection(
            self.collection_name,
            self._settings.embedding.dimension,
            self._settings.qdrant.cache_distance,
        )

    async def lookup(self, query_embedding: Embedding) -> Optional[str]:
        """
        Return the answer cached under the nearest embedding, if any.

        Without `CACHE_MAX_DISTANCE` any nearest point counts as a hit.

        Raises:
            StoreSearchError: On transport failure; callers decide whether to fail open.
        """
        hits = await self._store.search(
            self.collection_name,
            query_embedding,
            limit=1,
            with_payload=True,
            score_threshold=self.max_distance,
        )
        if not hits:
            logger.debug("Semantic cache miss: no nearby entry")
            return None

        hit = hits[0]
        answer = hit.get(ANSWER_FIELD)
        if not isinstance(answer, str):
            logger.warning(f"Cache point {hit.id} has no '{ANSWER_FIELD}' payload; treating as miss")
            return None

        logger.info(f"Semantic cache hit: point={hit.id}, score={hit.score:.4f}")
        return answer

    async def store(self, query_embedding: Embedding, answer_text: str) -> str:
        """Add a cache entry and return its point id."""
        point_id = self._store.new_point_id()
        await self._store.upsert(
            self.collection_name,
            point_id,
            query_embedding,
            {ANSWER_FIELD: answer_text},
        )
        logger.info(f"Cached answer under point {point_id}")
        return point_id
