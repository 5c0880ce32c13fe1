"""Knowledge retrieval over the document collection."""

from typing import List, Sequence

from semantic_rag.config import Settings
from semantic_rag.models.vector import Embedding
from semantic_rag.services.vector_store import VectorStoreService
from semantic_rag.utils.errors import NoMatchError, StoreWriteError
from semantic_rag.utils.logging import get_logger

logger = get_logger("knowledge_retriever")

DOCUMENT_FIELD = "document"


class KnowledgeRetriever:
    """
    Top-1 context lookup against the knowledge collection.

    Unlike the cache, an empty result is an error here: it means the
    knowledge base is unpopulated or the wrong collection is configured.
    """

    def __init__(self, store: VectorStoreService, settings: Settings) -> None:
        self._store = store
        self._settings = settings
        self.collection_name = settings.qdrant.knowledge_collection

    async def setup(self) -> None:
        """Declare the knowledge collection (idempotent)."""
        await self._store.create_collection(
            self.collection_name,
            self._settings.embedding.dimension,
            self._settings.qdrant.knowledge_distance,
        )

    async def retrieve(self, query_embedding: Embedding) -> str:
        """Return the document stored nearest to `query_embedding`."""
        hits = await self._store.search(
            self.collection_name, query_embedding, limit=1, with_payload=True
        )
        if not hits:
            raise NoMatchError(collection=self.collection_name)

        document = hits[0].get(DOCUMENT_FIELD)
        if not isinstance(document, str):
            raise NoMatchError(
                f"Nearest point has no '{DOCUMENT_FIELD}' payload",
                collection=self.collection_name,
                details={"point_id": str(hits[0].id)},
            )

        logger.info(f"Retrieved context from point {hits[0].id} (score={hits[0].score:.4f})")
        return document

    async def add_document(self, embedding: Embedding, document: str) -> str:
        """Store one document under its embedding and return the point id."""
        point_id = self._store.new_point_id()
        await self._store.upsert(
            self.collection_name, point_id, embedding, {DOCUMENT_FIELD: document}
        )
        return point_id

    async def add_documents(
        self, embeddings: Sequence[Embedding], documents: Sequence[str]
    ) -> List[str]:
        """Store documents in one write; nothing is stored when it fails."""
        if len(embeddings) != len(documents):
            raise StoreWriteError(
                "Embedding and document counts differ",
                collection=self.collection_name,
                details={"embeddings": len(embeddings), "documents": len(documents)},
            )

        point_ids = [self._store.new_point_id() for _ in documents]
        await self._store.upsert_many(
            self.collection_name,
            [
                (point_id, embedding, {DOCUMENT_FIELD: document})
                for point_id, embedding, document in zip(point_ids, embeddings, documents)
            ],
        )
        return point_ids
