"""Service layer: external clients, cache and retrieval policy, and the pipeline."""

from typing import Optional

from semantic_rag.config import Settings
from semantic_rag.services.embedding_service import EmbeddingService
from semantic_rag.services.generation_service import GenerationService
from semantic_rag.services.ingestion_service import IngestionService
from semantic_rag.services.knowledge_retriever import KnowledgeRetriever
from semantic_rag.services.pipeline import RAGPipeline
from semantic_rag.services.semantic_cache import SemanticCache
from semantic_rag.services.vector_store import VectorStoreService


def build_pipeline(settings: Settings, store: Optional[VectorStoreService] = None) -> RAGPipeline:
    """Wire a pipeline from settings, sharing one vector store client."""
    store = store or VectorStoreService(settings)
    return RAGPipeline(
        settings,
        embedder=EmbeddingService(settings),
        cache=SemanticCache(store, settings),
        retriever=KnowledgeRetriever(store, settings),
        generator=GenerationService(settings),
    )


__all__ = [
    "EmbeddingService",
    "GenerationService",
    "IngestionService",
    "KnowledgeRetriever",
    "RAGPipeline",
    "SemanticCache",
    "VectorStoreService",
    "build_pipeline",
]
