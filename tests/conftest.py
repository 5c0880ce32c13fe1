"""Pytest configuration and fixtures for semantic-rag tests."""

import hashlib
from typing import Dict, List, Tuple

import pytest
import pytest_asyncio
from qdrant_client import QdrantClient

from semantic_rag.config import (
    CacheSettings,
    EmbeddingSettings,
    OpenAISettings,
    QdrantSettings,
    Settings,
)
from semantic_rag.services.embedding_service import EmbeddingService
from semantic_rag.services.generation_service import GenerationService
from semantic_rag.services.knowledge_retriever import KnowledgeRetriever
from semantic_rag.services.pipeline import RAGPipeline
from semantic_rag.services.semantic_cache import SemanticCache
from semantic_rag.services.vector_store import VectorStoreService

DIMENSION = 4

FRANCE_QUESTION = "What is the capital of France?"
FRANCE_PARAPHRASE = "Tell me the capital city of France"
FRANCE_DOCUMENT = "Paris is the capital of France."
GERMANY_QUESTION = "What is the capital of Germany?"
GERMANY_DOCUMENT = "Berlin is the capital of Germany."

# Hand-placed vectors so nearness is known in advance
VECTORS: Dict[str, List[float]] = {
    FRANCE_QUESTION: [1.0, 0.0, 0.0, 0.0],
    FRANCE_PARAPHRASE: [0.98, 0.05, 0.0, 0.0],
    FRANCE_DOCUMENT: [0.95, 0.1, 0.0, 0.0],
    GERMANY_QUESTION: [0.05, 0.98, 0.0, 0.0],
    GERMANY_DOCUMENT: [0.1, 0.95, 0.0, 0.0],
}


def fake_vector(text: str) -> List[float]:
    """Deterministic vector for `text`; known texts get their hand-placed vector."""
    if text in VECTORS:
        return list(VECTORS[text])
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return [b / 255.0 + 0.01 for b in digest[:DIMENSION]]


class FakeEmbeddingService(EmbeddingService):
    """Embedding service whose upstream is a lookup table."""

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.requests: List[List[str]] = []

    async def _embed_request(self, inputs: List[str]) -> List[List[float]]:
        self.requests.append(list(inputs))
        return [fake_vector(text) for text in inputs]


class StubGenerationService(GenerationService):
    """Generation service that records calls and returns a canned answer."""

    def __init__(self, settings: Settings, answer: str = "Paris."):
        super().__init__(settings)
        self.answer = answer
        self.calls: List[Tuple[str, str]] = []

    async def generate(self, prompt: str, context: str) -> str:
        self.calls.append((prompt, context))
        return self.answer


@pytest.fixture
def settings():
    """Settings with a tiny embedding dimension and a fake OpenAI key."""
    return Settings(
        environment="development",
        log_level="DEBUG",
        setup_collections=True,
        openai=OpenAISettings(api_key="sk-test"),
        embedding=EmbeddingSettings(dimension=DIMENSION, batch_size=100, max_retries=1),
        qdrant=QdrantSettings(
            url="http://localhost:6333",
            knowledge_collection="test-knowledge",
            cache_collection="test-knowledge_cached",
        ),
        cache=CacheSettings(),
    )


@pytest.fixture
def qdrant_client():
    """In-process Qdrant (local mode); nothing leaves the test."""
    client = QdrantClient(":memory:")
    yield client
    client.close()


@pytest.fixture
def store(settings, qdrant_client):
    return VectorStoreService(settings, client=qdrant_client)


@pytest.fixture
def embedder(settings):
    return FakeEmbeddingService(settings)


@pytest.fixture
def generator(settings):
    return StubGenerationService(settings)


@pytest.fixture
def cache(store, settings):
    return SemanticCache(store, settings)


@pytest.fixture
def retriever(store, settings):
    return KnowledgeRetriever(store, settings)


@pytest.fixture
def pipeline(settings, embedder, cache, retriever, generator):
    return RAGPipeline(
        settings,
        embedder=embedder,
        cache=cache,
        retriever=retriever,
        generator=generator,
    )


@pytest_asyncio.fixture
async def ready_pipeline(pipeline):
    """Pipeline with both collections declared."""
    await pipeline.setup()
    return pipeline
