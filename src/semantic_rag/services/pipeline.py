"""Answer pipeline: embed, probe the semantic cache, retrieve, generate, cache.

Flow per request (strictly sequential, no branching back):

    Embed -> CacheLookup -(hit)-> respond
                 |
               (miss)
                 v
    Retrieve -> Generate -> CacheStore -> respond

Failure policy:
- Embed, Retrieve and Generate failures abort the request.
- CacheLookup fails open: any error is logged and treated as a miss.
- CacheStore failures abort the request unless CACHE_WRITE_BEST_EFFORT is set.
"""

import time
from typing import Dict

from semantic_rag.config import Settings
from semantic_rag.models.prompt import PipelineResult
from semantic_rag.services.embedding_service import EmbeddingService
from semantic_rag.services.generation_service import GenerationService
from semantic_rag.services.knowledge_retriever import KnowledgeRetriever
from semantic_rag.services.semantic_cache import SemanticCache
from semantic_rag.utils.errors import RAGException
from semantic_rag.utils.logging import get_logger

logger = get_logger("pipeline")

STAGE_EMBED = "embed"
STAGE_CACHE_LOOKUP = "cache_lookup"
STAGE_RETRIEVE = "retrieve"
STAGE_GENERATE = "generate"
STAGE_CACHE_STORE = "cache_store"

_STAGE_MESSAGES = {
    STAGE_EMBED: "An error occurred while embedding the prompt",
    STAGE_RETRIEVE: "An error occurred while retrieving context",
    STAGE_GENERATE: "Something went wrong while generating the answer",
    STAGE_CACHE_STORE: "Something went wrong while adding the answer to the cache",
}


def _tag_stage(error: RAGException, stage: str) -> RAGException:
    """Prefix the error message with the failing stage and record it in details."""
    error.details["stage"] = stage
    error.message = f"{_STAGE_MESSAGES[stage]}: {error.message}"
    error.args = (error.message,)
    return error


class RAGPipeline:
    """Orchestrates one answer per prompt over shared, stateless clients."""

    def __init__(
        self,
        settings: Settings,
        embedder: EmbeddingService,
        cache: SemanticCache,
        retriever: KnowledgeRetriever,
        generator: GenerationService,
    ) -> None:
        self._embedder = embedder
        self._cache = cache
        self._retriever = retriever
        self._generator = generator
        self.write_best_effort = settings.cache.write_best_effort

    @property
    def embedder(self) -> EmbeddingService:
        return self._embedder

    @property
    def cache(self) -> SemanticCache:
        return self._cache

    @property
    def retriever(self) -> KnowledgeRetriever:
        return self._retriever

    async def setup(self) -> None:
        """Declare both collections; safe to call on every start."""
        await self._retriever.setup()
        await self._cache.setup()

    async def answer(self, prompt: str) -> PipelineResult:
        """Run the pipeline for one prompt."""
        t_start = time.perf_counter()
        timings: Dict[str, float] = {}

        # -- Embed --
        t_stage = time.perf_counter()
        try:
            embedding = await self._embedder.embed(prompt)
        except RAGException as e:
            raise _tag_stage(e, STAGE_EMBED) from e
        timings[STAGE_EMBED] = (time.perf_counter() - t_stage) * 1000

        # -- CacheLookup (fail-open) --
        t_stage = time.perf_counter()
        try:
            cached = await self._cache.lookup(embedding)
        except Exception as e:
            logger.warning(f"Semantic cache lookup failed, continuing as a miss: {e}")
            cached = None
        timings[STAGE_CACHE_LOOKUP] = (time.perf_counter() - t_stage) * 1000

        if cached is not None:
            total_ms = (time.perf_counter() - t_start) * 1000
            logger.info(f"Answered from semantic cache in {total_ms:.1f}ms")
            return PipelineResult(answer=cached, cached=True, timings_ms=timings)

        # -- Retrieve --
        t_stage = time.perf_counter()
        try:
            context = await self._retriever.retrieve(embedding)
        except RAGException as e:
            raise _tag_stage(e, STAGE_RETRIEVE) from e
        timings[STAGE_RETRIEVE] = (time.perf_counter() - t_stage) * 1000

        # -- Generate --
        t_stage = time.perf_counter()
        try:
            answer = await self._generator.generate(prompt, context)
        except RAGException as e:
            raise _tag_stage(e, STAGE_GENERATE) from e
        timings[STAGE_GENERATE] = (time.perf_counter() - t_stage) * 1000

        # -- CacheStore --
        t_stage = time.perf_counter()
        try:
            await self._cache.store(embedding, answer)
        except RAGException as e:
            if not self.write_best_effort:
                raise _tag_stage(e, STAGE_CACHE_STORE) from e
            logger.warning(f"Failed to cache answer, returning it anyway: {e.message}")
        timings[STAGE_CACHE_STORE] = (time.perf_counter() - t_stage) * 1000

        total_ms = (time.perf_counter() - t_start) * 1000
        logger.info(
            f"Pipeline total: {total_ms:.1f}ms ("
            + ", ".join(f"{stage}={ms:.1f}" for stage, ms in timings.items())
            + ")"
        )
        return PipelineResult(answer=answer, cached=False, timings_ms=timings)
