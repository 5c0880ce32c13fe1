"""Tests for the semantic cache and the knowledge retriever."""

import pytest

from semantic_rag.services.knowledge_retriever import DOCUMENT_FIELD
from semantic_rag.services.semantic_cache import ANSWER_FIELD
from semantic_rag.utils.errors import NoMatchError, StoreSearchError

QUERY = [1.0, 0.0, 0.0, 0.0]
NEARBY = [0.9, 0.1, 0.0, 0.0]
FAR = [0.0, 0.0, 0.0, 5.0]


class TestSemanticCache:
    @pytest.mark.asyncio
    async def test_lookup_on_empty_cache_is_a_miss(self, cache):
        await cache.setup()

        assert await cache.lookup(QUERY) is None

    @pytest.mark.asyncio
    async def test_store_then_lookup_nearby(self, cache, store):
        await cache.setup()

        point_id = await cache.store(QUERY, "Paris.")

        assert await cache.lookup(NEARBY) == "Paris."
        assert await store.count(cache.collection_name) == 1
        assert point_id

    @pytest.mark.asyncio
    async def test_entries_are_never_deduplicated(self, cache, store):
        await cache.setup()

        await cache.store(QUERY, "Paris.")
        await cache.store(QUERY, "Paris.")

        assert await store.count(cache.collection_name) == 2

    @pytest.mark.asyncio
    async def test_max_distance_turns_far_hits_into_misses(self, cache):
        await cache.setup()
        await cache.store(QUERY, "Paris.")

        cache.max_distance = 1.0

        assert await cache.lookup(NEARBY) == "Paris."
        assert await cache.lookup(FAR) is None

    @pytest.mark.asyncio
    async def test_point_without_answer_is_a_miss(self, cache, store):
        await cache.setup()
        await store.upsert(cache.collection_name, store.new_point_id(), QUERY, {"other": 1})

        assert await cache.lookup(QUERY) is None

    @pytest.mark.asyncio
    async def test_stored_payload_uses_answer_field(self, cache, store):
        await cache.setup()
        await cache.store(QUERY, "Paris.")

        hits = await store.search(cache.collection_name, QUERY)

        assert hits[0].payload == {ANSWER_FIELD: "Paris."}

    @pytest.mark.asyncio
    async def test_lookup_propagates_transport_failure(self, cache):
        # Collection never declared
        with pytest.raises(StoreSearchError):
            await cache.lookup(QUERY)


class TestKnowledgeRetriever:
    @pytest.mark.asyncio
    async def test_empty_collection_raises_no_match(self, retriever):
        await retriever.setup()

        with pytest.raises(NoMatchError) as exc_info:
            await retriever.retrieve(QUERY)

        assert exc_info.value.message == "There's nothing matching in the knowledge base"
        assert exc_info.value.details["collection"] == retriever.collection_name

    @pytest.mark.asyncio
    async def test_returns_nearest_document(self, retriever):
        await retriever.setup()
        await retriever.add_document([1.0, 0.0, 0.0, 0.0], "Paris is the capital of France.")
        await retriever.add_document([0.0, 1.0, 0.0, 0.0], "Berlin is the capital of Germany.")

        assert await retriever.retrieve(NEARBY) == "Paris is the capital of France."

    @pytest.mark.asyncio
    async def test_point_without_document_raises_no_match(self, retriever, store):
        await retriever.setup()
        await store.upsert(retriever.collection_name, store.new_point_id(), QUERY, {"title": "x"})

        with pytest.raises(NoMatchError):
            await retriever.retrieve(QUERY)

    @pytest.mark.asyncio
    async def test_document_payload_field(self, retriever, store):
        await retriever.setup()
        await retriever.add_document(QUERY, "Paris is the capital of France.")

        hits = await store.search(retriever.collection_name, QUERY)

        assert hits[0].payload == {DOCUMENT_FIELD: "Paris is the capital of France."}
