"""Unit tests for the Qdrant vector store client."""

import pytest
from unittest.mock import MagicMock

from semantic_rag.config import DistanceMetric
from semantic_rag.services.vector_store import VectorStoreService
from semantic_rag.utils.errors import CollectionError, StoreSearchError, StoreWriteError


class TestCreateCollection:
    @pytest.mark.asyncio
    async def test_creates_missing_collection(self, store, qdrant_client):
        await store.create_collection("docs", 4, DistanceMetric.COSINE)

        info = qdrant_client.get_collection("docs")
        assert info.config.params.vectors.size == 4

    @pytest.mark.asyncio
    async def test_second_call_is_a_noop(self, store):
        await store.create_collection("docs", 4, DistanceMetric.COSINE)
        await store.upsert("docs", store.new_point_id(), [0.1, 0.2, 0.3, 0.4], {"document": "a"})

        await store.create_collection("docs", 4, DistanceMetric.COSINE)

        assert await store.count("docs") == 1

    @pytest.mark.asyncio
    async def test_size_mismatch_raises(self, settings, qdrant_client):
        await VectorStoreService(settings, client=qdrant_client).create_collection(
            "docs", 4, DistanceMetric.COSINE
        )

        with pytest.raises(CollectionError) as exc_info:
            await VectorStoreService(settings, client=qdrant_client).create_collection(
                "docs", 8, DistanceMetric.COSINE
            )

        assert exc_info.value.details == {"collection": "docs", "expected": 8, "actual": 4}

    @pytest.mark.asyncio
    async def test_distance_mismatch_raises(self, settings, qdrant_client):
        await VectorStoreService(settings, client=qdrant_client).create_collection(
            "answers", 4, DistanceMetric.COSINE
        )

        with pytest.raises(CollectionError) as exc_info:
            await VectorStoreService(settings, client=qdrant_client).create_collection(
                "answers", 4, DistanceMetric.EUCLID
            )

        assert exc_info.value.details == {
            "collection": "answers",
            "expected": "Euclid",
            "actual": "Cosine",
        }
        assert qdrant_client.get_collection("answers").config.params.vectors.distance == "Cosine"

    @pytest.mark.asyncio
    async def test_already_exists_race_is_swallowed(self, settings):
        client = MagicMock()
        client.get_collection.side_effect = ValueError("Collection docs not found")
        client.create_collection.side_effect = ValueError("Collection docs already exists")
        store = VectorStoreService(settings, client=client)

        await store.create_collection("docs", 4, DistanceMetric.EUCLID)

        client.create_collection.assert_called_once()

    @pytest.mark.asyncio
    async def test_transport_failure_raises_collection_error(self, settings):
        client = MagicMock()
        client.get_collection.side_effect = ConnectionError("connection refused")
        store = VectorStoreService(settings, client=client)

        with pytest.raises(CollectionError) as exc_info:
            await store.create_collection("docs", 4, DistanceMetric.COSINE)

        assert "connection refused" in exc_info.value.message
        client.create_collection.assert_not_called()


class TestUpsert:
    @pytest.mark.asyncio
    async def test_rejects_wrong_dimension(self, store):
        await store.create_collection("docs", 4, DistanceMetric.COSINE)

        with pytest.raises(StoreWriteError) as exc_info:
            await store.upsert("docs", store.new_point_id(), [0.1, 0.2], {"document": "a"})

        assert exc_info.value.details["expected"] == 4
        assert await store.count("docs") == 0

    @pytest.mark.asyncio
    async def test_missing_collection_raises(self, store):
        with pytest.raises(StoreWriteError):
            await store.upsert("nowhere", store.new_point_id(), [0.1, 0.2, 0.3, 0.4], {})

    @pytest.mark.asyncio
    async def test_upsert_many_writes_all_points(self, store):
        await store.create_collection("docs", 4, DistanceMetric.COSINE)

        written = await store.upsert_many(
            "docs",
            [
                (store.new_point_id(), [1.0, 0.0, 0.0, 0.0], {"document": "a"}),
                (store.new_point_id(), [0.0, 1.0, 0.0, 0.0], {"document": "b"}),
            ],
        )

        assert written == 2
        assert await store.count("docs") == 2

    @pytest.mark.asyncio
    async def test_upsert_many_writes_nothing_on_bad_vector(self, store):
        await store.create_collection("docs", 4, DistanceMetric.COSINE)

        with pytest.raises(StoreWriteError) as exc_info:
            await store.upsert_many(
                "docs",
                [
                    (store.new_point_id(), [1.0, 0.0, 0.0, 0.0], {"document": "a"}),
                    (store.new_point_id(), [0.0, 1.0], {"document": "b"}),
                ],
            )

        assert exc_info.value.details["index"] == 1
        assert exc_info.value.details["written"] == 0
        assert await store.count("docs") == 0

    @pytest.mark.asyncio
    async def test_upsert_many_empty_is_a_noop(self, settings):
        client = MagicMock()
        store = VectorStoreService(settings, client=client)

        assert await store.upsert_many("docs", []) == 0
        client.upsert.assert_not_called()

    def test_point_ids_are_unique(self):
        assert VectorStoreService.new_point_id() != VectorStoreService.new_point_id()


class TestSearch:
    @pytest.mark.asyncio
    async def test_empty_collection_returns_no_hits(self, store):
        await store.create_collection("docs", 4, DistanceMetric.COSINE)

        assert await store.search("docs", [1.0, 0.0, 0.0, 0.0]) == []

    @pytest.mark.asyncio
    async def test_returns_nearest_with_payload(self, store):
        await store.create_collection("docs", 4, DistanceMetric.COSINE)
        await store.upsert("docs", store.new_point_id(), [1.0, 0.0, 0.0, 0.0], {"document": "east"})
        await store.upsert("docs", store.new_point_id(), [0.0, 1.0, 0.0, 0.0], {"document": "north"})

        hits = await store.search("docs", [0.9, 0.1, 0.0, 0.0], limit=1)

        assert len(hits) == 1
        assert hits[0].get("document") == "east"

    @pytest.mark.asyncio
    async def test_euclid_score_is_a_distance(self, store):
        await store.create_collection("cache", 4, DistanceMetric.EUCLID)
        await store.upsert("cache", store.new_point_id(), [0.0, 0.0, 0.0, 0.0], {"answer": "a"})

        hits = await store.search("cache", [3.0, 4.0, 0.0, 0.0])

        assert hits[0].score == pytest.approx(5.0)

    @pytest.mark.asyncio
    async def test_score_threshold_filters_distant_points(self, store):
        await store.create_collection("cache", 4, DistanceMetric.EUCLID)
        await store.upsert("cache", store.new_point_id(), [0.0, 0.0, 0.0, 0.0], {"answer": "a"})

        assert await store.search("cache", [3.0, 4.0, 0.0, 0.0], score_threshold=1.0) == []

    @pytest.mark.asyncio
    async def test_missing_collection_raises(self, store):
        with pytest.raises(StoreSearchError) as exc_info:
            await store.search("nowhere", [1.0, 0.0, 0.0, 0.0])

        assert exc_info.value.details["collection"] == "nowhere"


class TestPing:
    @pytest.mark.asyncio
    async def test_ping_ok(self, store):
        assert await store.ping() is True

    @pytest.mark.asyncio
    async def test_ping_failure(self, settings):
        client = MagicMock()
        client.get_collections.side_effect = ConnectionError("down")

        assert await VectorStoreService(settings, client=client).ping() is False
