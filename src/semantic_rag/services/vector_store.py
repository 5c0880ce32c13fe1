"""Qdrant vector store client used by both the knowledge index and the cache."""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Dict, List, Optional, Sequence, Tuple

from qdrant_client import QdrantClient
from qdrant_client.http.exceptions import UnexpectedResponse
from qdrant_client.models import Distance, PointStruct, VectorParams

from semantic_rag.config import DistanceMetric, Settings
from semantic_rag.models.vector import Embedding, SearchHit
from semantic_rag.utils.errors import CollectionError, StoreSearchError, StoreWriteError
from semantic_rag.utils.logging import get_logger

logger = get_logger("vector_store")


def _is_not_found(error: Exception) -> bool:
    if isinstance(error, UnexpectedResponse):
        return getattr(error, "status_code", None) == 404
    # Local mode and some client versions raise a generic error on 404
    msg = str(error).lower()
    return "not found" in msg or "404" in msg


def _is_already_exists(error: Exception) -> bool:
    if isinstance(error, UnexpectedResponse) and getattr(error, "status_code", None) == 409:
        return True
    return "already exists" in str(error).lower()


class VectorStoreService:
    """
    Narrow capability over a Qdrant deployment.

    Covers collection lifecycle, batched upsert and nearest-neighbour
    search with payloads. It holds no policy: the semantic cache and the
    knowledge retriever decide what a result means.

    The underlying `QdrantClient` is synchronous; every call is off-loaded
    with `asyncio.to_thread` so a slow store never blocks the event loop.
    """

    def __init__(self, settings: Settings, client: Optional[QdrantClient] = None) -> None:
        self._settings = settings
        self._client = client
        # Declared sizes, filled in by create_collection at start-up
        self._dimensions: Dict[str, int] = {}

    def _get_client(self) -> QdrantClient:
        if self._client is not None:
            return self._client

        self._client = QdrantClient(
            url=self._settings.qdrant.url,
            api_key=self._settings.qdrant.api_key,
            timeout=self._settings.qdrant.timeout,
            prefer_grpc=self._settings.qdrant.prefer_grpc,
        )
        return self._client

    @staticmethod
    def new_point_id() -> str:
        """Generate a fresh point id (no content deduplication)."""
        return str(uuid.uuid4())

    async def create_collection(
        self, name: str, vector_size: int, distance: DistanceMetric
    ) -> None:
        """Declare a collection; a no-op when it already exists with the same size and metric."""

        def _ensure() -> None:
            client = self._get_client()
            try:
                info = client.get_collection(name)
            except Exception as e:
                if not _is_not_found(e):
                    raise
                try:
                    client.create_collection(
                        collection_name=name,
                        vectors_config=VectorParams(
                            size=vector_size, distance=Distance(distance.value)
                        ),
                    )
                    logger.info(
                        f"Created collection {name} (size={vector_size}, distance={distance.value})"
                    )
                except Exception as create_error:
                    # Another process declared it between the lookup and the create
                    if not _is_already_exists(create_error):
                        raise
                    logger.debug(f"Collection {name} already exists, skipping create")
                return

            vectors = getattr(info.config.params, "vectors", None)
            # Named-vector configs are a dict; size and distance are not validated then
            current_size = getattr(vectors, "size", None)
            current_distance = getattr(vectors, "distance", None)

            if current_size is not None and int(current_size) != int(vector_size):
                raise CollectionError(
                    "Collection vector size mismatch",
                    collection=name,
                    details={"expected": vector_size, "actual": int(current_size)},
                )
            if current_distance is not None and Distance(current_distance) != Distance(
                distance.value
            ):
                raise CollectionError(
                    "Collection distance metric mismatch",
                    collection=name,
                    details={
                        "expected": distance.value,
                        "actual": Distance(current_distance).value,
                    },
                )
            logger.debug(f"Collection {name} already exists, skipping create")

        try:
            await asyncio.to_thread(_ensure)
        except CollectionError:
            raise
        except Exception as e:
            raise CollectionError(
                f"Failed to ensure collection: {e}",
                collection=name,
                details={"error": str(e)},
            ) from e

        self._dimensions[name] = vector_size
        logger.info(f"Collection ensured: {name} (vector_size={vector_size})")

    async def upsert(
        self,
        collection_name: str,
        point_id: str,
        vector: Embedding,
        payload: Dict[str, Any],
    ) -> None:
        """Insert one point."""
        await self.upsert_many(collection_name, [(point_id, vector, payload)])
        logger.debug(f"Upserted point {point_id} into {collection_name}")

    async def upsert_many(
        self,
        collection_name: str,
        points: Sequence[Tuple[str, Embedding, Dict[str, Any]]],
    ) -> int:
        """
        Insert points in a single request.

        Every vector is checked before anything is sent, so a dimension
        mismatch writes nothing.

        Returns:
            Number of points written
        """
        if not points:
            return 0

        expected = self._dimensions.get(collection_name)
        if expected is not None:
            for index, (point_id, vector, _) in enumerate(points):
                if len(vector) != expected:
                    raise StoreWriteError(
                        "Vector dimension does not match the collection",
                        collection=collection_name,
                        details={
                            "expected": expected,
                            "actual": len(vector),
                            "point_id": point_id,
                            "index": index,
                            "written": 0,
                        },
                    )

        structs = [
            PointStruct(id=point_id, vector=list(vector), payload=payload)
            for point_id, vector, payload in points
        ]

        def _upsert() -> None:
            self._get_client().upsert(
                collection_name=collection_name, points=structs, wait=True
            )

        try:
            await asyncio.to_thread(_upsert)
        except Exception as e:
            logger.error(f"Upsert of {len(structs)} point(s) into {collection_name} failed: {e}")
            details: Dict[str, Any] = {"points": len(structs), "error": str(e)}
            if len(structs) == 1:
                details["point_id"] = structs[0].id
            raise StoreWriteError(
                f"Failed to upsert point(s): {e}",
                collection=collection_name,
                details=details,
            ) from e

        return len(structs)

    async def search(
        self,
        collection_name: str,
        query_vector: Embedding,
        limit: int = 1,
        with_payload: bool = True,
        score_threshold: Optional[float] = None,
    ) -> List[SearchHit]:
        """
        Return up to `limit` nearest points, best match first.

        An empty collection, or nothing within `score_threshold`, yields an
        empty list. Only transport or auth failures raise.
        """

        def _search() -> List[SearchHit]:
            response = self._get_client().query_points(
                collection_name=collection_name,
                query=list(query_vector),
                limit=limit,
                with_payload=with_payload,
                score_threshold=score_threshold,
            )
            return [
                SearchHit(id=point.id, score=point.score, payload=point.payload or {})
                for point in response.points
            ]

        try:
            hits = await asyncio.to_thread(_search)
        except Exception as e:
            logger.error(f"An error occurred while searching for points in {collection_name}: {e}")
            raise StoreSearchError(
                f"Failed to search collection: {e}",
                collection=collection_name,
                details={"error": str(e)},
            ) from e

        logger.debug(f"Search in {collection_name} returned {len(hits)} hit(s)")
        return hits

    async def count(self, collection_name: str) -> int:
        """Return the exact number of points in a collection."""

        def _count() -> int:
            return self._get_client().count(collection_name=collection_name, exact=True).count

        try:
            return await asyncio.to_thread(_count)
        except Exception as e:
            raise StoreSearchError(
                f"Failed to count points: {e}",
                collection=collection_name,
                details={"error": str(e)},
            ) from e

    def close(self) -> None:
        """Release the underlying client, if one was created."""
        if self._client is not None:
            self._client.close()
            self._client = None

    async def ping(self) -> bool:
        """Check connectivity by listing collections."""
        try:
            await asyncio.to_thread(self._get_client().get_collections)
            return True
        except Exception as e:
            logger.warning(f"Qdrant connection check failed: {e}")
            return False
