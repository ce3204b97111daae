"""Vector store interface and Qdrant implementation."""

import json
import secrets
import time
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from fnmatch import fnmatchcase
from typing import Any
from uuid import NAMESPACE_URL, uuid5

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    PointIdsList,
    PointStruct,
    SearchParams,
    VectorParams,
)

from llm_memory.config import DistanceMetric, QdrantSettings, get_settings
from llm_memory.exceptions import (
    DeserializationError,
    ErrorCode,
    LLMMemoryError,
    NotFoundError,
    VectorStoreError,
)
from llm_memory.logging_config import get_logger
from llm_memory.observability.metrics import track_vectorstore_operation
from llm_memory.vectorstore.models import SearchResult, StoredRecord, VectorRecord

logger = get_logger(__name__)


class VectorStore(ABC):
    """Abstract base class for vector stores.

    A store is bound to one named index. Records are keyed by
    store-generated keys of the form
    ``{index}:{created}:{metadata timestamp}:{random hex}``.
    """

    def __init__(self, index_name: str) -> None:
        self._index_name = index_name

    @property
    def index_name(self) -> str:
        """Name of the index this store is bound to."""
        return self._index_name

    @abstractmethod
    async def create_index(
        self,
        dimension: int,
        distance_metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        """Create the index.

        Args:
            dimension: Vector dimensionality, fixed for the index lifetime.
            distance_metric: Distance metric used by search.

        Raises:
            VectorStoreError: If the index already exists or creation fails.
        """
        ...

    @abstractmethod
    async def index_exists(self) -> bool:
        """Check whether the index exists."""
        ...

    @abstractmethod
    async def drop_index(self) -> None:
        """Delete the index and all of its records.

        Raises:
            NotFoundError: If the index does not exist.
        """
        ...

    @abstractmethod
    async def add(self, records: list[VectorRecord]) -> dict[str, str]:
        """Store records under freshly generated keys.

        Args:
            records: Records to add.

        Returns:
            Mapping of generated key to record content.

        Raises:
            VectorStoreError: If a vector length differs from the index
                dimension (nothing is written) or the write fails.
        """
        ...

    @abstractmethod
    async def get(self, key: str) -> StoredRecord:
        """Fetch one record by key.

        Raises:
            NotFoundError: If the key does not exist.
            DeserializationError: If its stored metadata cannot be decoded.
        """
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete one record by key.

        Raises:
            NotFoundError: If the key does not exist.
        """
        ...

    @abstractmethod
    async def search(self, vector: list[float], k: int = 3) -> list[SearchResult]:
        """Find the k records nearest to a vector.

        Args:
            vector: Query vector.
            k: Maximum number of results.

        Returns:
            Results in ascending distance. Records whose metadata cannot
            be decoded are skipped and logged.
        """
        ...

    async def delete_all(self) -> int:
        """Delete every record in the index, keeping the index itself.

        Returns:
            Number of records deleted.
        """
        keys = await self.list()
        for key in keys:
            await self.delete(key)
        return len(keys)

    async def close(self) -> None:
        """Release any resources held by the store."""

    def generate_key(self, metadata: dict[str, Any]) -> str:
        """Generate a unique record key.

        Args:
            metadata: Record metadata; its "timestamp" entry, if any, is
                embedded in the key.

        Returns:
            New key under the index namespace.
        """
        created = datetime.now(UTC).strftime("%Y%m%d%H%M%S%f")[:-3]
        doc_timestamp = metadata.get("timestamp", "")
        return f"{self._index_name}:{created}:{doc_timestamp}:{secrets.token_hex(8)}"

    # Defined last: inside the class body the name shadows the builtin.
    @abstractmethod
    async def list(self, pattern: str | None = None) -> list[str]:
        """List keys in the index matching ``{index}:{pattern or '*'}``."""
        ...


_QDRANT_DISTANCES = {
    DistanceMetric.COSINE: Distance.COSINE,
    DistanceMetric.L2: Distance.EUCLID,
    DistanceMetric.DOT: Distance.DOT,
}
_METRICS_BY_DISTANCE = {distance: metric for metric, distance in _QDRANT_DISTANCES.items()}


class QdrantVectorStore(VectorStore):
    """Qdrant vector store implementation.

    Each index is a Qdrant collection. Point ids are derived from record
    keys with uuid5; the key itself, the content and the JSON-encoded
    metadata are kept in the point payload.
    """

    SCROLL_BATCH = 256

    def __init__(
        self,
        index_name: str = "llm_memory",
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant vector store.

        Args:
            index_name: Collection backing the index.
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        super().__init__(index_name)
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            if self._settings.url == ":memory:":
                self._client = AsyncQdrantClient(location=":memory:")
            else:
                api_key = None
                if self._settings.api_key:
                    api_key = self._settings.api_key.get_secret_value()
                self._client = AsyncQdrantClient(url=self._settings.url, api_key=api_key)
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        """Time an operation and wrap unexpected failures."""
        start_time = time.perf_counter()
        try:
            yield
        except LLMMemoryError:
            track_vectorstore_operation(name, time.perf_counter() - start_time, False)
            raise
        except Exception as e:
            track_vectorstore_operation(name, time.perf_counter() - start_time, False)
            raise VectorStoreError(
                f"Failed to {name.replace('_', ' ')}: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"index": self._index_name, "error": str(e)},
            ) from e
        track_vectorstore_operation(name, time.perf_counter() - start_time)

    @staticmethod
    def point_id(key: str) -> str:
        """Qdrant point id for a record key."""
        return str(uuid5(NAMESPACE_URL, key))

    async def create_index(
        self,
        dimension: int,
        distance_metric: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        """Create the backing Qdrant collection."""
        client = await self._get_client()

        with self._operation("create_index"):
            if await client.collection_exists(self._index_name):
                raise VectorStoreError(
                    f"Index already exists: {self._index_name}",
                    code=ErrorCode.COLLECTION_EXISTS,
                    details={"index": self._index_name},
                )

            await client.create_collection(
                collection_name=self._index_name,
                vectors_config=VectorParams(
                    size=dimension,
                    distance=_QDRANT_DISTANCES[DistanceMetric(distance_metric)],
                ),
            )
            logger.info(
                f"Created index: {self._index_name}",
                extra={
                    "dimension": dimension,
                    "distance_metric": DistanceMetric(distance_metric).value,
                },
            )

    async def index_exists(self) -> bool:
        """Check if the backing collection exists."""
        client = await self._get_client()
        with self._operation("index_exists"):
            return await client.collection_exists(self._index_name)

    async def drop_index(self) -> None:
        """Delete the backing collection and all its points."""
        client = await self._get_client()

        with self._operation("drop_index"):
            if not await client.collection_exists(self._index_name):
                raise NotFoundError(
                    f"Index not found: {self._index_name}",
                    code=ErrorCode.COLLECTION_NOT_FOUND,
                    details={"index": self._index_name},
                )

            await client.delete_collection(self._index_name)
            logger.info(f"Dropped index: {self._index_name}")

    async def _index_params(self, client: AsyncQdrantClient) -> tuple[int, DistanceMetric]:
        """Dimension and metric of the index, read from Qdrant on every call.

        Another process may drop and recreate the index with other parameters.
        """
        if not await client.collection_exists(self._index_name):
            raise NotFoundError(
                f"Index not found: {self._index_name}",
                code=ErrorCode.COLLECTION_NOT_FOUND,
                details={"index": self._index_name},
            )
        info = await client.get_collection(self._index_name)
        params = info.config.params.vectors
        return params.size, _METRICS_BY_DISTANCE[params.distance]

    async def add(self, records: list[VectorRecord]) -> dict[str, str]:
        """Upsert records as points under new keys."""
        if not records:
            return {}

        client = await self._get_client()

        with self._operation("add"):
            dimension, _ = await self._index_params(client)
            for position, record in enumerate(records):
                if len(record.vector) != dimension:
                    raise VectorStoreError(
                        f"Vector length {len(record.vector)} does not match "
                        f"index dimension {dimension}",
                        code=ErrorCode.DIMENSION_MISMATCH,
                        details={
                            "index": self._index_name,
                            "position": position,
                            "expected": dimension,
                            "actual": len(record.vector),
                        },
                    )

            result: dict[str, str] = {}
            points: list[PointStruct] = []
            for record in records:
                key = self.generate_key(record.metadata)
                points.append(
                    PointStruct(
                        id=self.point_id(key),
                        vector=record.vector,
                        payload={
                            "key": key,
                            "content": record.content,
                            "metadata": json.dumps(record.metadata, default=str),
                        },
                    )
                )
                result[key] = record.content

            await client.upsert(collection_name=self._index_name, points=points)

        logger.debug(
            f"Added {len(points)} records",
            extra={"index": self._index_name},
        )
        return result

    async def get(self, key: str) -> StoredRecord:
        """Retrieve a point by key, with its vector."""
        client = await self._get_client()

        with self._operation("get"):
            point = await self._retrieve(client, key, with_vectors=True)
            payload = point.payload or {}
            return StoredRecord(
                key=key,
                content=payload.get("content", ""),
                vector=list(point.vector or []),
                metadata=self._decode_metadata(key, payload.get("metadata")),
            )

    async def delete(self, key: str) -> None:
        """Delete a point by key."""
        client = await self._get_client()

        with self._operation("delete"):
            await self._retrieve(client, key, with_vectors=False)
            await client.delete(
                collection_name=self._index_name,
                points_selector=PointIdsList(points=[self.point_id(key)]),
            )

        logger.debug("Deleted record", extra={"index": self._index_name, "key": key})

    async def _retrieve(self, client: AsyncQdrantClient, key: str, with_vectors: bool) -> Any:
        not_found = NotFoundError(
            f"Record not found: {key}",
            code=ErrorCode.RECORD_NOT_FOUND,
            details={"index": self._index_name, "key": key},
        )
        if not await client.collection_exists(self._index_name):
            raise not_found

        points = await client.retrieve(
            collection_name=self._index_name,
            ids=[self.point_id(key)],
            with_payload=True,
            with_vectors=with_vectors,
        )
        if not points:
            raise not_found
        return points[0]

    async def search(self, vector: list[float], k: int = 3) -> list[SearchResult]:
        """Exact KNN search by the index metric, nearest first."""
        if k < 1:
            return []

        client = await self._get_client()

        with self._operation("search"):
            _, metric = await self._index_params(client)
            response = await client.query_points(
                collection_name=self._index_name,
                query=vector,
                limit=k,
                with_payload=True,
                search_params=SearchParams(exact=True),
            )

        results: list[SearchResult] = []
        for point in response.points:
            payload = point.payload or {}
            key = payload.get("key", str(point.id))
            try:
                metadata = self._decode_metadata(key, payload.get("metadata"))
            except DeserializationError as e:
                logger.warning(
                    "Skipping search result with malformed metadata",
                    extra={"index": self._index_name, "key": key, "error": e.message},
                )
                continue

            results.append(
                SearchResult(
                    key=key,
                    content=payload.get("content", ""),
                    metadata=metadata,
                    score=self._to_distance(point.score or 0.0, metric),
                )
            )

        return results

    @staticmethod
    def _to_distance(score: float, metric: DistanceMetric) -> float:
        """Convert a Qdrant score into a distance (lower is closer)."""
        if metric is DistanceMetric.COSINE:
            return 1.0 - score
        if metric is DistanceMetric.DOT:
            return -score
        return score

    def _decode_metadata(self, key: str, raw: Any) -> dict[str, Any]:
        """Decode JSON metadata stored in a payload.

        Raises:
            DeserializationError: If the value is not a JSON object.
        """
        if raw is None or raw == "":
            return {}
        try:
            metadata = json.loads(raw)
        except (TypeError, ValueError) as e:
            raise DeserializationError(
                f"Malformed metadata for record {key}",
                details={"index": self._index_name, "key": key, "error": str(e)},
            ) from e
        if not isinstance(metadata, dict):
            raise DeserializationError(
                f"Metadata for record {key} is not a mapping",
                details={"index": self._index_name, "key": key},
            )
        return metadata

    # Defined last: inside the class body the name shadows the builtin.
    async def list(self, pattern: str | None = None) -> list[str]:
        """Scroll the collection and glob-match keys."""
        client = await self._get_client()
        glob = f"{self._index_name}:{pattern or '*'}"

        with self._operation("list"):
            if not await client.collection_exists(self._index_name):
                return []

            keys: list[str] = []
            offset = None
            while True:
                points, offset = await client.scroll(
                    collection_name=self._index_name,
                    limit=self.SCROLL_BATCH,
                    offset=offset,
                    with_payload=["key"],
                    with_vectors=False,
                )
                keys.extend(
                    point.payload["key"]
                    for point in points
                    if point.payload and "key" in point.payload
                )
                if offset is None:
                    break

        return sorted(key for key in keys if fnmatchcase(key, glob))

