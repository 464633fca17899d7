"""Vector store interface and Qdrant implementation."""

import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    FilterSelector,
    HasIdCondition,
    MatchValue,
    PayloadSchemaType,
    PointStruct,
    VectorParams,
)

from pdfchat.config import QdrantSettings, get_settings
from pdfchat.exceptions import ErrorCode, VectorStoreError
from pdfchat.logging_config import get_logger
from pdfchat.observability.metrics import track_vectorstore_operation
from pdfchat.vectorstore.models import (
    ChunkMetadata,
    IndexStats,
    SearchMatch,
    VectorRecord,
    truncate_embedding,
)

logger = get_logger(__name__)

IN_MEMORY = ":memory:"


def point_id(record_id: str) -> str:
    """Qdrant point id for a record id.

    Qdrant only accepts UUIDs or unsigned integers, so the readable id is
    mapped through uuid5 and kept in the payload as ``record_id``.
    """
    return str(uuid.uuid5(uuid.NAMESPACE_URL, record_id))


@contextmanager
def _timed(operation: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    except Exception:
        track_vectorstore_operation(operation, time.perf_counter() - started, success=False)
        raise
    track_vectorstore_operation(operation, time.perf_counter() - started)


def _source_filter(source: str) -> FieldCondition:
    return FieldCondition(key="source", match=MatchValue(value=source))


class VectorStore(ABC):
    """Abstract base class for the vector index adapter.

    The adapter owns the index dimension: every vector going in, stored
    or used as a query, is truncated to it.
    """

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Vector size of the index."""
        ...

    @abstractmethod
    async def ensure_collection(self) -> None:
        """Create the index if it does not exist yet."""
        ...

    @abstractmethod
    async def upsert(self, records: list[VectorRecord]) -> int:
        """Insert or overwrite records in sequential fixed-size batches.

        A failing batch raises; batches written before it stay committed.

        Returns:
            Number of records written.

        Raises:
            VectorStoreError: If a batch fails or a vector is too short.
        """
        ...

    @abstractmethod
    async def delete_by_source(self, source: str) -> None:
        """Delete every record whose payload ``source`` matches.

        No matching records is not an error.
        """
        ...

    @abstractmethod
    async def delete_stale(self, source: str, keep_ids: list[str]) -> None:
        """Delete records of ``source`` whose record id is not in ``keep_ids``."""
        ...

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchMatch]:
        """Return at most ``top_k`` nearest records, most similar first."""
        ...

    @abstractmethod
    async def stats(self) -> IndexStats:
        """Return index counters."""
        ...

    async def close(self) -> None:
        """Release client resources."""
        return None


class QdrantVectorStore(VectorStore):
    """Qdrant implementation backed by one collection."""

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
    ) -> None:
        """Initialize Qdrant vector store.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None

    @property
    def collection(self) -> str:
        return self._settings.collection_name

    @property
    def dimension(self) -> int:
        return self._settings.dimension

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            if self._settings.url == IN_MEMORY:
                self._client = AsyncQdrantClient(location=IN_MEMORY)
            else:
                api_key = None
                if self._settings.api_key:
                    api_key = self._settings.api_key.get_secret_value()

                self._client = AsyncQdrantClient(
                    url=self._settings.url,
                    api_key=api_key,
                    timeout=self._settings.timeout,
                )
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    async def ensure_collection(self) -> None:
        client = await self._get_client()

        try:
            if await client.collection_exists(self.collection):
                return

            await client.create_collection(
                collection_name=self.collection,
                vectors_config=VectorParams(
                    size=self.dimension,
                    distance=Distance.COSINE,
                ),
            )
            await client.create_payload_index(
                collection_name=self.collection,
                field_name="source",
                field_schema=PayloadSchemaType.KEYWORD,
            )
            logger.info(
                f"Created collection: {self.collection}",
                extra={"dimension": self.dimension},
            )

        except Exception as e:
            raise VectorStoreError(
                f"Failed to create collection: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e

    async def upsert(self, records: list[VectorRecord]) -> int:
        if not records:
            return 0

        points = [
            PointStruct(
                id=point_id(record.id),
                vector=truncate_embedding(record.values, self.dimension),
                payload=record.payload(),
            )
            for record in records
        ]

        client = await self._get_client()
        batch_size = self._settings.upsert_batch_size
        written = 0

        for offset in range(0, len(points), batch_size):
            batch = points[offset : offset + batch_size]
            batch_number = offset // batch_size + 1
            try:
                with _timed("upsert"):
                    await client.upsert(
                        collection_name=self.collection,
                        points=batch,
                        wait=True,
                    )
            except Exception as e:
                raise VectorStoreError(
                    f"Failed to upsert batch {batch_number}: {e}",
                    code=ErrorCode.VECTOR_STORE_ERROR,
                    details={
                        "collection": self.collection,
                        "batch": batch_number,
                        "committed": written,
                        "error": str(e),
                    },
                ) from e

            written += len(batch)
            logger.debug(
                f"Upserted batch {batch_number}",
                extra={"collection": self.collection, "size": len(batch)},
            )

        return written

    async def delete_by_source(self, source: str) -> None:
        await self._delete(Filter(must=[_source_filter(source)]), source)

    async def delete_stale(self, source: str, keep_ids: list[str]) -> None:
        keep = [point_id(record_id) for record_id in keep_ids]
        selector = Filter(
            must=[_source_filter(source)],
            must_not=[HasIdCondition(has_id=keep)] if keep else None,
        )
        await self._delete(selector, source)

    async def _delete(self, selector: Filter, source: str) -> None:
        client = await self._get_client()

        try:
            if not await client.collection_exists(self.collection):
                return

            with _timed("delete"):
                await client.delete(
                    collection_name=self.collection,
                    points_selector=FilterSelector(filter=selector),
                    wait=True,
                )
            logger.debug(
                "Deleted records by source",
                extra={"collection": self.collection, "source": source},
            )

        except Exception as e:
            raise VectorStoreError(
                f"Failed to delete records for {source}: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "source": source, "error": str(e)},
            ) from e

    async def query(
        self,
        vector: list[float],
        top_k: int = 5,
        filters: dict[str, Any] | None = None,
    ) -> list[SearchMatch]:
        query_vector = truncate_embedding(vector, self.dimension)
        client = await self._get_client()

        try:
            query_filter = None
            if filters:
                conditions = [
                    FieldCondition(key=k, match=MatchValue(value=v))
                    for k, v in filters.items()
                ]
                query_filter = Filter(must=conditions)  # type: ignore[arg-type]

            with _timed("query"):
                results = await client.query_points(
                    collection_name=self.collection,
                    query=query_vector,
                    limit=top_k,
                    query_filter=query_filter,
                    with_payload=True,
                )

            matches: list[SearchMatch] = []
            for point in results.points:
                payload = dict(point.payload) if point.payload else {}
                matches.append(
                    SearchMatch(
                        id=str(payload.get("record_id", point.id)),
                        score=point.score if point.score is not None else 0.0,
                        metadata=ChunkMetadata.model_validate(payload),
                    )
                )
            return matches

        except Exception as e:
            raise VectorStoreError(
                f"Failed to search: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e

    async def stats(self) -> IndexStats:
        client = await self._get_client()

        try:
            if not await client.collection_exists(self.collection):
                return IndexStats(total_record_count=0)

            with _timed("count"):
                result = await client.count(collection_name=self.collection, exact=True)
            return IndexStats(total_record_count=result.count)

        except Exception as e:
            raise VectorStoreError(
                f"Failed to read index stats: {e}",
                code=ErrorCode.VECTOR_STORE_ERROR,
                details={"collection": self.collection, "error": str(e)},
            ) from e
