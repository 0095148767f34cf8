"""
S3 Vectors store for production retrieval.

Talks to Amazon S3 Vectors through the boto3 ``s3vectors`` client. Calls
are blocking, so each runs in a worker thread; throttling and transient
service errors are retried with exponential backoff and jitter.

Index requirements: cosine distance, dimension matching the embedding
model, and work_id / person_ids / dept_name / category / created_at_bucket
as filterable metadata.

Dependencies: boto3, botocore, tenacity
System role: Production vector store (S3 Vectors)
"""

import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import ClientError
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from notegraph.boundary.vdb.vector_schemas import VectorEntry, VectorMatch, VectorStore
from notegraph.core.exceptions import VectorStoreError

logger = logging.getLogger(__name__)

# Service-side request limits.
MAX_PUT_BATCH = 500
MAX_DELETE_BATCH = 500
MAX_TOP_K = 100

RETRYABLE_ERROR_CODES = frozenset({
    "ThrottlingException",
    "TooManyRequestsException",
    "ServiceUnavailableException",
    "InternalServerException",
    "RequestTimeout",
})


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code") in RETRYABLE_ERROR_CODES
    return False


_s3_retry = retry(
    retry=retry_if_exception(_is_retryable),
    stop=stop_after_attempt(5),
    wait=wait_exponential_jitter(initial=1, max=30, jitter=5),
    before_sleep=lambda retry_state: logger.warning(
        f"{__name__}:{retry_state.fn.__name__} - Retry "
        f"{retry_state.attempt_number}/5 after throttling"
    ),
    reraise=True,
)


def build_filter(filter: dict[str, str] | None) -> dict[str, Any] | None:
    """Translate an equality map into S3 Vectors filter syntax."""
    if not filter:
        return None
    clauses = [{key: {"$eq": value}} for key, value in filter.items()]
    return clauses[0] if len(clauses) == 1 else {"$and": clauses}


class S3VectorsStore(VectorStore):
    """
    S3 Vectors-backed VectorStore.

    Attributes:
        vectors_bucket: Vector bucket name
        index_name: Index within the bucket
    """

    def __init__(
        self,
        vectors_bucket: str,
        index_name: str,
        region: str,
        client: Any | None = None,
    ) -> None:
        """
        Initialize S3 Vectors store.

        Args:
            vectors_bucket: S3 Vectors bucket name
            index_name: Index name within the bucket
            region: AWS region
            client: Pre-built boto3 s3vectors client (for tests)
        """
        self.vectors_bucket = vectors_bucket
        self.index_name = index_name
        self._client = client or boto3.client("s3vectors", region_name=region)
        logger.info(
            f"{__name__}:__init__ - Using bucket={vectors_bucket}, index={index_name}, region={region}"
        )

    @_s3_retry
    def _put_vectors(self, vectors: list[dict[str, Any]]) -> None:
        self._client.put_vectors(
            vectorBucketName=self.vectors_bucket,
            indexName=self.index_name,
            vectors=vectors,
        )

    @_s3_retry
    def _delete_vectors(self, keys: list[str]) -> None:
        self._client.delete_vectors(
            vectorBucketName=self.vectors_bucket,
            indexName=self.index_name,
            keys=keys,
        )

    @_s3_retry
    def _query_vectors(self, request: dict[str, Any]) -> dict[str, Any]:
        return self._client.query_vectors(
            vectorBucketName=self.vectors_bucket,
            indexName=self.index_name,
            **request,
        )

    async def upsert(self, entries: list[VectorEntry]) -> None:
        """
        Upsert vectors in service-sized batches.

        Raises:
            VectorStoreError: If a batch fails after retries
        """
        vectors = [
            {"key": e.id, "data": {"float32": e.values}, "metadata": e.metadata}
            for e in entries
        ]
        try:
            for start in range(0, len(vectors), MAX_PUT_BATCH):
                await asyncio.to_thread(self._put_vectors, vectors[start:start + MAX_PUT_BATCH])
        except ClientError as e:
            raise VectorStoreError(
                message="Failed to upsert vectors to S3 Vectors",
                operation="upsert",
                details={"error": str(e), "vector_count": len(vectors)},
            ) from e

    async def delete_by_ids(self, ids: list[str]) -> None:
        """
        Delete vectors by key.

        Raises:
            VectorStoreError: If a batch fails after retries
        """
        try:
            for start in range(0, len(ids), MAX_DELETE_BATCH):
                await asyncio.to_thread(self._delete_vectors, ids[start:start + MAX_DELETE_BATCH])
        except ClientError as e:
            raise VectorStoreError(
                message="Failed to delete vectors from S3 Vectors",
                operation="delete",
                details={"error": str(e), "id_count": len(ids)},
            ) from e

    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter: dict[str, str] | None = None,
        return_metadata: bool = True,
    ) -> list[VectorMatch]:
        """
        Query nearest neighbors; cosine distance is reported as ``1 - distance``.

        top_k is capped at the service maximum.

        Raises:
            VectorStoreError: If the query fails after retries
        """
        if top_k > MAX_TOP_K:
            logger.warning(
                f"{__name__}:query - top_k={top_k} capped at {MAX_TOP_K}"
            )
        request: dict[str, Any] = {
            "queryVector": {"float32": vector},
            "topK": min(top_k, MAX_TOP_K),
            "returnMetadata": return_metadata,
            "returnDistance": True,
        }
        s3_filter = build_filter(filter)
        if s3_filter is not None:
            request["filter"] = s3_filter

        try:
            response = await asyncio.to_thread(self._query_vectors, request)
        except ClientError as e:
            raise VectorStoreError(
                message="Failed to query vectors from S3 Vectors",
                operation="query",
                details={"error": str(e), "top_k": top_k},
            ) from e

        return [
            VectorMatch(
                id=item["key"],
                score=1.0 - float(item.get("distance", 1.0)),
                metadata=item.get("metadata") or {},
            )
            for item in response.get("vectors", [])
        ]
