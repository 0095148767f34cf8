"""
Test suite for S3VectorsStore.

Uses a MagicMock in place of the boto3 s3vectors client.

System role: Verification of the production vector store mapping
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from notegraph.boundary.vdb.s3_vectors_store import (
    MAX_PUT_BATCH,
    MAX_TOP_K,
    S3VectorsStore,
    build_filter,
)
from notegraph.boundary.vdb.vector_schemas import VectorEntry
from notegraph.core.exceptions import VectorStoreError


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, "QueryVectors")


@pytest.fixture
def s3_client() -> MagicMock:
    return MagicMock()


@pytest.fixture
def store(s3_client: MagicMock) -> S3VectorsStore:
    return S3VectorsStore("notes-bucket", "notes-index", "us-east-1", client=s3_client)


class TestBuildFilter:
    """Test suite for build_filter()."""

    def test_single_field_should_be_plain_eq(self) -> None:
        assert build_filter({"work_id": "WORK-1"}) == {"work_id": {"$eq": "WORK-1"}}

    def test_multiple_fields_should_be_anded(self) -> None:
        assert build_filter({"category": "report", "dept_name": "Finance"}) == {
            "$and": [{"category": {"$eq": "report"}}, {"dept_name": {"$eq": "Finance"}}]
        }

    def test_empty_filter_should_be_none(self) -> None:
        assert build_filter(None) is None
        assert build_filter({}) is None


class TestS3VectorsStore:
    """Test suite for S3VectorsStore operations."""

    @pytest.mark.asyncio
    async def test_query_should_convert_distance_to_score(
        self, store: S3VectorsStore, s3_client: MagicMock
    ) -> None:
        # Arrange
        s3_client.query_vectors.return_value = {
            "vectors": [
                {"key": "WORK-1#chunk0", "distance": 0.1, "metadata": {"work_id": "WORK-1"}},
                {"key": "WORK-2#chunk0", "distance": 0.4},
            ]
        }

        # Act
        matches = await store.query([0.1, 0.2], top_k=2, filter={"work_id": "WORK-1"})

        # Assert
        assert matches[0].score == pytest.approx(0.9)
        assert matches[1].score == pytest.approx(0.6)
        assert matches[1].metadata == {}
        kwargs = s3_client.query_vectors.call_args.kwargs
        assert kwargs["vectorBucketName"] == "notes-bucket"
        assert kwargs["filter"] == {"work_id": {"$eq": "WORK-1"}}

    @pytest.mark.asyncio
    async def test_query_should_cap_top_k(
        self, store: S3VectorsStore, s3_client: MagicMock
    ) -> None:
        # Arrange
        s3_client.query_vectors.return_value = {"vectors": []}

        # Act
        await store.query([0.1], top_k=500)

        # Assert
        assert s3_client.query_vectors.call_args.kwargs["topK"] == MAX_TOP_K
        assert "filter" not in s3_client.query_vectors.call_args.kwargs

    @pytest.mark.asyncio
    async def test_upsert_should_batch_put_requests(
        self, store: S3VectorsStore, s3_client: MagicMock
    ) -> None:
        # Arrange
        entries = [
            VectorEntry(id=f"WORK-1#chunk{i}", values=[0.1], metadata={"work_id": "WORK-1"})
            for i in range(MAX_PUT_BATCH + 1)
        ]

        # Act
        await store.upsert(entries)

        # Assert
        assert s3_client.put_vectors.call_count == 2
        first = s3_client.put_vectors.call_args_list[0].kwargs["vectors"][0]
        assert first == {
            "key": "WORK-1#chunk0",
            "data": {"float32": [0.1]},
            "metadata": {"work_id": "WORK-1"},
        }

    @pytest.mark.asyncio
    async def test_client_error_should_map_to_vector_store_error(
        self, store: S3VectorsStore, s3_client: MagicMock
    ) -> None:
        """Test a non-retryable service error surfaces as VectorStoreError."""
        # Arrange
        s3_client.query_vectors.side_effect = _client_error("AccessDeniedException")

        # Act
        with pytest.raises(VectorStoreError) as exc_info:
            await store.query([0.1], top_k=5)

        # Assert
        assert exc_info.value.details["operation"] == "query"
        assert s3_client.query_vectors.call_count == 1

    @pytest.mark.asyncio
    async def test_delete_error_should_map_to_vector_store_error(
        self, store: S3VectorsStore, s3_client: MagicMock
    ) -> None:
        s3_client.delete_vectors.side_effect = _client_error("ValidationException")

        with pytest.raises(VectorStoreError):
            await store.delete_by_ids(["WORK-1#chunk0"])
