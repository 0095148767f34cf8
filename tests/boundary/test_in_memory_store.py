"""
Test suite for InMemoryVectorStore.

System role: Verification of the development vector store
"""

import pytest

from notegraph.boundary.vdb.in_memory_store import InMemoryVectorStore
from notegraph.boundary.vdb.vector_schemas import VectorEntry


@pytest.fixture
async def populated_store(embeddings) -> InMemoryVectorStore:
    """Store with three entries across two work notes."""
    store = InMemoryVectorStore(embeddings)
    await store.upsert([
        VectorEntry(id="WORK-1#chunk0", values=[1.0, 0.0], metadata={"work_id": "WORK-1"}),
        VectorEntry(id="WORK-1#chunk1", values=[0.7, 0.7], metadata={"work_id": "WORK-1"}),
        VectorEntry(id="WORK-2#chunk0", values=[0.0, 1.0], metadata={"work_id": "WORK-2"}),
    ])
    return store


class TestInMemoryVectorStore:
    """Test suite for InMemoryVectorStore operations."""

    @pytest.mark.asyncio
    async def test_query_should_rank_by_similarity(
        self, populated_store: InMemoryVectorStore
    ) -> None:
        # Act
        matches = await populated_store.query([1.0, 0.0], top_k=3)

        # Assert
        assert [m.id for m in matches] == ["WORK-1#chunk0", "WORK-1#chunk1", "WORK-2#chunk0"]
        assert matches[0].score == pytest.approx(1.0)
        assert matches[2].score == pytest.approx(0.0)

    @pytest.mark.asyncio
    async def test_query_should_respect_top_k(self, populated_store: InMemoryVectorStore) -> None:
        matches = await populated_store.query([0.0, 1.0], top_k=1)
        assert [m.id for m in matches] == ["WORK-2#chunk0"]

    @pytest.mark.asyncio
    async def test_equal_scores_should_order_by_id(self, embeddings) -> None:
        # Arrange
        store = InMemoryVectorStore(embeddings)
        await store.upsert([
            VectorEntry(id="WORK-2#chunk0", values=[1.0, 0.0]),
            VectorEntry(id="WORK-1#chunk0", values=[2.0, 0.0]),
        ])

        # Act
        matches = await store.query([1.0, 0.0], top_k=2)

        # Assert
        assert [m.id for m in matches] == ["WORK-1#chunk0", "WORK-2#chunk0"]

    @pytest.mark.asyncio
    async def test_query_should_apply_equality_filter(
        self, populated_store: InMemoryVectorStore
    ) -> None:
        # Act
        matches = await populated_store.query([1.0, 0.0], top_k=10, filter={"work_id": "WORK-2"})

        # Assert
        assert [m.id for m in matches] == ["WORK-2#chunk0"]

    @pytest.mark.asyncio
    async def test_query_should_omit_metadata_when_not_requested(
        self, populated_store: InMemoryVectorStore
    ) -> None:
        matches = await populated_store.query([1.0, 0.0], top_k=1, return_metadata=False)
        assert matches[0].metadata == {}

    @pytest.mark.asyncio
    async def test_empty_store_should_return_no_matches(self, embeddings) -> None:
        assert await InMemoryVectorStore(embeddings).query([1.0, 0.0], top_k=5) == []

    @pytest.mark.asyncio
    async def test_upsert_should_overwrite_by_id(
        self, populated_store: InMemoryVectorStore
    ) -> None:
        # Act
        await populated_store.upsert([
            VectorEntry(id="WORK-2#chunk0", values=[1.0, 0.0], metadata={"work_id": "WORK-2"}),
        ])

        # Assert
        assert len(populated_store.entries) == 3
        assert populated_store.entries["WORK-2#chunk0"].values == [1.0, 0.0]

    @pytest.mark.asyncio
    async def test_delete_should_ignore_unknown_ids(
        self, populated_store: InMemoryVectorStore
    ) -> None:
        # Act
        await populated_store.delete_by_ids(["WORK-1#chunk0", "WORK-404#chunk0"])

        # Assert
        assert set(populated_store.entries) == {"WORK-1#chunk1", "WORK-2#chunk0"}
