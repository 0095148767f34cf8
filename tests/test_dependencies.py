"""
Test suite for the service container.

Tests lazy construction and caching of collaborators, per-session service
factories and shutdown.

System role: Verification of the composition root
"""

from unittest.mock import patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.application.services import (
    EmbeddingRetryService,
    HybridSearchService,
    RagService,
    ReindexService,
    WorkNoteService,
)
from notegraph.boundary.vdb.in_memory_store import InMemoryVectorStore
from notegraph.configs import Settings
from notegraph.configs.database import DatabaseSettings
from notegraph.configs.vector_store import VectorStoreSettings
from notegraph.dependencies import ServiceContainer


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database=DatabaseSettings(url="sqlite+aiosqlite:///:memory:"),
        vector_store=VectorStoreSettings(store_type="memory", dimension=11),
    )


@pytest.fixture
def container(settings: Settings, embeddings) -> ServiceContainer:
    """Container whose embedding model is the keyword fake."""
    with patch(
        "notegraph.boundary.vdb.vector_store_factory.get_embeddings", return_value=embeddings
    ):
        container = ServiceContainer(settings)
        _ = container.vector_index
    return container


class TestServiceContainer:
    """Test suite for ServiceContainer."""

    def test_collaborators_should_be_cached(self, container: ServiceContainer) -> None:
        assert container.engine is container.engine
        assert container.chunker is container.chunker
        assert container.embedding_sync_coordinator is container.embedding_sync_coordinator
        assert isinstance(container.vector_store, InMemoryVectorStore)

    def test_containers_should_not_share_state(
        self, container: ServiceContainer, settings: Settings
    ) -> None:
        """Test each container owns its collaborators; nothing is process-global."""
        other = ServiceContainer(settings)
        assert other.chunker is not container.chunker
        assert other._vector_index is None

    def test_vector_store_should_share_container_embeddings(
        self, container: ServiceContainer, embeddings
    ) -> None:
        assert container.embeddings is embeddings
        assert container.vector_store._store.embedding is embeddings

    def test_chunker_should_follow_settings(self, container: ServiceContainer) -> None:
        assert container.chunker.chunk_chars == 2048
        assert container.vector_index.dimension == 11

    def test_session_services_should_share_collaborators(
        self, container: ServiceContainer, db_session: AsyncSession
    ) -> None:
        # Act
        work_notes = container.work_note_service(db_session)
        search = container.hybrid_search_service(db_session)
        reindex = container.reindex_service(db_session)
        retries = container.embedding_retry_service(db_session)

        # Assert
        assert isinstance(work_notes, WorkNoteService)
        assert isinstance(search, HybridSearchService)
        assert isinstance(reindex, ReindexService)
        assert isinstance(retries, EmbeddingRetryService)
        assert work_notes.coordinator is reindex.coordinator
        assert search.vector_index is container.vector_index

    def test_rag_service_should_use_generator(
        self, container: ServiceContainer, db_session: AsyncSession, generator
    ) -> None:
        # Arrange
        container._generator = generator

        # Act
        service = container.rag_service(db_session)

        # Assert
        assert isinstance(service, RagService)
        assert service.generator is generator

    @pytest.mark.asyncio
    async def test_aclose_should_clear_cache(self, container: ServiceContainer) -> None:
        # Arrange
        engine = container.engine

        # Act
        await container.aclose()

        # Assert
        assert container._engine is None
        assert container.engine is not engine
        await container.aclose()
