"""
Dependency injection container.

Builds the long-lived collaborators (engine, session factory, vector
index, chunker, background runner, sync coordinator, generator) lazily
from settings, and per-session services on top of them.

Dependencies: notegraph.configs, notegraph.application, notegraph.boundary
System role: Composition root
"""

import logging

from langchain_core.embeddings import Embeddings
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from notegraph.application.services import (
    EmbeddingRetryService,
    EmbeddingSyncCoordinator,
    HybridSearchService,
    RagService,
    ReindexService,
    WorkNoteService,
)
from notegraph.boundary.db.connection import get_async_engine, get_async_session_factory
from notegraph.boundary.vdb.embedding_provider import LangChainEmbeddingProvider
from notegraph.boundary.vdb.vector_index import VectorIndexAdapter
from notegraph.boundary.vdb.vector_schemas import VectorStore
from notegraph.configs import Settings, get_settings
from notegraph.core.chunker import Chunker
from notegraph.workers.background import BackgroundTaskRunner

logger = logging.getLogger(__name__)


class ServiceContainer:
    """
    Container for cached collaborator instances.

    Services holding a database session are built per call from the
    cached collaborators; nothing session-bound is cached.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._embeddings: Embeddings | None = None
        self._vector_store: VectorStore | None = None
        self._vector_index: VectorIndexAdapter | None = None
        self._chunker: Chunker | None = None
        self._runner: BackgroundTaskRunner | None = None
        self._coordinator: EmbeddingSyncCoordinator | None = None
        self._generator = None

    @property
    def engine(self) -> AsyncEngine:
        """Get cached database engine."""
        if self._engine is None:
            self._engine = get_async_engine(self.settings.database.url)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Get cached session factory."""
        if self._session_factory is None:
            self._session_factory = get_async_session_factory(self.engine)
        return self._session_factory

    @property
    def embeddings(self) -> Embeddings:
        """Get cached embedding model."""
        if self._embeddings is None:
            from notegraph.boundary.vdb.vector_store_factory import get_embeddings
            self._embeddings = get_embeddings(self.settings)
        return self._embeddings

    @property
    def vector_store(self) -> VectorStore:
        """Get cached vector store."""
        if self._vector_store is None:
            from notegraph.boundary.vdb.vector_store_factory import get_vector_store
            self._vector_store = get_vector_store(self.settings, self.embeddings)
        return self._vector_store

    @property
    def vector_index(self) -> VectorIndexAdapter:
        """Get cached vector index adapter."""
        if self._vector_index is None:
            config = self.settings.vector_store
            self._vector_index = VectorIndexAdapter(
                embedding_provider=LangChainEmbeddingProvider(self.embeddings),
                store=self.vector_store,
                dimension=config.dimension,
                metadata_max_bytes=config.metadata_max_bytes,
                stale_scan_limit=config.stale_scan_limit,
            )
        return self._vector_index

    @property
    def chunker(self) -> Chunker:
        """Get cached chunker."""
        if self._chunker is None:
            config = self.settings.chunking
            self._chunker = Chunker(config.chunk_size_tokens, config.overlap_ratio)
        return self._chunker

    @property
    def runner(self) -> BackgroundTaskRunner:
        """Get cached background task runner."""
        if self._runner is None:
            self._runner = BackgroundTaskRunner()
        return self._runner

    @property
    def embedding_sync_coordinator(self) -> EmbeddingSyncCoordinator:
        """Get cached embedding sync coordinator."""
        if self._coordinator is None:
            self._coordinator = EmbeddingSyncCoordinator(
                session_factory=self.session_factory,
                vector_index=self.vector_index,
                chunker=self.chunker,
                runner=self.runner,
                retry_settings=self.settings.retry,
            )
        return self._coordinator

    @property
    def generator(self):
        """Get cached text generator."""
        if self._generator is None:
            # Lazy import keeps the chat model client out of worker startup
            from notegraph.boundary.llm.generator import LangChainGenerator, get_chat_model
            self._generator = LangChainGenerator(get_chat_model(self.settings))
        return self._generator

    def work_note_service(self, db: AsyncSession) -> WorkNoteService:
        return WorkNoteService(db=db, coordinator=self.embedding_sync_coordinator)

    def hybrid_search_service(self, db: AsyncSession) -> HybridSearchService:
        return HybridSearchService(
            db=db,
            vector_index=self.vector_index,
            settings=self.settings.search,
        )

    def rag_service(self, db: AsyncSession) -> RagService:
        return RagService(
            db=db,
            vector_index=self.vector_index,
            generator=self.generator,
            chunker=self.chunker,
            settings=self.settings.rag,
        )

    def reindex_service(self, db: AsyncSession) -> ReindexService:
        return ReindexService(
            db=db,
            coordinator=self.embedding_sync_coordinator,
            max_chunks_per_batch=self.settings.embedding.max_chunks_per_batch,
        )

    def embedding_retry_service(self, db: AsyncSession) -> EmbeddingRetryService:
        return EmbeddingRetryService(db=db, settings=self.settings.retry)

    async def aclose(self) -> None:
        """Wait for background syncs, then dispose the engine."""
        if self._runner is not None:
            await self._runner.drain()
        if self._engine is not None:
            await self._engine.dispose()
        self.clear()

    def clear(self) -> None:
        """Clear all cached instances."""
        self._engine = None
        self._session_factory = None
        self._embeddings = None
        self._vector_store = None
        self._vector_index = None
        self._chunker = None
        self._runner = None
        self._coordinator = None
        self._generator = None

