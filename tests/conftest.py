"""
Shared test fixtures and configuration for entire test suite.

Provides: in-memory SQLite engine with the FTS5 schema, session factory,
in-memory vector index with keyword embeddings, fake chat model,
background runner, coordinator and data builders.
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite, langchain_core
System role: Test infrastructure and fixture management
"""

import re
from datetime import datetime, timezone
from typing import AsyncIterator, Awaitable, Callable

import pytest
from langchain_core.embeddings import Embeddings
from langchain_core.language_models import FakeListChatModel
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from notegraph.application.services.embedding_sync_service import EmbeddingSyncCoordinator
from notegraph.boundary.db.connection import (
    get_async_engine,
    get_async_session_factory,
    init_models,
)
from notegraph.boundary.db.CRUD.work_note_crud import work_note_crud
from notegraph.boundary.db.models.work_note_model import (
    DepartmentModel,
    PersonModel,
    WorkNoteModel,
)
from notegraph.boundary.llm.generator import LangChainGenerator
from notegraph.boundary.vdb.embedding_provider import LangChainEmbeddingProvider
from notegraph.boundary.vdb.in_memory_store import InMemoryVectorStore
from notegraph.boundary.vdb.vector_index import VectorIndexAdapter
from notegraph.configs.retry import RetrySettings
from notegraph.core.chunker import Chunker
from notegraph.workers.background import BackgroundTaskRunner

# Bias term first so no text embeds to a zero vector.
VOCABULARY = (
    "budget",
    "report",
    "meeting",
    "server",
    "migration",
    "hiring",
    "security",
    "audit",
    "contract",
    "training",
)
DIMENSION = len(VOCABULARY) + 1


class KeywordEmbeddings(Embeddings):
    """Deterministic bag-of-keywords embeddings: similar words, similar vectors."""

    def _vector(self, text: str) -> list[float]:
        words = re.findall(r"\w+", text.lower())
        return [0.1] + [float(words.count(term)) for term in VOCABULARY]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self._vector(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        return self._vector(text)


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """
    Create in-memory SQLite engine with tables, FTS5 index and triggers.

    Yields:
        AsyncEngine: Engine sharing one connection across sessions
    """
    engine = get_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return get_async_session_factory(engine)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncSession]:
    """
    Provide a database session for the test.

    Yields:
        AsyncSession: Session rolled back on teardown
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def vector_store(embeddings: KeywordEmbeddings) -> InMemoryVectorStore:
    return InMemoryVectorStore(embeddings)


@pytest.fixture
def embeddings() -> KeywordEmbeddings:
    return KeywordEmbeddings()


@pytest.fixture
def vector_index(
    vector_store: InMemoryVectorStore,
    embeddings: KeywordEmbeddings,
) -> VectorIndexAdapter:
    """Provide vector index adapter over the in-memory store."""
    return VectorIndexAdapter(
        embedding_provider=LangChainEmbeddingProvider(embeddings),
        store=vector_store,
        dimension=DIMENSION,
    )


@pytest.fixture
def chunker() -> Chunker:
    return Chunker(chunk_size_tokens=512, overlap_ratio=0.2)


@pytest.fixture
def runner() -> BackgroundTaskRunner:
    return BackgroundTaskRunner()


@pytest.fixture
def retry_settings() -> RetrySettings:
    return RetrySettings(max_attempts=3, backoff_base=2, batch_size=10)


@pytest.fixture
def coordinator(
    session_factory: async_sessionmaker[AsyncSession],
    vector_index: VectorIndexAdapter,
    chunker: Chunker,
    runner: BackgroundTaskRunner,
    retry_settings: RetrySettings,
) -> EmbeddingSyncCoordinator:
    """Provide embedding sync coordinator wired to the test database."""
    return EmbeddingSyncCoordinator(
        session_factory=session_factory,
        vector_index=vector_index,
        chunker=chunker,
        runner=runner,
        retry_settings=retry_settings,
    )


@pytest.fixture
def fake_chat_model() -> FakeListChatModel:
    return FakeListChatModel(responses=["The budget report was approved."])


@pytest.fixture
def generator(fake_chat_model: FakeListChatModel) -> LangChainGenerator:
    return LangChainGenerator(fake_chat_model)


@pytest.fixture
async def seed_people(db_session: AsyncSession) -> None:
    """
    Insert two departments and three persons.

    P-001 and P-002 belong to Finance, P-003 to Platform.
    """
    db_session.add_all([
        DepartmentModel(dept_name="Finance"),
        DepartmentModel(dept_name="Platform"),
    ])
    await db_session.flush()
    db_session.add_all([
        PersonModel(person_id="P-001", name="Kim", current_dept="Finance"),
        PersonModel(person_id="P-002", name="Lee", current_dept="Finance"),
        PersonModel(person_id="P-003", name="Park", current_dept="Platform"),
    ])
    await db_session.commit()


@pytest.fixture
def make_note(db_session: AsyncSession) -> Callable[..., Awaitable[WorkNoteModel]]:
    """
    Factory inserting and committing a work note.

    Returns:
        Callable: async (title, content, category=None, person_ids=None, work_id=None, created_at=None)
    """

    async def _make_note(
        title: str,
        content: str,
        category: str | None = None,
        person_ids: list[str] | None = None,
        work_id: str | None = None,
        created_at: datetime | None = None,
    ) -> WorkNoteModel:
        note = await work_note_crud.create(
            db_session,
            title=title,
            content_raw=content,
            category=category,
            person_ids=person_ids,
            work_id=work_id,
            created_at=created_at,
        )
        await db_session.commit()
        return note

    return _make_note


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2025, 3, 14, 9, 30, tzinfo=timezone.utc)
