"""
Database boundary layer: ORM models, CRUD operations, FTS5 lexical search
and connection management.

Exports:
  - Base, TimestampMixin, TZDateTime: Model building blocks
  - get_async_engine(), get_async_session_factory(), init_models(): Connection management
  - WorkNoteModel, PersonModel, DepartmentModel, WorkNotePersonModel, EmbeddingRetryModel
  - work_note_crud, retry_queue_crud: CRUD operation singletons
  - LexicalSearcher, lexical_searcher: FTS5 keyword search

Dependencies: sqlalchemy, aiosqlite, notegraph.configs
System role: Primary store adapter for work notes and the retry queue
"""

from notegraph.boundary.db.base import Base, TimestampMixin, TZDateTime
from notegraph.boundary.db.connection import (
    enable_foreign_keys,
    get_async_engine,
    get_async_session_factory,
    init_models,
)
from notegraph.boundary.db.models import (
    DepartmentModel,
    EmbeddingRetryModel,
    PersonModel,
    PersonRole,
    WorkNoteModel,
    WorkNotePersonModel,
)
from notegraph.boundary.db.CRUD import (
    BaseCRUD,
    RetryQueueCRUD,
    WorkNoteCRUD,
    retry_queue_crud,
    work_note_crud,
)
from notegraph.boundary.db.lexical_search import LexicalHit, LexicalSearcher, lexical_searcher

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "TZDateTime",
    # Connection
    "enable_foreign_keys",
    "get_async_engine",
    "get_async_session_factory",
    "init_models",
    # Models
    "DepartmentModel",
    "EmbeddingRetryModel",
    "PersonModel",
    "PersonRole",
    "WorkNoteModel",
    "WorkNotePersonModel",
    # CRUD
    "BaseCRUD",
    "RetryQueueCRUD",
    "WorkNoteCRUD",
    "retry_queue_crud",
    "work_note_crud",
    # Search
    "LexicalHit",
    "LexicalSearcher",
    "lexical_searcher",
]
