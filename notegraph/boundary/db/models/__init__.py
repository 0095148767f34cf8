"""
Database models package.

Exports:
  - WorkNoteModel, PersonModel, DepartmentModel, WorkNotePersonModel, PersonRole
  - EmbeddingRetryModel

Importing this package also registers the FTS5 DDL on Base.metadata.

Dependencies: sqlalchemy, notegraph.boundary.db.base
System role: Database model definitions for domain entities
"""

from notegraph.boundary.db.models.work_note_model import (
    DepartmentModel,
    PersonModel,
    PersonRole,
    WorkNoteModel,
    WorkNotePersonModel,
)
from notegraph.boundary.db.models.retry_queue_model import EmbeddingRetryModel
from notegraph.boundary.db import fts_schema  # noqa: F401

__all__ = [
    "DepartmentModel",
    "EmbeddingRetryModel",
    "PersonModel",
    "PersonRole",
    "WorkNoteModel",
    "WorkNotePersonModel",
]
