"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from notegraph.boundary.db.CRUD import work_note_crud, retry_queue_crud

    note = await work_note_crud.get_by_id(db, work_id)
"""

from notegraph.boundary.db.CRUD.base_crud import BaseCRUD
from notegraph.boundary.db.CRUD.retry_queue_crud import RetryQueueCRUD, retry_queue_crud
from notegraph.boundary.db.CRUD.work_note_crud import WorkNoteCRUD, work_note_crud

__all__ = [
    "BaseCRUD",
    "RetryQueueCRUD",
    "retry_queue_crud",
    "WorkNoteCRUD",
    "work_note_crud",
]
