"""
Work note service orchestrator.

Mutations on the primary store followed by the vector sync hand-off. The
write is committed before the coordinator is called, so an embedding
failure can never roll back or fail the create/update/delete itself.

Dependencies: sqlalchemy, notegraph.boundary.db.CRUD, notegraph.application.services
System role: Write path for work notes
"""

import logging
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.application.services.embedding_sync_service import EmbeddingSyncCoordinator
from notegraph.boundary.db.CRUD.work_note_crud import work_note_crud
from notegraph.boundary.db.models.work_note_model import WorkNoteModel
from notegraph.core.exceptions import ValidationError, WorkNoteNotFoundError

logger = logging.getLogger(__name__)


class WorkNoteService:
    """
    Create, update and delete work notes.

    Wraps WorkNoteCRUD and schedules the background vector sync after each
    committed mutation.
    """

    def __init__(self, db: AsyncSession, coordinator: EmbeddingSyncCoordinator) -> None:
        """
        Initialize work note service.

        Args:
            db: AsyncSession for database operations
            coordinator: Sync coordinator receiving committed mutations
        """
        self.db = db
        self.coordinator = coordinator

    async def get_work_note(self, work_id: str) -> WorkNoteModel:
        """
        Get a work note with its persons.

        Raises:
            WorkNoteNotFoundError: If the note does not exist
        """
        note = await work_note_crud.get_by_id_with_details(self.db, work_id)
        if note is None:
            raise WorkNoteNotFoundError(work_id)
        return note

    async def create_work_note(
        self,
        title: str,
        content_raw: str,
        category: str | None = None,
        person_ids: Sequence[str] | None = None,
    ) -> WorkNoteModel:
        """
        Create a work note and schedule its embedding.

        Args:
            title: Note title
            content_raw: Note body
            category: Optional category
            person_ids: Associated persons, owner first

        Returns:
            WorkNoteModel: Committed note

        Raises:
            ValidationError: If the title is blank or a person does not exist
        """
        if not title.strip():
            raise ValidationError("title must not be blank", field="title")
        await self._validate_persons(person_ids)

        note = await work_note_crud.create(
            self.db,
            title=title,
            content_raw=content_raw,
            category=category,
            person_ids=person_ids,
        )
        await self.db.commit()

        logger.info(
            f"{__name__}:create_work_note - Created work note",
            extra={"work_id": note.work_id},
        )
        self.coordinator.schedule_create(note.work_id, person_ids)
        return note

    async def update_work_note(
        self,
        work_id: str,
        title: str | None = None,
        content_raw: str | None = None,
        category: str | None = None,
        person_ids: Sequence[str] | None = None,
    ) -> WorkNoteModel:
        """
        Update a work note and schedule re-chunking.

        Args:
            work_id: Work note ID
            title: New title
            content_raw: New body
            category: New category
            person_ids: New person list (None keeps the current persons)

        Returns:
            WorkNoteModel: Committed note

        Raises:
            WorkNoteNotFoundError: If the note does not exist
            ValidationError: If a person does not exist
        """
        if title is not None and not title.strip():
            raise ValidationError("title must not be blank", field="title")
        await self._validate_persons(person_ids)

        note = await work_note_crud.update(
            self.db,
            work_id,
            title=title,
            content_raw=content_raw,
            category=category,
            person_ids=person_ids,
        )
        if note is None:
            raise WorkNoteNotFoundError(work_id)
        await self.db.commit()

        logger.info(
            f"{__name__}:update_work_note - Updated work note",
            extra={"work_id": work_id},
        )
        self.coordinator.schedule_update(work_id, person_ids)
        return note

    async def delete_work_note(self, work_id: str) -> None:
        """
        Delete a work note and schedule removal of its chunks.

        Person links and retry items cascade with the note.

        Raises:
            WorkNoteNotFoundError: If the note does not exist
        """
        deleted = await work_note_crud.delete(self.db, work_id)
        if not deleted:
            raise WorkNoteNotFoundError(work_id)
        await self.db.commit()

        logger.info(
            f"{__name__}:delete_work_note - Deleted work note",
            extra={"work_id": work_id},
        )
        self.coordinator.schedule_delete(work_id)

    async def _validate_persons(self, person_ids: Sequence[str] | None) -> None:
        if not person_ids:
            return
        missing = await work_note_crud.find_missing_persons(self.db, person_ids)
        if missing:
            raise ValidationError(
                "Unknown person IDs",
                field="person_ids",
                details={"missing": missing},
            )
