"""
Work note CRUD operations.

Primary store operations consumed by the indexing core: single and batch
reads with filters, department resolution, embedding bookkeeping and the
keyset pagination used by bulk reindexing.

Dependencies: sqlalchemy, notegraph.boundary.db.models
System role: Work note persistence operations
"""

from datetime import datetime
from typing import Sequence

from sqlalchemy import and_, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import flag_modified

from notegraph.boundary.db.base import generate_id, utcnow
from notegraph.boundary.db.CRUD.base_crud import BaseCRUD
from notegraph.boundary.db.models.work_note_model import (
    PersonModel,
    PersonRole,
    WorkNoteModel,
    WorkNotePersonModel,
)


def person_filter(person_id: str):
    """EXISTS predicate: note is associated with ``person_id``."""
    return exists().where(
        WorkNotePersonModel.work_id == WorkNoteModel.work_id,
        WorkNotePersonModel.person_id == person_id,
    )


def department_filter(dept_name: str):
    """EXISTS predicate: some person on the note currently belongs to ``dept_name``."""
    return exists().where(
        WorkNotePersonModel.work_id == WorkNoteModel.work_id,
        WorkNotePersonModel.person_id == PersonModel.person_id,
        PersonModel.current_dept == dept_name,
    )


def build_note_filters(
    category: str | None = None,
    person_id: str | None = None,
    dept_name: str | None = None,
    from_date: datetime | None = None,
    to_date: datetime | None = None,
) -> list:
    """Compose WHERE clauses shared by batch fetch and lexical search."""
    clauses = []
    if category:
        clauses.append(WorkNoteModel.category == category)
    if from_date is not None:
        clauses.append(WorkNoteModel.created_at >= from_date)
    if to_date is not None:
        clauses.append(WorkNoteModel.created_at <= to_date)
    if person_id:
        clauses.append(person_filter(person_id))
    if dept_name:
        clauses.append(department_filter(dept_name))
    return clauses


class WorkNoteCRUD(BaseCRUD[WorkNoteModel]):
    """
    CRUD operations for WorkNoteModel.

    Extends BaseCRUD with the reads and embedding bookkeeping the sync
    coordinator, hybrid search and reindex operations depend on.
    """

    def __init__(self) -> None:
        """Initialize WorkNoteCRUD with WorkNoteModel."""
        super().__init__(WorkNoteModel, pk_name="work_id")

    async def get_by_id_with_details(
        self,
        session: AsyncSession,
        work_id: str,
    ) -> WorkNoteModel | None:
        """
        Retrieve a work note with its person associations and persons loaded.

        Always reloads from the database, refreshing an instance the session
        already holds (e.g. one expired by a rollback).

        Args:
            session: Async database session
            work_id: Work note ID

        Returns:
            WorkNoteModel if found, None otherwise
        """
        stmt = (
            select(WorkNoteModel)
            .options(
                selectinload(WorkNoteModel.person_links).joinedload(WorkNotePersonModel.person)
            )
            .where(WorkNoteModel.work_id == work_id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_ids(
        self,
        session: AsyncSession,
        work_ids: Sequence[str],
        category: str | None = None,
        person_id: str | None = None,
        dept_name: str | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> dict[str, WorkNoteModel]:
        """
        Batch-fetch work notes, applying filters the vector engine cannot express.

        Args:
            session: Async database session
            work_ids: IDs to fetch
            category: Exact category match
            person_id: Note must be associated with this person
            dept_name: Note must involve a person currently in this department
            from_date: created_at lower bound (inclusive)
            to_date: created_at upper bound (inclusive)

        Returns:
            dict[str, WorkNoteModel]: Notes that exist and pass the filters, keyed by ID
        """
        if not work_ids:
            return {}

        stmt = select(WorkNoteModel).where(
            WorkNoteModel.work_id.in_(list(work_ids)),
            *build_note_filters(category, person_id, dept_name, from_date, to_date),
        )
        result = await session.execute(stmt)
        return {note.work_id: note for note in result.scalars().all()}

    async def find_missing_persons(
        self,
        session: AsyncSession,
        person_ids: Sequence[str],
    ) -> list[str]:
        """Return the IDs in ``person_ids`` that have no person row, in input order."""
        if not person_ids:
            return []
        stmt = select(PersonModel.person_id).where(PersonModel.person_id.in_(list(person_ids)))
        found = set((await session.execute(stmt)).scalars().all())
        return [person_id for person_id in person_ids if person_id not in found]

    async def resolve_dept_for_person(
        self,
        session: AsyncSession,
        person_id: str,
    ) -> str | None:
        """
        Return the person's current department, if any.

        Args:
            session: Async database session
            person_id: Person ID

        Returns:
            Department name, or None for unknown persons or persons without one
        """
        stmt = select(PersonModel.current_dept).where(PersonModel.person_id == person_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_embedded(
        self,
        session: AsyncSession,
        work_id: str,
        embedded_at: datetime | None = None,
        expected_updated_at: datetime | None = None,
    ) -> bool:
        """
        Stamp a successful vector sync without touching updated_at.

        When ``expected_updated_at`` is given the stamp only applies if the
        note has not changed since it was chunked, so a concurrent edit keeps
        the note pending.

        Args:
            session: Async database session
            work_id: Work note ID
            embedded_at: Sync time (defaults to now)
            expected_updated_at: updated_at observed when the note was chunked

        Returns:
            True if the note was stamped
        """
        note = await session.get(WorkNoteModel, work_id, populate_existing=True)
        if note is None:
            return False
        if expected_updated_at is not None and note.updated_at != expected_updated_at:
            return False

        note.embedded_at = embedded_at or utcnow()
        # Keep updated_at in the SET clause so its onupdate default does not fire.
        flag_modified(note, "updated_at")
        await session.flush()
        return True

    async def get_pending_embedding(
        self,
        session: AsyncSession,
        limit: int,
        exclude_ids: Sequence[str] = (),
    ) -> Sequence[WorkNoteModel]:
        """
        Notes never embedded (or changed since), oldest first.

        Args:
            session: Async database session
            limit: Maximum notes to return
            exclude_ids: Notes to skip (e.g. ones that already failed this run)

        Returns:
            Sequence of WorkNoteModels with embedded_at NULL
        """
        stmt = select(WorkNoteModel).where(WorkNoteModel.embedded_at.is_(None))
        if exclude_ids:
            stmt = stmt.where(WorkNoteModel.work_id.not_in(list(exclude_ids)))
        stmt = stmt.order_by(WorkNoteModel.created_at, WorkNoteModel.work_id).limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_embedding_stats(self, session: AsyncSession) -> tuple[int, int]:
        """
        Count all notes and embedded notes.

        Returns:
            tuple[int, int]: (total, embedded)
        """
        stmt = select(
            func.count(WorkNoteModel.work_id),
            func.count(WorkNoteModel.embedded_at),
        )
        total, embedded = (await session.execute(stmt)).one()
        return int(total), int(embedded)

    async def get_page_after(
        self,
        session: AsyncSession,
        limit: int,
        after: tuple[datetime, str] | None = None,
    ) -> Sequence[WorkNoteModel]:
        """
        Keyset page of notes ordered by (created_at, work_id).

        Args:
            session: Async database session
            limit: Page size
            after: (created_at, work_id) of the last row of the previous page

        Returns:
            Sequence of WorkNoteModels
        """
        stmt = select(WorkNoteModel)
        if after is not None:
            created_at, work_id = after
            stmt = stmt.where(
                or_(
                    WorkNoteModel.created_at > created_at,
                    and_(
                        WorkNoteModel.created_at == created_at,
                        WorkNoteModel.work_id > work_id,
                    ),
                )
            )
        stmt = stmt.order_by(WorkNoteModel.created_at, WorkNoteModel.work_id).limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def create(
        self,
        session: AsyncSession,
        title: str,
        content_raw: str,
        category: str | None = None,
        person_ids: Sequence[str] | None = None,
        work_id: str | None = None,
        created_at: datetime | None = None,
    ) -> WorkNoteModel:
        """
        Insert a work note with its person associations.

        The first person is recorded as OWNER, the rest as RELATED.

        Args:
            session: Async database session
            title: Note title
            content_raw: Note body
            category: Optional category
            person_ids: Associated persons
            work_id: Explicit ID (generated as ``WORK-<hex>`` when omitted)
            created_at: Explicit creation time (defaults to now)

        Returns:
            Created WorkNoteModel
        """
        note = WorkNoteModel(
            work_id=work_id or generate_id("WORK"),
            title=title,
            content_raw=content_raw,
            category=category,
        )
        if created_at is not None:
            note.created_at = created_at
            note.updated_at = created_at
        note.person_links = [
            WorkNotePersonModel(
                person_id=person_id,
                role=PersonRole.OWNER if index == 0 else PersonRole.RELATED,
                position=index,
            )
            for index, person_id in enumerate(dict.fromkeys(person_ids or ()))
        ]
        session.add(note)
        await session.flush()
        await session.refresh(note)
        return note

    async def update(
        self,
        session: AsyncSession,
        work_id: str,
        title: str | None = None,
        content_raw: str | None = None,
        category: str | None = None,
        person_ids: Sequence[str] | None = None,
    ) -> WorkNoteModel | None:
        """
        Apply a partial update and clear embedded_at.

        Person associations are replaced only when ``person_ids`` is given.
        The note is reloaded first so an embedded_at stamped by a background
        sync is seen and cleared.

        Args:
            session: Async database session
            work_id: Work note ID
            title: New title
            content_raw: New body
            category: New category
            person_ids: New person list (None keeps current associations)

        Returns:
            Updated WorkNoteModel if found, None otherwise
        """
        note = await self.get_by_id_with_details(session, work_id)
        if note is None:
            return None

        if title is not None:
            note.title = title
        if content_raw is not None:
            note.content_raw = content_raw
        if category is not None:
            note.category = category
        if person_ids is not None:
            self._replace_persons(note, list(dict.fromkeys(person_ids)))
        note.embedded_at = None
        note.updated_at = utcnow()

        await session.flush()
        await session.refresh(note)
        return note

    async def delete(self, session: AsyncSession, work_id: str) -> bool:
        """
        Delete a work note; associations and retry items cascade.

        Returns:
            True if the note was deleted, False if not found
        """
        return await self.delete_by_id(session, work_id)

    @staticmethod
    def _replace_persons(note: WorkNoteModel, person_ids: list[str]) -> None:
        wanted = set(person_ids)
        kept = {link.person_id: link for link in note.person_links if link.person_id in wanted}
        note.person_links = [
            kept.get(person_id)
            or WorkNotePersonModel(work_id=note.work_id, person_id=person_id)
            for person_id in person_ids
        ]
        for index, link in enumerate(note.person_links):
            link.role = PersonRole.OWNER if index == 0 else PersonRole.RELATED
            link.position = index


work_note_crud = WorkNoteCRUD()
