"""
Embedding sync coordinator.

Keeps the vector index eventually consistent with the primary store.
Work note mutations are committed first; the coordinator then chunks and
embeds the note in the background. A failed sync never touches the
committed write: it is logged and queued for retry, and the periodic
sweep re-runs it with exponential backoff until it succeeds or is
dead-lettered.

Update ordering: new chunks are upserted before stale ones are deleted, so
a failure mid-way leaves the previous chunk set fully queryable.

Dependencies: sqlalchemy, notegraph.boundary, notegraph.core, notegraph.workers
System role: Write-path bridge between work notes and the vector index
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from notegraph.application.services.embedding_retry_service import EmbeddingRetryService
from notegraph.boundary.db.base import utcnow
from notegraph.boundary.db.CRUD.work_note_crud import work_note_crud
from notegraph.boundary.db.models.work_note_model import WorkNoteModel
from notegraph.boundary.vdb.vector_index import VectorIndexAdapter
from notegraph.configs.retry import RetrySettings
from notegraph.core.chunker import Chunker
from notegraph.core.exceptions import EmbeddingRateLimitError, RetryItemNotFoundError
from notegraph.core.retry_state import RetryOperation
from notegraph.models.chunk import TextChunk
from notegraph.observability.log_utils import log_exception_with_context
from notegraph.workers.background import BackgroundTaskRunner

logger = logging.getLogger(__name__)

CREATED_AT_BUCKET_FORMAT = "%Y-%m-%d"


def build_error_details(exc: BaseException, **context: Any) -> dict[str, Any]:
    """JSON-safe failure context stored on a retry item."""
    return {
        "error_type": type(exc).__name__,
        "rate_limited": isinstance(exc, EmbeddingRateLimitError),
        **context,
    }


class EmbeddingSyncCoordinator:
    """
    Chunk, embed and index work notes after they change.

    Background work opens its own session from ``session_factory``; the
    request session that committed the mutation is never reused.

    Attributes:
        vector_index: Vector index adapter
        chunker: Chunker shared with RAG snippet reconstruction
        runner: Background task runner for fire-and-forget syncs
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        vector_index: VectorIndexAdapter,
        chunker: Chunker,
        runner: BackgroundTaskRunner,
        retry_settings: RetrySettings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize coordinator.

        Args:
            session_factory: Factory for background database sessions
            vector_index: Vector index adapter
            chunker: Chunker
            runner: Background task runner
            retry_settings: Retry policy for failed syncs
            clock: Source of the current UTC time
        """
        self._session_factory = session_factory
        self.vector_index = vector_index
        self.chunker = chunker
        self.runner = runner
        self.retry_settings = retry_settings or RetrySettings()
        self._clock = clock

    async def build_metadata(
        self,
        db: AsyncSession,
        note: WorkNoteModel,
        person_ids: Sequence[str] | None = None,
    ) -> dict[str, Any]:
        """
        Derive chunk metadata from the note's current state.

        The department is the first person's current department.

        Args:
            db: Async database session
            note: Work note (person links loaded)
            person_ids: Person list overriding the stored associations

        Returns:
            dict: person_ids, dept_name, category and created_at_bucket
        """
        persons = list(person_ids) if person_ids is not None else note.person_ids
        dept_name = None
        if persons:
            dept_name = await work_note_crud.resolve_dept_for_person(db, persons[0])

        return {
            "person_ids": persons or None,
            "dept_name": dept_name,
            "category": note.category,
            "created_at_bucket": note.created_at.strftime(CREATED_AT_BUCKET_FORMAT),
        }

    async def prepare_chunks(
        self,
        db: AsyncSession,
        note: WorkNoteModel,
        person_ids: Sequence[str] | None = None,
    ) -> list[TextChunk]:
        metadata = await self.build_metadata(db, note, person_ids)
        return self.chunker.chunk_work_note(note.work_id, note.title, note.content_raw, metadata)

    async def embed_work_note(
        self,
        db: AsyncSession,
        note: WorkNoteModel,
        person_ids: Sequence[str] | None = None,
    ) -> bool:
        """
        Index a note's current version and stamp it as embedded.

        Args:
            db: Async database session (caller commits)
            note: Work note to index
            person_ids: Person list overriding the stored associations

        Returns:
            True if embedded_at was stamped, False when the note changed or
            disappeared while it was being indexed

        Raises:
            EmbeddingError: Embedding failed
            VectorStoreError: Upsert or stale-chunk cleanup failed
        """
        work_id = note.work_id
        chunked_version = note.updated_at
        chunks = await self.prepare_chunks(db, note, person_ids)

        await self.vector_index.upsert_chunks(chunks)
        await self.vector_index.delete_stale_chunks(work_id, {chunk.id for chunk in chunks})

        marked = await work_note_crud.mark_embedded(
            db,
            work_id,
            embedded_at=self._clock(),
            expected_updated_at=chunked_version,
        )
        if not marked:
            logger.info(
                f"{__name__}:embed_work_note - Note changed during sync, left pending",
                extra={"work_id": work_id},
            )
        return marked

    def schedule_create(self, work_id: str, person_ids: Sequence[str] | None = None) -> asyncio.Task:
        """Hand a freshly committed note to the background runner."""
        return self.runner.submit(
            self.sync_work_note(work_id, RetryOperation.CREATE, person_ids),
            name=f"embed-create:{work_id}",
        )

    def schedule_update(self, work_id: str, person_ids: Sequence[str] | None = None) -> asyncio.Task:
        """Hand an updated note to the background runner for re-chunking."""
        return self.runner.submit(
            self.sync_work_note(work_id, RetryOperation.UPDATE, person_ids),
            name=f"embed-update:{work_id}",
        )

    def schedule_delete(self, work_id: str) -> asyncio.Task:
        """Remove a deleted note's chunks in the background."""
        return self.runner.submit(
            self.delete_work_note_chunks(work_id),
            name=f"embed-delete:{work_id}",
        )

    async def sync_work_note(
        self,
        work_id: str,
        operation: RetryOperation,
        person_ids: Sequence[str] | None = None,
    ) -> bool:
        """
        Embed a note in its own session, queueing a retry on failure.

        Args:
            work_id: Work note ID
            operation: Mutation that triggered the sync
            person_ids: Person list overriding the stored associations

        Returns:
            True if the note was indexed, False if it was missing or the
            sync failed and was queued
        """
        async with self._session_factory() as db:
            note = await work_note_crud.get_by_id_with_details(db, work_id)
            if note is None:
                logger.info(
                    f"{__name__}:sync_work_note - Note no longer exists, skipping",
                    extra={"work_id": work_id},
                )
                return False

            try:
                await self.embed_work_note(db, note, person_ids)
                await db.commit()
                return True
            except Exception as e:
                await db.rollback()
                log_exception_with_context(
                    logger,
                    f"{__name__}:sync_work_note - Embedding sync failed",
                    e,
                    work_id=work_id,
                    operation=operation.value,
                )
                retry_service = EmbeddingRetryService(db, self.retry_settings, self._clock)
                await retry_service.enqueue_retry(
                    work_id,
                    operation,
                    str(e),
                    build_error_details(e, operation=operation.value),
                )
                await db.commit()
                return False

    async def delete_work_note_chunks(self, work_id: str) -> bool:
        """
        Best-effort removal of a deleted note's chunks.

        The retry row cascaded away with the note, so a failure here is only
        logged; the chunks stay orphaned.
        """
        try:
            deleted = await self.vector_index.delete_work_note_chunks(work_id)
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:delete_work_note_chunks - Chunk delete failed, chunks orphaned",
                e,
                work_id=work_id,
            )
            return False

        logger.info(
            f"{__name__}:delete_work_note_chunks - Removed {len(deleted)} chunks",
            extra={"work_id": work_id},
        )
        return True

    async def process_retry_queue(self, limit: int | None = None) -> dict[str, int]:
        """
        Run one retry sweep.

        Claims abandoned by an earlier sweep are released first. Due items
        are then claimed (retrying) in one transaction and each is re-synced
        in its own session. Success deletes the item; failure increments the
        attempt and reschedules it with backoff, or dead-letters it once
        ``attempt >= max_attempts``. An item whose note no longer exists
        counts as resolved. An item whose outcome cannot be recorded stays
        claimed until its claim deadline, then a later sweep picks it up.

        Args:
            limit: Maximum items to claim (defaults to the configured batch size)

        Returns:
            dict: processed, succeeded, rescheduled and dead_lettered counts
        """
        summary = {"processed": 0, "succeeded": 0, "rescheduled": 0, "dead_lettered": 0}

        async with self._session_factory() as db:
            retry_service = EmbeddingRetryService(db, self.retry_settings, self._clock)
            await retry_service.release_expired_claims()
            items = await retry_service.get_retryable_items(limit)
            claimed = []
            for item in items:
                await retry_service.mark_retrying(item.id)
                claimed.append((item.id, item.work_id, item.attempt_count, item.max_attempts))
            await db.commit()

        for retry_id, work_id, attempt_count, max_attempts in claimed:
            try:
                outcome = await self._retry_item(retry_id, work_id, attempt_count, max_attempts)
            except Exception as e:
                log_exception_with_context(
                    logger,
                    f"{__name__}:process_retry_queue - Retry outcome not recorded, claim left to expire",
                    e,
                    work_id=work_id,
                    retry_id=retry_id,
                )
                continue
            summary["processed"] += 1
            summary[outcome] += 1

        if claimed:
            logger.info(f"{__name__}:process_retry_queue - Sweep complete", extra=summary)
        return summary

    async def _retry_item(
        self,
        retry_id: str,
        work_id: str,
        attempt_count: int,
        max_attempts: int,
    ) -> str:
        async with self._session_factory() as db:
            retry_service = EmbeddingRetryService(db, self.retry_settings, self._clock)

            try:
                note = await work_note_crud.get_by_id_with_details(db, work_id)
                if note is None:
                    await retry_service.delete_retry_item(retry_id)
                    await db.commit()
                    return "succeeded"
                await self.embed_work_note(db, note)
                await retry_service.delete_retry_item(retry_id)
                await db.commit()
                return "succeeded"
            except Exception as e:
                await db.rollback()
                attempt = attempt_count + 1
                log_exception_with_context(
                    logger,
                    f"{__name__}:_retry_item - Retry attempt failed",
                    e,
                    work_id=work_id,
                    retry_id=retry_id,
                    attempt=attempt,
                )
                error_message = str(e)
                details = build_error_details(e, attempt=attempt)

            try:
                if attempt >= max_attempts:
                    await retry_service.move_to_dead_letter(retry_id, attempt, error_message, details)
                    outcome = "dead_lettered"
                else:
                    await retry_service.update_retry_attempt(retry_id, attempt, error_message, details)
                    outcome = "rescheduled"
            except RetryItemNotFoundError:
                # Removed with its note while the attempt was running.
                return "succeeded"

            await db.commit()
            return outcome
