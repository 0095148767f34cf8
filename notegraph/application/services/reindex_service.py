"""
Reindex (admin) service.

Operator-facing vector index maintenance: full reindex with keyset
pagination, single-note reindex, batch embedding of pending notes,
embedding coverage statistics and dead-letter management.

Each note is committed on its own, so one failing note never undoes the
progress of the others.

Dependencies: sqlalchemy, notegraph.application.services, notegraph.boundary
System role: Bulk and recovery operations on the vector index
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.application.services.embedding_retry_service import EmbeddingRetryService
from notegraph.application.services.embedding_sync_service import EmbeddingSyncCoordinator
from notegraph.boundary.db.base import utcnow
from notegraph.boundary.db.CRUD.work_note_crud import work_note_crud
from notegraph.core.exceptions import WorkNoteNotFoundError
from notegraph.models.admin import EmbeddingStats, ReindexFailureReason, ReindexResult
from notegraph.models.chunk import TextChunk
from notegraph.models.common import PaginatedResponse
from notegraph.models.retry import RetryItemRead

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHUNKS_PER_BATCH = 100


@dataclass
class PreparedNote:
    """A pending note chunked and waiting for the next batch upsert."""

    work_id: str
    updated_at: datetime
    chunks: list[TextChunk]


class ReindexService:
    """
    Vector index maintenance operations.

    Attributes:
        coordinator: Sync coordinator providing per-note embedding
        max_chunks_per_batch: Chunk count that triggers a batch upsert in embed_pending
    """

    def __init__(
        self,
        db: AsyncSession,
        coordinator: EmbeddingSyncCoordinator,
        max_chunks_per_batch: int = DEFAULT_MAX_CHUNKS_PER_BATCH,
    ) -> None:
        """
        Initialize reindex service.

        Args:
            db: AsyncSession for database operations
            coordinator: Sync coordinator
            max_chunks_per_batch: Chunk budget per embedding call in embed_pending
        """
        self.db = db
        self.coordinator = coordinator
        self.max_chunks_per_batch = max_chunks_per_batch
        self.retry_service = EmbeddingRetryService(db, coordinator.retry_settings)

    async def reindex_all(self, batch_size: int = 10) -> ReindexResult:
        """
        Re-embed every work note, oldest first.

        Pages with a (created_at, work_id) keyset. Failures are collected and
        leave the note pending for embed_pending.

        Args:
            batch_size: Notes fetched per page

        Returns:
            ReindexResult: Totals and per-note errors
        """
        result = ReindexResult(total=await work_note_crud.count(self.db))
        if result.total == 0:
            return result

        logger.info(f"{__name__}:reindex_all - Reindexing {result.total} work notes")
        cursor: tuple[datetime, str] | None = None

        while True:
            page = await work_note_crud.get_page_after(self.db, batch_size, cursor)
            if not page:
                break
            keys = [(note.created_at, note.work_id) for note in page]
            cursor = keys[-1]

            for _, work_id in keys:
                await self._reindex_note(work_id, result)

            logger.info(
                f"{__name__}:reindex_all - Progress {result.processed}/{result.total}"
            )

        logger.info(
            f"{__name__}:reindex_all - Complete",
            extra={"succeeded": result.succeeded, "failed": result.failed},
        )
        return result

    async def reindex_one(self, work_id: str) -> bool:
        """
        Re-embed a single work note.

        Args:
            work_id: Work note ID

        Returns:
            True if the note was stamped as embedded

        Raises:
            WorkNoteNotFoundError: If the note does not exist
            EmbeddingError: Embedding failed
            VectorStoreError: Vector store write failed
        """
        note = await work_note_crud.get_by_id_with_details(self.db, work_id)
        if note is None:
            raise WorkNoteNotFoundError(work_id)

        try:
            marked = await self.coordinator.embed_work_note(self.db, note)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return marked

    async def embed_pending(self, batch_size: int = 10) -> ReindexResult:
        """
        Embed notes whose embedded_at is NULL.

        Chunks from several notes are embedded together, up to
        ``max_chunks_per_batch`` chunks per provider call. A note that fails
        is excluded for the rest of the run.

        Args:
            batch_size: Pending notes fetched per query

        Returns:
            ReindexResult: Totals and per-note errors with failure reasons
        """
        total, embedded = await work_note_crud.get_embedding_stats(self.db)
        result = ReindexResult(total=total - embedded)
        if result.total == 0:
            return result

        logger.info(f"{__name__}:embed_pending - Embedding {result.total} pending work notes")
        excluded: set[str] = set()
        buffer: list[PreparedNote] = []
        buffered_chunks = 0

        while result.processed + len(buffer) < result.total:
            notes = await work_note_crud.get_pending_embedding(
                self.db,
                batch_size,
                exclude_ids=list(excluded),
            )
            if not notes:
                break

            snapshots = [(note.work_id, note.updated_at) for note in notes]
            for work_id, updated_at in snapshots:
                excluded.add(work_id)
                prepared = await self._prepare(work_id, updated_at, result)
                if prepared is None:
                    continue
                buffer.append(prepared)
                buffered_chunks += len(prepared.chunks)

                if buffered_chunks >= self.max_chunks_per_batch:
                    await self._flush_batch(buffer, result)
                    buffer, buffered_chunks = [], 0

        if buffer:
            await self._flush_batch(buffer, result)

        logger.info(
            f"{__name__}:embed_pending - Complete",
            extra={"succeeded": result.succeeded, "failed": result.failed},
        )
        return result

    async def get_embedding_stats(self) -> EmbeddingStats:
        total, embedded = await work_note_crud.get_embedding_stats(self.db)
        return EmbeddingStats(total=total, embedded=embedded, pending=total - embedded)

    async def list_dead_letter(
        self,
        limit: int = 50,
        offset: int = 0,
    ) -> PaginatedResponse[RetryItemRead]:
        """Page of dead-letter items, most recently parked first."""
        items = await self.retry_service.get_dead_letter_items(limit, offset)
        total = await self.retry_service.count_dead_letter_items()
        return PaginatedResponse[RetryItemRead](
            items=[RetryItemRead.model_validate(item) for item in items],
            total=total,
            limit=limit,
            offset=offset,
        )

    async def retry_dead_letter_item(self, retry_id: str) -> bool:
        """
        Reset a dead-letter item so the next sweep picks it up.

        Returns:
            True if the item was reset, False if it does not exist

        Raises:
            InvalidRetryTransitionError: If the item is not in dead_letter
        """
        reset = await self.retry_service.retry_dead_letter_item(retry_id)
        if reset:
            await self.db.commit()
        return reset

    async def _reindex_note(self, work_id: str, result: ReindexResult) -> None:
        note = await work_note_crud.get_by_id_with_details(self.db, work_id)
        if note is None:
            result.record_failure(work_id, "Work note deleted during reindex", ReindexFailureReason.NOT_FOUND)
            return

        try:
            await self.coordinator.embed_work_note(self.db, note)
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(
                f"{__name__}:_reindex_note - Failed to embed {work_id}: {e}",
                extra={"work_id": work_id, "error_type": type(e).__name__},
            )
            result.record_failure(work_id, str(e))
            return
        result.record_success()

    async def _prepare(
        self,
        work_id: str,
        updated_at: datetime,
        result: ReindexResult,
    ) -> PreparedNote | None:
        try:
            note = await work_note_crud.get_by_id_with_details(self.db, work_id)
            if note is None:
                result.record_failure(work_id, "Work note not found", ReindexFailureReason.NOT_FOUND)
                return None
            chunks = await self.coordinator.prepare_chunks(self.db, note)
        except Exception as e:
            logger.error(
                f"{__name__}:_prepare - Failed to prepare {work_id}: {e}",
                extra={"work_id": work_id, "error_type": type(e).__name__},
            )
            result.record_failure(work_id, str(e), ReindexFailureReason.PREPARE_FAILED)
            return None
        return PreparedNote(work_id=work_id, updated_at=updated_at, chunks=chunks)

    async def _flush_batch(self, batch: list[PreparedNote], result: ReindexResult) -> None:
        chunks = [chunk for prepared in batch for chunk in prepared.chunks]
        try:
            await self.coordinator.vector_index.upsert_chunks(chunks)
        except Exception as e:
            logger.error(
                f"{__name__}:_flush_batch - Batch upsert failed for {len(batch)} notes: {e}",
                extra={"chunk_count": len(chunks), "error_type": type(e).__name__},
            )
            for prepared in batch:
                result.record_failure(prepared.work_id, str(e), ReindexFailureReason.UPSERT_FAILED)
            return

        for prepared in batch:
            await self._finish_note(prepared, result)

    async def _finish_note(self, prepared: PreparedNote, result: ReindexResult) -> None:
        work_id = prepared.work_id
        try:
            await self.coordinator.vector_index.delete_stale_chunks(
                work_id, {chunk.id for chunk in prepared.chunks}
            )
            marked = await work_note_crud.mark_embedded(
                self.db,
                work_id,
                embedded_at=utcnow(),
                expected_updated_at=prepared.updated_at,
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            result.record_failure(work_id, str(e))
            return

        if marked:
            result.record_success()
        elif await work_note_crud.exists(self.db, work_id):
            result.record_failure(
                work_id, "Work note changed while embedding", ReindexFailureReason.STALE_VERSION
            )
        else:
            result.record_failure(work_id, "Work note not found", ReindexFailureReason.NOT_FOUND)
