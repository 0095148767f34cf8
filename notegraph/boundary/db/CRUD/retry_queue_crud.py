"""
Embedding retry queue CRUD operations.

Row-level queries behind the retry state machine: dedup lookup, due
items, dead-letter listing. Status transitions themselves are validated by
EmbeddingRetryService.

Dependencies: sqlalchemy, notegraph.boundary.db.models
System role: Retry queue persistence operations
"""

from datetime import datetime
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.boundary.db.CRUD.base_crud import BaseCRUD
from notegraph.boundary.db.models.retry_queue_model import EmbeddingRetryModel
from notegraph.core.retry_state import NON_TERMINAL_STATUSES, RetryStatus


class RetryQueueCRUD(BaseCRUD[EmbeddingRetryModel]):
    """CRUD operations for EmbeddingRetryModel."""

    def __init__(self) -> None:
        """Initialize RetryQueueCRUD with EmbeddingRetryModel."""
        super().__init__(EmbeddingRetryModel)

    async def get_active_for_work(
        self,
        session: AsyncSession,
        work_id: str,
    ) -> EmbeddingRetryModel | None:
        """
        Return the non-terminal (pending or retrying) item for a work note.

        Args:
            session: Async database session
            work_id: Work note ID

        Returns:
            EmbeddingRetryModel if one exists, None otherwise
        """
        stmt = (
            select(EmbeddingRetryModel)
            .where(
                EmbeddingRetryModel.work_id == work_id,
                EmbeddingRetryModel.status.in_(NON_TERMINAL_STATUSES),
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_due(
        self,
        session: AsyncSession,
        now: datetime,
        limit: int,
    ) -> Sequence[EmbeddingRetryModel]:
        """
        Pending items whose next_retry_at has passed, earliest first.

        Args:
            session: Async database session
            now: Current time
            limit: Maximum items to return

        Returns:
            Sequence of due EmbeddingRetryModels
        """
        stmt = (
            select(EmbeddingRetryModel)
            .where(
                EmbeddingRetryModel.status == RetryStatus.PENDING,
                EmbeddingRetryModel.next_retry_at <= now,
            )
            .order_by(EmbeddingRetryModel.next_retry_at, EmbeddingRetryModel.id)
            .limit(limit)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_expired_claims(
        self,
        session: AsyncSession,
        now: datetime,
    ) -> Sequence[EmbeddingRetryModel]:
        """
        Retrying items whose claim deadline (next_retry_at) has passed.

        These were claimed by a sweep that never recorded an outcome.
        """
        stmt = (
            select(EmbeddingRetryModel)
            .where(
                EmbeddingRetryModel.status == RetryStatus.RETRYING,
                EmbeddingRetryModel.next_retry_at <= now,
            )
            .order_by(EmbeddingRetryModel.next_retry_at, EmbeddingRetryModel.id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_dead_letter(
        self,
        session: AsyncSession,
        limit: int,
        offset: int = 0,
    ) -> Sequence[EmbeddingRetryModel]:
        """
        Dead-letter items, most recently parked first.

        Args:
            session: Async database session
            limit: Page size
            offset: Rows to skip

        Returns:
            Sequence of dead-letter EmbeddingRetryModels
        """
        stmt = (
            select(EmbeddingRetryModel)
            .where(EmbeddingRetryModel.status == RetryStatus.DEAD_LETTER)
            .order_by(EmbeddingRetryModel.dead_letter_at.desc(), EmbeddingRetryModel.id)
            .limit(limit)
            .offset(offset)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def count_by_status(self, session: AsyncSession, status: RetryStatus) -> int:
        stmt = (
            select(func.count())
            .select_from(EmbeddingRetryModel)
            .where(EmbeddingRetryModel.status == status)
        )
        result = await session.execute(stmt)
        return int(result.scalar_one())


retry_queue_crud = RetryQueueCRUD()
