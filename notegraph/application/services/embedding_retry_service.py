"""
Embedding retry queue service.

Owns the retry queue state machine on top of RetryQueueCRUD: enqueueing
failed syncs (deduplicated per work note), exponential backoff, claim
deadlines, dead-letter parking and the manual dead-letter reset. Every
status change is validated against the allowed transitions.

Methods flush but never commit; the caller owns the transaction.

Dependencies: sqlalchemy, notegraph.boundary.db.CRUD, notegraph.core.retry_state
System role: Durable retry queue for vector index synchronization
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.boundary.db.base import utcnow
from notegraph.boundary.db.CRUD.retry_queue_crud import retry_queue_crud
from notegraph.boundary.db.models.retry_queue_model import EmbeddingRetryModel
from notegraph.configs.retry import RetrySettings
from notegraph.core.exceptions import InvalidRetryTransitionError, RetryItemNotFoundError
from notegraph.core.retry_state import (
    RetryOperation,
    RetryStatus,
    calculate_backoff_delay,
    ensure_transition,
    next_retry_time,
)

logger = logging.getLogger(__name__)


class EmbeddingRetryService:
    """
    Retry queue orchestrator.

    Attributes:
        max_attempts: Attempts allowed before an item is dead-lettered
        backoff_base: Exponential backoff base in seconds
        batch_size: Default number of items fetched per sweep
        claim_timeout: Seconds a claim holds before a later sweep may reclaim it
    """

    def __init__(
        self,
        db: AsyncSession,
        settings: RetrySettings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize retry service.

        Args:
            db: AsyncSession for database operations
            settings: Retry policy (defaults from environment)
            clock: Source of the current UTC time
        """
        settings = settings or RetrySettings()
        self.db = db
        self.max_attempts = settings.max_attempts
        self.backoff_base = settings.backoff_base
        self.batch_size = settings.batch_size
        self.claim_timeout = settings.claim_timeout_seconds
        self._clock = clock

    def calculate_backoff_delay(self, attempt: int) -> int:
        """Seconds to wait before retry number ``attempt``."""
        return calculate_backoff_delay(attempt, self.backoff_base)

    async def enqueue_retry(
        self,
        work_id: str,
        operation_type: RetryOperation,
        error_message: str,
        error_details: dict[str, Any] | None = None,
    ) -> str:
        """
        Queue a failed sync for retry, due immediately.

        A work note has at most one non-terminal item; when one already
        exists its ID is returned and nothing is inserted.

        Args:
            work_id: Work note whose sync failed
            operation_type: Mutation that triggered the sync
            error_message: Failure message
            error_details: Failure context (error type, etc.)

        Returns:
            str: ID of the new or existing retry item
        """
        existing = await retry_queue_crud.get_active_for_work(self.db, work_id)
        if existing is not None:
            logger.info(
                f"{__name__}:enqueue_retry - Retry already queued",
                extra={"work_id": work_id, "retry_id": existing.id},
            )
            return existing.id

        ensure_transition(None, RetryStatus.PENDING)
        item = await retry_queue_crud.create(
            self.db,
            work_id=work_id,
            operation_type=operation_type,
            attempt_count=0,
            max_attempts=self.max_attempts,
            next_retry_at=self._clock(),
            status=RetryStatus.PENDING,
            error_message=error_message,
            error_details=error_details,
        )
        logger.info(
            f"{__name__}:enqueue_retry - Queued embedding retry",
            extra={"work_id": work_id, "retry_id": item.id, "operation": operation_type.value},
        )
        return item.id

    async def get_retryable_items(self, limit: int | None = None) -> Sequence[EmbeddingRetryModel]:
        """
        Pending items whose next_retry_at has passed.

        Args:
            limit: Maximum items (defaults to the configured batch size)

        Returns:
            Sequence of due items, earliest first
        """
        return await retry_queue_crud.get_due(self.db, self._clock(), limit or self.batch_size)

    async def get_retry_item(self, retry_id: str) -> EmbeddingRetryModel | None:
        return await retry_queue_crud.get_by_id(self.db, retry_id)

    async def mark_retrying(self, retry_id: str) -> EmbeddingRetryModel:
        """
        Claim a pending item for processing.

        next_retry_at becomes the claim deadline; if no outcome is recorded
        by then, release_expired_claims returns the item to pending.

        Raises:
            RetryItemNotFoundError: If the item does not exist
            InvalidRetryTransitionError: If the item is not pending
        """
        item = await self._require(retry_id)
        ensure_transition(item.status, RetryStatus.RETRYING)
        item.status = RetryStatus.RETRYING
        item.next_retry_at = self._clock() + timedelta(seconds=self.claim_timeout)
        await self.db.flush()
        return item

    async def release_expired_claims(self) -> int:
        """
        Return items stuck in retrying past their claim deadline to pending.

        The attempt count is left unchanged and the item is due at once.

        Returns:
            int: Number of items released
        """
        now = self._clock()
        items = await retry_queue_crud.get_expired_claims(self.db, now)
        for item in items:
            ensure_transition(item.status, RetryStatus.PENDING)
            item.status = RetryStatus.PENDING
            item.next_retry_at = now
        if items:
            await self.db.flush()
            logger.warning(
                f"{__name__}:release_expired_claims - Released {len(items)} abandoned claims",
                extra={"retry_ids": ",".join(item.id for item in items)},
            )
        return len(items)

    async def update_retry_attempt(
        self,
        retry_id: str,
        attempt: int,
        error_message: str,
        error_details: dict[str, Any] | None = None,
    ) -> EmbeddingRetryModel:
        """
        Record a failed attempt and reschedule with exponential backoff.

        next_retry_at becomes ``now + base ** attempt`` seconds and the item
        returns to pending.

        Args:
            retry_id: Retry item ID
            attempt: Number of failed attempts so far
            error_message: Latest failure message
            error_details: Latest failure context

        Raises:
            RetryItemNotFoundError: If the item does not exist
            InvalidRetryTransitionError: If the item is not being retried
        """
        item = await self._require(retry_id)
        ensure_transition(item.status, RetryStatus.PENDING)
        item.status = RetryStatus.PENDING
        item.attempt_count = attempt
        item.next_retry_at = next_retry_time(self._clock(), attempt, self.backoff_base)
        item.error_message = error_message
        item.error_details = error_details
        await self.db.flush()

        logger.info(
            f"{__name__}:update_retry_attempt - Rescheduled",
            extra={
                "retry_id": retry_id,
                "attempt": attempt,
                "next_retry_at": item.next_retry_at.isoformat(),
            },
        )
        return item

    async def move_to_dead_letter(
        self,
        retry_id: str,
        attempt: int,
        error_message: str,
        error_details: dict[str, Any] | None = None,
    ) -> EmbeddingRetryModel:
        """
        Park an item after its retry budget is exhausted.

        Raises:
            RetryItemNotFoundError: If the item does not exist
            InvalidRetryTransitionError: If the item is not being retried
        """
        item = await self._require(retry_id)
        ensure_transition(item.status, RetryStatus.DEAD_LETTER)
        item.status = RetryStatus.DEAD_LETTER
        item.attempt_count = attempt
        item.error_message = error_message
        item.error_details = error_details
        item.dead_letter_at = self._clock()
        await self.db.flush()

        logger.warning(
            f"{__name__}:move_to_dead_letter - Retry budget exhausted",
            extra={"retry_id": retry_id, "work_id": item.work_id, "attempt": attempt},
        )
        return item

    async def delete_retry_item(self, retry_id: str) -> bool:
        """Remove an item after a successful retry."""
        return await retry_queue_crud.delete_by_id(self.db, retry_id)

    async def get_dead_letter_items(
        self,
        limit: int = 50,
        offset: int = 0,
    ) -> Sequence[EmbeddingRetryModel]:
        """Dead-letter items for operator review, most recent first."""
        return await retry_queue_crud.get_dead_letter(self.db, limit, offset)

    async def count_dead_letter_items(self) -> int:
        return await retry_queue_crud.count_by_status(self.db, RetryStatus.DEAD_LETTER)

    async def retry_dead_letter_item(self, retry_id: str) -> bool:
        """
        Operator reset of a dead-letter item back to pending.

        The attempt count restarts at 0 and the item is due immediately.
        When a newer failure already queued an active item for the same
        note, that item carries the retry and the parked one is deleted.

        Args:
            retry_id: Retry item ID

        Returns:
            True if the item was reset (or folded into the active item),
            False if it does not exist

        Raises:
            InvalidRetryTransitionError: If the item is not in dead_letter
        """
        item = await retry_queue_crud.get_by_id(self.db, retry_id)
        if item is None:
            return False

        # retrying -> pending belongs to the sweep, not to the manual reset.
        if item.status != RetryStatus.DEAD_LETTER:
            raise InvalidRetryTransitionError(item.status.value, RetryStatus.PENDING.value)

        active = await retry_queue_crud.get_active_for_work(self.db, item.work_id)
        if active is not None:
            await retry_queue_crud.delete_by_id(self.db, retry_id)
            logger.info(
                f"{__name__}:retry_dead_letter_item - Active retry exists, dead-letter item removed",
                extra={"retry_id": retry_id, "active_retry_id": active.id, "work_id": item.work_id},
            )
            return True

        ensure_transition(item.status, RetryStatus.PENDING)
        item.status = RetryStatus.PENDING
        item.attempt_count = 0
        item.next_retry_at = self._clock()
        item.dead_letter_at = None
        await self.db.flush()

        logger.info(
            f"{__name__}:retry_dead_letter_item - Dead-letter item reset",
            extra={"retry_id": retry_id, "work_id": item.work_id},
        )
        return True

    async def _require(self, retry_id: str) -> EmbeddingRetryModel:
        item = await retry_queue_crud.get_by_id(self.db, retry_id)
        if item is None:
            raise RetryItemNotFoundError(retry_id)
        return item
