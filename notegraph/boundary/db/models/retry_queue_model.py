"""
Embedding retry queue ORM model.

One row per work note whose vector sync failed. Rows are deleted on a
successful retry and removed with their work note (ON DELETE CASCADE).

Dependencies: sqlalchemy, notegraph.boundary.db.base, notegraph.core.retry_state
System role: Durable state for the embedding retry state machine
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from notegraph.boundary.db.base import Base, TimestampMixin, TZDateTime, generate_id, utcnow
from notegraph.core.retry_state import RetryOperation, RetryStatus


def generate_retry_id() -> str:
    return generate_id("RETRY")


class EmbeddingRetryModel(Base, TimestampMixin):
    """
    Retry queue item.

    Attributes:
        id: ``RETRY-<hex>`` identifier
        work_id: Work note whose sync failed
        operation_type: create / update / delete
        attempt_count: Failed retry attempts so far
        max_attempts: Attempts allowed before dead-letter
        next_retry_at: Earliest time the sweep may pick the item up (UTC)
        status: pending / retrying / dead_letter
        error_message: Last error message
        error_details: Last error context (JSON)
        dead_letter_at: When the item was parked (None otherwise)

    Workflow:
        1. Sync failure enqueues a pending item (attempt 0, due now)
        2. Sweep claims it (retrying) and re-runs the sync
        3. Success deletes the row; failure reschedules or dead-letters it
        4. Operators may reset a dead-letter item back to pending
    """

    __tablename__ = "embedding_retry_queue"
    __table_args__ = (
        Index("idx_retry_queue_status_next_retry", "status", "next_retry_at"),
        Index("idx_retry_queue_dead_letter_at", "dead_letter_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=generate_retry_id)
    work_id: Mapped[str] = mapped_column(
        ForeignKey("work_notes.work_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    operation_type: Mapped[RetryOperation] = mapped_column(
        Enum(RetryOperation, native_enum=False),
        nullable=False,
    )
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    next_retry_at: Mapped[datetime] = mapped_column(TZDateTime(), nullable=False, default=utcnow)
    status: Mapped[RetryStatus] = mapped_column(
        Enum(RetryStatus, native_enum=False),
        nullable=False,
        default=RetryStatus.PENDING,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)
    error_details: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True, default=None)
    dead_letter_at: Mapped[datetime | None] = mapped_column(TZDateTime(), nullable=True, default=None)
