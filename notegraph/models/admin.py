"""
Admin operation result models.

Dependencies: pydantic
System role: Reindex and embedding statistics summaries
"""

import enum

from pydantic import BaseModel, Field


class ReindexFailureReason(str, enum.Enum):
    """
    Why a note failed during a bulk operation.

    PREPARE_FAILED: Metadata or chunking failed before embedding
    UPSERT_FAILED: The batch embedding/upsert call failed
    NOT_FOUND: The note was deleted during the run
    STALE_VERSION: The note changed after it was chunked; it stays pending
    UNKNOWN: Any other failure
    """

    PREPARE_FAILED = "PREPARE_FAILED"
    UPSERT_FAILED = "UPSERT_FAILED"
    NOT_FOUND = "NOT_FOUND"
    STALE_VERSION = "STALE_VERSION"
    UNKNOWN = "UNKNOWN"


class ReindexError(BaseModel):
    """A note that failed during a bulk operation."""

    work_id: str
    error: str
    reason: ReindexFailureReason = ReindexFailureReason.UNKNOWN


class ReindexResult(BaseModel):
    """Summary of a bulk reindex or embed-pending run."""

    total: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: list[ReindexError] = Field(default_factory=list)

    def record_failure(
        self,
        work_id: str,
        error: str,
        reason: ReindexFailureReason = ReindexFailureReason.UNKNOWN,
    ) -> None:
        self.processed += 1
        self.failed += 1
        self.errors.append(ReindexError(work_id=work_id, error=error, reason=reason))

    def record_success(self) -> None:
        self.processed += 1
        self.succeeded += 1


class EmbeddingStats(BaseModel):
    """Embedding coverage of the primary store."""

    total: int
    embedded: int
    pending: int
