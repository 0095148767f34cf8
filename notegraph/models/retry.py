"""
Retry queue read model.

Dependencies: pydantic
System role: Dead-letter listing structure
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from notegraph.core.retry_state import RetryOperation, RetryStatus


class RetryItemRead(BaseModel):
    """Retry queue item as shown to operators."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    work_id: str
    operation_type: RetryOperation
    attempt_count: int
    max_attempts: int
    next_retry_at: datetime
    status: RetryStatus
    error_message: str | None = None
    error_details: dict[str, Any] | None = None
    created_at: datetime
    updated_at: datetime
    dead_letter_at: datetime | None = None
