"""
Embedding retry state machine.

A retry item is created ``pending``, claimed as ``retrying`` by a sweep,
and then either rescheduled (``pending``) or parked in ``dead_letter``.
Leaving ``dead_letter`` takes an explicit operator reset. Any other move
is a programming error and raises.

Dependencies: notegraph.core.exceptions
System role: Closed status enum and transition rules for the retry queue
"""

import enum
from datetime import datetime, timedelta

from notegraph.core.exceptions import InvalidRetryTransitionError


class RetryStatus(str, enum.Enum):
    """
    Retry queue item states.

    PENDING: Waiting for next_retry_at to pass
    RETRYING: Claimed by a sweep, operation in flight
    DEAD_LETTER: Retry budget exhausted; waits for a manual retry
    """

    PENDING = "pending"
    RETRYING = "retrying"
    DEAD_LETTER = "dead_letter"


class RetryOperation(str, enum.Enum):
    """Primary-store mutation whose vector sync failed."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


# None stands for an item that does not exist yet.
ALLOWED_TRANSITIONS: frozenset[tuple[RetryStatus | None, RetryStatus]] = frozenset({
    (None, RetryStatus.PENDING),
    (RetryStatus.PENDING, RetryStatus.RETRYING),
    (RetryStatus.RETRYING, RetryStatus.PENDING),
    (RetryStatus.RETRYING, RetryStatus.DEAD_LETTER),
    (RetryStatus.DEAD_LETTER, RetryStatus.PENDING),
})

NON_TERMINAL_STATUSES = (RetryStatus.PENDING, RetryStatus.RETRYING)


def can_transition(current: RetryStatus | None, target: RetryStatus) -> bool:
    return (current, target) in ALLOWED_TRANSITIONS


def ensure_transition(current: RetryStatus | None, target: RetryStatus) -> None:
    """
    Validate a status change.

    Args:
        current: Current status (None for a new item)
        target: Requested status

    Raises:
        InvalidRetryTransitionError: If the move is not one of the allowed transitions
    """
    if not can_transition(current, target):
        raise InvalidRetryTransitionError(
            current.value if current is not None else None,
            target.value,
        )


def calculate_backoff_delay(attempt: int, base: int = 2) -> int:
    """
    Backoff delay in seconds before the given attempt: ``base ** attempt``.

    Args:
        attempt: Attempt number (1 for the first retry)
        base: Exponential base

    Returns:
        int: Delay in seconds
    """
    return base ** attempt


def next_retry_time(now: datetime, attempt: int, base: int = 2) -> datetime:
    return now + timedelta(seconds=calculate_backoff_delay(attempt, base))
