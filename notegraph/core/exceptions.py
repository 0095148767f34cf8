"""
Exception hierarchy for notegraph.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class NotegraphException(Exception):
    """Base exception for all notegraph errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(NotegraphException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class WorkNoteNotFoundError(NotegraphException):
    """Raised when a work note cannot be found."""

    def __init__(self, work_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["work_id"] = work_id
        self.work_id = work_id
        super().__init__(f"Work note not found: {work_id}", details)


class RetryItemNotFoundError(NotegraphException):
    """Raised when a retry queue item cannot be found."""

    def __init__(self, retry_id: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["retry_id"] = retry_id
        super().__init__(f"Retry item not found: {retry_id}", details)


class InvalidRetryTransitionError(NotegraphException):
    """Raised when a retry item is moved along a transition the state machine forbids."""

    def __init__(
        self,
        current: str | None,
        target: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize invalid transition error.

        Args:
            current: Current status value (None for a new item)
            target: Requested status value
            details: Additional context
        """
        details = details or {}
        details.update({"from": current, "to": target})
        super().__init__(
            f"Invalid retry transition: {current or '(new)'} -> {target}", details
        )


class EmbeddingError(NotegraphException):
    """Raised when embedding generation fails."""

    def __init__(
        self,
        message: str,
        work_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize embedding error.

        Args:
            message: Error message
            work_id: Work note being embedded, when known
            details: Additional context
        """
        details = details or {}
        if work_id:
            details["work_id"] = work_id
        super().__init__(message, details)


class EmbeddingRateLimitError(EmbeddingError):
    """Raised when the embedding provider reports a rate limit."""


class VectorStoreError(NotegraphException):
    """Raised when vector store operations fail."""

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize vector store error.

        Args:
            message: Error message
            operation: Operation that failed (upsert, query, delete)
            details: Additional context
        """
        details = details or {}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class RetrievalError(NotegraphException):
    """Raised when retrieval operations fail."""

    def __init__(
        self,
        message: str,
        query: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if query:
            details["query"] = query
        super().__init__(message, details)


class GenerationError(NotegraphException):
    """Raised when the text generator fails."""


class GenerationRateLimitError(GenerationError):
    """Raised when the text generator reports a rate limit."""
