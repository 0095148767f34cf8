"""
Fallible decode results.

Store output (chunk ids, vector metadata) is decoded into a DecodeResult
instead of raising, so callers branch on ``ok`` rather than catching.

Dependencies: None
System role: Result value for parsing external data
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """Outcome of decoding a value: either ``value`` or ``error`` is set."""

    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "DecodeResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "DecodeResult[T]":
        return cls(error=error)

    def unwrap_or(self, default: T) -> T:
        """Return the decoded value, or ``default`` on failure."""
        if self.error is None and self.value is not None:
            return self.value
        return default
