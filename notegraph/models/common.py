"""
Common response models.

Dependencies: pydantic
System role: Shared response structures
"""

from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic limit/offset page."""

    items: list[T]
    total: int
    limit: int
    offset: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + len(self.items) < self.total
