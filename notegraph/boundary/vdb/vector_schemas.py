"""
Vector database schemas.

Pydantic models for entries written to and matches read from a vector
store, plus the store interface every backend implements.

Dependencies: pydantic
System role: Type definitions for vector operations
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field


class VectorEntry(BaseModel):
    """Vector record keyed by chunk ID; writes are idempotent by ID."""

    id: str = Field(description="Deterministic chunk identifier")
    values: list[float] = Field(description="Embedding vector")
    metadata: dict[str, str] = Field(default_factory=dict, description="Encoded chunk metadata")


class VectorMatch(BaseModel):
    """Single result from a vector query."""

    id: str = Field(description="Chunk identifier")
    score: float = Field(description="Similarity score (higher is closer)")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Stored metadata")


class VectorStore(ABC):
    """Backend-agnostic vector store operations consumed by VectorIndexAdapter."""

    @abstractmethod
    async def upsert(self, entries: list[VectorEntry]) -> None:
        """Insert or overwrite entries by ID."""

    @abstractmethod
    async def delete_by_ids(self, ids: list[str]) -> None:
        """Delete entries; unknown IDs are ignored."""

    @abstractmethod
    async def query(
        self,
        vector: list[float],
        top_k: int,
        filter: dict[str, str] | None = None,
        return_metadata: bool = True,
    ) -> list[VectorMatch]:
        """
        Nearest-neighbor query with optional metadata equality filter.

        Args:
            vector: Query vector
            top_k: Maximum matches
            filter: Metadata field -> required value
            return_metadata: Include stored metadata on matches

        Returns:
            list[VectorMatch]: Matches, best first
        """
