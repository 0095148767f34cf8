"""
Chunk domain model.

Represents one embeddable segment of a work note with its deterministic
id and the metadata stored next to its vector.

Dependencies: pydantic
System role: Work note chunk data structure
"""

from pydantic import BaseModel, Field


class ChunkMetadata(BaseModel):
    """Metadata derived fresh for every chunk on create/update."""

    work_id: str = Field(description="Owning work note ID")
    scope: str = Field(default="WORK", description="Chunk scope tag")
    chunk_index: int = Field(description="0-based position within the note", ge=0)
    person_ids: list[str] | None = Field(
        default=None,
        description="Persons associated with the note",
    )
    dept_name: str | None = Field(default=None, description="Owning person's department")
    category: str | None = Field(default=None, description="Work note category")
    created_at_bucket: str = Field(description="Creation date bucket (YYYY-MM-DD)")


class TextChunk(BaseModel):
    """Work note chunk with deterministic ID."""

    id: str = Field(description="Deterministic chunk identifier ({work_id}#chunk{index})")
    text: str = Field(description="Chunk text content")
    metadata: ChunkMetadata = Field(description="Chunk metadata")
