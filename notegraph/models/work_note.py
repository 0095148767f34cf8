"""
Work note read and search models.

Dependencies: pydantic, notegraph.core.rrf
System role: Hybrid search request/response structures
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from notegraph.core.rrf import SearchSource


class WorkNoteRead(BaseModel):
    """Work note as returned to callers."""

    model_config = ConfigDict(from_attributes=True)

    work_id: str
    title: str
    content_raw: str
    category: str | None = None
    created_at: datetime
    updated_at: datetime
    embedded_at: datetime | None = None


class SearchFilters(BaseModel):
    """Filters shared by lexical, semantic and hybrid search."""

    category: str | None = Field(default=None, description="Exact category match")
    person_id: str | None = Field(default=None, description="Note must be associated with this person")
    dept_name: str | None = Field(default=None, description="Note must involve a person in this department")
    from_date: datetime | None = Field(default=None, description="created_at lower bound (inclusive)")
    to_date: datetime | None = Field(default=None, description="created_at upper bound (inclusive)")
    limit: int | None = Field(default=None, description="Maximum merged results", ge=1, le=100)


class SearchResultItem(BaseModel):
    """One merged search hit."""

    work_note: WorkNoteRead
    score: float = Field(description="RRF score (hybrid) or engine score (single engine)")
    source: SearchSource = Field(description="Engine(s) that found the note")


class HybridSearchResponse(BaseModel):
    """Hybrid search output."""

    results: list[SearchResultItem]
    count: int
    query: str
