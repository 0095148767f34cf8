"""
RAG query models.

Dependencies: pydantic
System role: RAG request/response structures
"""

import enum

from pydantic import BaseModel, Field


class RagScope(str, enum.Enum):
    """
    Retrieval scope for a RAG query.

    GLOBAL: All work notes
    WORK: A single work note (requires work_id)
    PERSON: Notes associated with a person (requires person_id)
    DEPARTMENT: Notes owned by a department (requires dept_name)
    """

    GLOBAL = "GLOBAL"
    WORK = "WORK"
    PERSON = "PERSON"
    DEPARTMENT = "DEPARTMENT"


class RagQueryFilters(BaseModel):
    """Scope and size of a RAG query."""

    scope: RagScope = Field(default=RagScope.GLOBAL)
    work_id: str | None = None
    person_id: str | None = None
    dept_name: str | None = None
    top_k: int | None = Field(default=None, ge=1, le=50)


class RagContextSnippet(BaseModel):
    """Context handed to the generator and returned to the caller."""

    work_id: str
    title: str
    snippet: str
    score: float


class RagQueryResponse(BaseModel):
    """Generated answer with the contexts it was grounded on."""

    answer: str
    contexts: list[RagContextSnippet]
