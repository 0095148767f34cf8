"""
Pydantic models exchanged across the notegraph service boundary.
"""

from notegraph.models.admin import (
    EmbeddingStats,
    ReindexError,
    ReindexFailureReason,
    ReindexResult,
)
from notegraph.models.chunk import ChunkMetadata, TextChunk
from notegraph.models.common import PaginatedResponse
from notegraph.models.rag import RagContextSnippet, RagQueryFilters, RagQueryResponse, RagScope
from notegraph.models.retry import RetryItemRead
from notegraph.models.work_note import (
    HybridSearchResponse,
    SearchFilters,
    SearchResultItem,
    WorkNoteRead,
)

__all__ = [
    "ChunkMetadata",
    "EmbeddingStats",
    "HybridSearchResponse",
    "PaginatedResponse",
    "RagContextSnippet",
    "RagQueryFilters",
    "RagQueryResponse",
    "RagScope",
    "ReindexError",
    "ReindexFailureReason",
    "ReindexResult",
    "RetryItemRead",
    "SearchFilters",
    "SearchResultItem",
    "TextChunk",
    "WorkNoteRead",
]
