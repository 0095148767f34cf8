"""Service orchestrators."""

from .embedding_retry_service import EmbeddingRetryService
from .embedding_sync_service import EmbeddingSyncCoordinator
from .hybrid_search_service import HybridSearchService
from .rag_service import RagService
from .reindex_service import ReindexService
from .work_note_service import WorkNoteService

__all__ = [
    "EmbeddingRetryService",
    "EmbeddingSyncCoordinator",
    "HybridSearchService",
    "RagService",
    "ReindexService",
    "WorkNoteService",
]
