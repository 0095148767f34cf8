"""
Hybrid search service.

Runs the FTS5 lexical engine and the dense-vector engine concurrently,
over-fetching from each to absorb deduplication losses, merges both
rankings with Reciprocal Rank Fusion and batch-fetches the surviving work
notes with the filters the vector engine cannot express. A failing engine
degrades the query to the other engine's results instead of failing it.

Dependencies: sqlalchemy, notegraph.boundary, notegraph.core.rrf
System role: Read path for work note search
"""

import asyncio
import logging
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.boundary.db.CRUD.work_note_crud import work_note_crud
from notegraph.boundary.db.lexical_search import LexicalHit, LexicalSearcher, lexical_searcher
from notegraph.boundary.vdb.vector_index import VectorIndexAdapter
from notegraph.boundary.vdb.vector_schemas import VectorMatch
from notegraph.configs.search import SearchSettings
from notegraph.core.chunker import parse_chunk_id
from notegraph.core.metadata_codec import truncate_to_bytes
from notegraph.core.rrf import SearchSource, dedupe_preserving_order, reciprocal_rank_fusion
from notegraph.models.work_note import (
    HybridSearchResponse,
    SearchFilters,
    SearchResultItem,
    WorkNoteRead,
)
from notegraph.observability.log_utils import log_exception_with_context

logger = logging.getLogger(__name__)


def match_work_id(match: VectorMatch) -> str | None:
    """Work note a chunk match belongs to, from its ID or its metadata."""
    parsed = parse_chunk_id(match.id)
    if parsed.ok:
        return parsed.value[0]
    return match.metadata.get("work_id") or None


def collapse_to_work_notes(matches: Sequence[VectorMatch]) -> list[tuple[str, float]]:
    """
    Collapse chunk matches to one entry per work note.

    The first (best ranked) chunk of a note wins; the order of first
    appearance is kept.

    Returns:
        list[tuple[str, float]]: (work_id, best chunk score), best first
    """
    best: dict[str, float] = {}
    for match in matches:
        work_id = match_work_id(match)
        if work_id is None:
            logger.warning(
                f"{__name__}:collapse_to_work_notes - Dropping match without work_id",
                extra={"chunk_id": match.id},
            )
            continue
        best.setdefault(work_id, match.score)
    return list(best.items())


class HybridSearchService:
    """
    Lexical + semantic search merged with RRF.

    Attributes:
        vector_index: Vector index adapter
        rrf_k: RRF constant
        overfetch_factor: Multiplier on the requested limit per engine
        default_limit: Result count when the caller does not set one
    """

    def __init__(
        self,
        db: AsyncSession,
        vector_index: VectorIndexAdapter,
        settings: SearchSettings | None = None,
        lexical: LexicalSearcher = lexical_searcher,
    ) -> None:
        """
        Initialize hybrid search service.

        Args:
            db: AsyncSession for database operations
            vector_index: Vector index adapter
            settings: Search tuning (defaults from environment)
            lexical: Lexical engine
        """
        settings = settings or SearchSettings()
        self.db = db
        self.vector_index = vector_index
        self.lexical = lexical
        self.rrf_k = settings.rrf_k
        self.overfetch_factor = settings.overfetch_factor
        self.default_limit = settings.default_limit

    async def hybrid_search(
        self,
        query: str,
        filters: SearchFilters | None = None,
    ) -> HybridSearchResponse:
        """
        Search work notes with both engines and fuse the rankings.

        The final count can be below the limit when the batch fetch filters
        out fused candidates.

        Args:
            query: User query
            filters: Category, person, department, date range and limit

        Returns:
            HybridSearchResponse: Results best first, with count and query
        """
        filters = filters or SearchFilters()
        limit = filters.limit or self.default_limit
        fetch_limit = limit * self.overfetch_factor

        lexical_hits, semantic_hits = await asyncio.gather(
            self._run_lexical(query, filters, fetch_limit),
            self._run_semantic(query, filters, fetch_limit),
        )

        lexical_ids = dedupe_preserving_order(hit.work_note.work_id for hit in lexical_hits)
        semantic_ids = [work_id for work_id, _ in semantic_hits]
        fused = reciprocal_rank_fusion(lexical_ids, semantic_ids, k=self.rrf_k, limit=limit)

        notes = await work_note_crud.get_by_ids(
            self.db,
            [entry.id for entry in fused],
            category=filters.category,
            person_id=filters.person_id,
            dept_name=filters.dept_name,
            from_date=filters.from_date,
            to_date=filters.to_date,
        )
        results = [
            SearchResultItem(
                work_note=WorkNoteRead.model_validate(notes[entry.id]),
                score=entry.score,
                source=entry.source,
            )
            for entry in fused
            if entry.id in notes
        ]

        logger.info(
            f"{__name__}:hybrid_search - {len(results)} results",
            extra={
                "lexical_hits": len(lexical_ids),
                "semantic_hits": len(semantic_ids),
                "fused": len(fused),
            },
        )
        return HybridSearchResponse(results=results, count=len(results), query=query)

    async def lexical_search(
        self,
        query: str,
        filters: SearchFilters | None = None,
    ) -> HybridSearchResponse:
        """Keyword-only search scored by normalized FTS5 rank."""
        filters = filters or SearchFilters()
        hits = await self.lexical.search(
            self.db,
            query,
            limit=filters.limit or self.default_limit,
            category=filters.category,
            person_id=filters.person_id,
            dept_name=filters.dept_name,
            from_date=filters.from_date,
            to_date=filters.to_date,
        )
        results = [
            SearchResultItem(
                work_note=WorkNoteRead.model_validate(hit.work_note),
                score=hit.score,
                source=SearchSource.LEXICAL,
            )
            for hit in hits
        ]
        return HybridSearchResponse(results=results, count=len(results), query=query)

    async def semantic_search(
        self,
        query: str,
        filters: SearchFilters | None = None,
    ) -> HybridSearchResponse:
        """Vector-only search scored by the best chunk similarity per note."""
        filters = filters or SearchFilters()
        limit = filters.limit or self.default_limit
        hits = await self.vector_index.search(
            query,
            top_k=limit * self.overfetch_factor,
            filter=self._vector_filter(filters),
        )
        ranked = collapse_to_work_notes(hits)
        notes = await work_note_crud.get_by_ids(
            self.db,
            [work_id for work_id, _ in ranked],
            category=filters.category,
            person_id=filters.person_id,
            dept_name=filters.dept_name,
            from_date=filters.from_date,
            to_date=filters.to_date,
        )
        results = [
            SearchResultItem(
                work_note=WorkNoteRead.model_validate(notes[work_id]),
                score=score,
                source=SearchSource.SEMANTIC,
            )
            for work_id, score in ranked
            if work_id in notes
        ][:limit]
        return HybridSearchResponse(results=results, count=len(results), query=query)

    async def _run_lexical(
        self,
        query: str,
        filters: SearchFilters,
        limit: int,
    ) -> list[LexicalHit]:
        try:
            return await self.lexical.search(
                self.db,
                query,
                limit=limit,
                category=filters.category,
                person_id=filters.person_id,
                dept_name=filters.dept_name,
                from_date=filters.from_date,
                to_date=filters.to_date,
            )
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_run_lexical - Lexical engine failed, continuing without it",
                e,
                query=query,
            )
            return []

    async def _run_semantic(
        self,
        query: str,
        filters: SearchFilters,
        limit: int,
    ) -> list[tuple[str, float]]:
        try:
            matches = await self.vector_index.search(
                query,
                top_k=limit,
                filter=self._vector_filter(filters),
            )
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_run_semantic - Vector engine failed, continuing without it",
                e,
                query=query,
            )
            return []
        return collapse_to_work_notes(matches)

    def _vector_filter(self, filters: SearchFilters) -> dict[str, str] | None:
        # Person, department and date range are applied in the batch fetch.
        if not filters.category:
            return None
        return {"category": truncate_to_bytes(filters.category, self.vector_index.metadata_max_bytes)}
