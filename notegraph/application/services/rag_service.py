"""
RAG retrieval service.

Answers questions over work notes: scoped vector retrieval, similarity
threshold, snippet reconstruction from the source note and a single
generator call. When nothing relevant is retrieved a fixed answer is
returned and the generator is not called.

Dependencies: sqlalchemy, notegraph.boundary, notegraph.core
System role: Question answering over work notes
"""

import logging
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.boundary.db.CRUD.work_note_crud import work_note_crud
from notegraph.boundary.vdb.vector_index import VectorIndexAdapter
from notegraph.boundary.vdb.vector_schemas import VectorMatch
from notegraph.configs.rag import RagSettings
from notegraph.core.chunker import Chunker, build_full_text, parse_chunk_id, truncate_for_display
from notegraph.core.exceptions import ValidationError
from notegraph.core.metadata_codec import decode_metadata, decode_person_ids, truncate_to_bytes
from notegraph.core.rag_prompt import NO_RESULTS_ANSWER, build_rag_prompt
from notegraph.models.rag import (
    RagContextSnippet,
    RagQueryFilters,
    RagQueryResponse,
    RagScope,
)

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Prompt-to-answer collaborator."""

    async def complete(self, prompt: str) -> str: ...


class RagService:
    """
    Scoped retrieval-augmented question answering.

    GLOBAL, WORK and DEPARTMENT scopes map to a single metadata equality
    filter. PERSON scope cannot be expressed that way (person_ids is a
    joined list), so it over-fetches and filters after retrieval.
    """

    def __init__(
        self,
        db: AsyncSession,
        vector_index: VectorIndexAdapter,
        generator: TextGenerator,
        chunker: Chunker,
        settings: RagSettings | None = None,
    ) -> None:
        """
        Initialize RAG service.

        Args:
            db: AsyncSession for database operations
            vector_index: Vector index adapter
            generator: Answer generator
            chunker: Chunker configured like the one that indexed the notes
            settings: Retrieval tuning (defaults from environment)
        """
        self.db = db
        self.vector_index = vector_index
        self.generator = generator
        self.chunker = chunker
        self.settings = settings or RagSettings()

    def build_vector_filter(self, filters: RagQueryFilters) -> dict[str, str] | None:
        """
        Metadata filter for the scope.

        Raises:
            ValidationError: If the scope's ID is missing
        """
        max_bytes = self.vector_index.metadata_max_bytes
        if filters.scope == RagScope.WORK:
            if not filters.work_id:
                raise ValidationError("work_id is required for WORK scope", field="work_id")
            return {"work_id": filters.work_id}
        if filters.scope == RagScope.DEPARTMENT:
            if not filters.dept_name:
                raise ValidationError(
                    "dept_name is required for DEPARTMENT scope", field="dept_name"
                )
            return {"dept_name": truncate_to_bytes(filters.dept_name, max_bytes)}
        if filters.scope == RagScope.PERSON and not filters.person_id:
            raise ValidationError("person_id is required for PERSON scope", field="person_id")
        return None

    async def retrieve(
        self,
        query: str,
        filters: RagQueryFilters | None = None,
    ) -> list[RagContextSnippet]:
        """
        Retrieve context snippets for a question.

        Args:
            query: User question
            filters: Scope, scope ID and top_k

        Returns:
            list[RagContextSnippet]: At most top_k snippets above the threshold, best first

        Raises:
            ValidationError: If the scope's ID is missing
        """
        filters = filters or RagQueryFilters()
        top_k = filters.top_k or self.settings.default_top_k
        vector_filter = self.build_vector_filter(filters)

        fetch_k = top_k
        if filters.scope == RagScope.PERSON:
            fetch_k = top_k * self.settings.person_overfetch_factor

        matches = await self.vector_index.search(query, top_k=fetch_k, filter=vector_filter)
        relevant = [m for m in matches if m.score >= self.settings.similarity_threshold]
        if filters.scope == RagScope.PERSON:
            relevant = [
                m for m in relevant
                if filters.person_id in decode_person_ids(m.metadata.get("person_ids"))
            ]
        relevant = relevant[:top_k]

        contexts = await self._build_snippets(relevant)
        logger.info(
            f"{__name__}:retrieve - {len(contexts)} contexts",
            extra={"scope": filters.scope.value, "candidates": len(matches)},
        )
        return contexts

    async def query(
        self,
        query: str,
        filters: RagQueryFilters | None = None,
    ) -> RagQueryResponse:
        """
        Answer a question from retrieved work note contexts.

        Args:
            query: User question
            filters: Scope, scope ID and top_k

        Returns:
            RagQueryResponse: Answer and the contexts it was grounded on

        Raises:
            ValidationError: If the scope's ID is missing
            GenerationError: If the generator fails
        """
        contexts = await self.retrieve(query, filters)
        if not contexts:
            return RagQueryResponse(answer=NO_RESULTS_ANSWER, contexts=[])

        answer = await self.generator.complete(build_rag_prompt(query, contexts))
        return RagQueryResponse(answer=answer, contexts=contexts)

    async def _build_snippets(self, matches: list[VectorMatch]) -> list[RagContextSnippet]:
        located: list[tuple[VectorMatch, str, int]] = []
        for match in matches:
            decoded = decode_metadata(match.metadata)
            if decoded.ok:
                located.append((match, decoded.value.work_id, decoded.value.chunk_index))
                continue
            parsed = parse_chunk_id(match.id)
            if not parsed.ok:
                logger.warning(
                    f"{__name__}:_build_snippets - Skipping undecodable match",
                    extra={"chunk_id": match.id, "reason": decoded.error},
                )
                continue
            work_id, chunk_index = parsed.value
            located.append((match, work_id, chunk_index))

        notes = await work_note_crud.get_by_ids(self.db, [work_id for _, work_id, _ in located])

        snippets: list[RagContextSnippet] = []
        for match, work_id, chunk_index in located:
            note = notes.get(work_id)
            if note is None:
                continue
            chunk_text = self.chunker.get_chunk_text(
                build_full_text(note.title, note.content_raw), chunk_index
            )
            snippets.append(
                RagContextSnippet(
                    work_id=note.work_id,
                    title=note.title,
                    snippet=truncate_for_display(chunk_text, self.settings.snippet_max_chars),
                    score=match.score,
                )
            )
        return snippets
