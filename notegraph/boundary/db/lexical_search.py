"""
Lexical search over the FTS5 ``notes_fts`` index.

Builds a safe FTS5 MATCH expression from free user text, composes the
shared work note filters and normalizes the FTS5 rank into a 0..1 score.

Dependencies: sqlalchemy, notegraph.boundary.db
System role: Keyword engine of hybrid search
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import column, literal_column, select, table, text
from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.boundary.db.CRUD.work_note_crud import build_note_filters
from notegraph.boundary.db.fts_schema import FTS_TABLE
from notegraph.boundary.db.models.work_note_model import WorkNoteModel

logger = logging.getLogger(__name__)

notes_fts = table(FTS_TABLE, column("rowid"), column("rank"))


@dataclass
class LexicalHit:
    """A work note matched by the FTS index."""

    work_note: WorkNoteModel
    score: float
    rank: float


def build_fts_query(query: str) -> str:
    """
    Turn user text into an FTS5 MATCH expression.

    Each whitespace-separated token becomes a quoted phrase (embedded quotes
    doubled), so operators and punctuation in user input are matched
    literally instead of raising FTS syntax errors. Phrases are implicitly
    ANDed; with the trigram tokenizer each phrase matches as a substring.

    Returns:
        str: MATCH expression, empty for blank input
    """
    tokens = query.strip().split()
    return " ".join('"' + token.replace('"', '""') + '"' for token in tokens)


def normalize_rank(rank: float) -> float:
    """Map an FTS5 rank (roughly -10..0) onto a score floored at 0."""
    return max(0.0, 1 + rank / 10)


class LexicalSearcher:
    """Keyword search against notes_fts joined to work_notes."""

    async def search(
        self,
        session: AsyncSession,
        query: str,
        limit: int = 10,
        category: str | None = None,
        person_id: str | None = None,
        dept_name: str | None = None,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> list[LexicalHit]:
        """
        Search work notes by keyword.

        Args:
            session: Async database session
            query: Free user text
            limit: Maximum hits
            category: Exact category match
            person_id: Note must be associated with this person
            dept_name: Note must involve a person currently in this department
            from_date: created_at lower bound (inclusive)
            to_date: created_at upper bound (inclusive)

        Returns:
            list[LexicalHit]: Hits ordered best match first
        """
        fts_query = build_fts_query(query)
        if not fts_query:
            return []

        stmt = (
            select(WorkNoteModel, notes_fts.c.rank.label("fts_rank"))
            .select_from(notes_fts)
            .join(WorkNoteModel, literal_column("work_notes.rowid") == notes_fts.c.rowid)
            .where(
                text(f"{FTS_TABLE} MATCH :fts_query").bindparams(fts_query=fts_query),
                *build_note_filters(category, person_id, dept_name, from_date, to_date),
            )
            # FTS5 rank is lower-is-better
            .order_by(notes_fts.c.rank, WorkNoteModel.work_id)
            .limit(limit)
        )
        result = await session.execute(stmt)
        hits = [
            LexicalHit(work_note=note, score=normalize_rank(float(rank)), rank=float(rank))
            for note, rank in result.all()
        ]

        logger.debug(
            f"{__name__}:search - {len(hits)} hits",
            extra={"fts_query": fts_query, "limit": limit},
        )
        return hits


lexical_searcher = LexicalSearcher()
