"""
Integration tests for FTS5 lexical search.

The index uses the trigram tokenizer, so every search term needs at least
three characters to match.

Dependencies: pytest, sqlalchemy, aiosqlite
System role: Verification of the keyword engine
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.boundary.db.CRUD.work_note_crud import work_note_crud
from notegraph.boundary.db.fts_schema import rebuild_fts_index
from notegraph.boundary.db.lexical_search import build_fts_query, lexical_searcher, normalize_rank


class TestBuildFtsQuery:
    """Test suite for build_fts_query()."""

    def test_should_quote_each_token(self) -> None:
        assert build_fts_query("budget report") == '"budget" "report"'

    def test_should_escape_quotes_and_operators(self) -> None:
        assert build_fts_query('say "hi" OR') == '"say" """hi""" "OR"'

    def test_blank_query_should_be_empty(self) -> None:
        assert build_fts_query("   ") == ""


class TestNormalizeRank:
    """Test suite for normalize_rank()."""

    def test_should_map_rank_into_unit_interval(self) -> None:
        assert normalize_rank(0.0) == 1.0
        assert normalize_rank(-5.0) == 0.5
        assert normalize_rank(-25.0) == 0.0


class TestLexicalSearcher:
    """Test suite for LexicalSearcher.search()."""

    @pytest.mark.asyncio
    async def test_should_match_title_and_content(
        self, db_session: AsyncSession, make_note
    ) -> None:
        # Arrange
        in_title = await make_note("Budget review", "Numbers for Q3")
        in_body = await make_note("Weekly sync", "The budget was discussed")
        await make_note("Server migration", "Move to new racks")

        # Act
        hits = await lexical_searcher.search(db_session, "budget")

        # Assert
        assert {hit.work_note.work_id for hit in hits} == {in_title.work_id, in_body.work_id}
        assert all(0.0 <= hit.score <= 1.0 for hit in hits)
        assert [hit.rank for hit in hits] == sorted(hit.rank for hit in hits)

    @pytest.mark.asyncio
    async def test_should_match_substrings(self, db_session: AsyncSession, make_note) -> None:
        """Test trigram matching finds a term inside a longer word."""
        # Arrange
        note = await make_note("Migrations", "Database migrations planned")

        # Act
        hits = await lexical_searcher.search(db_session, "grat")

        # Assert
        assert [hit.work_note.work_id for hit in hits] == [note.work_id]

    @pytest.mark.asyncio
    async def test_should_and_terms_together(self, db_session: AsyncSession, make_note) -> None:
        # Arrange
        both = await make_note("Budget audit", "Finance")
        await make_note("Budget plan", "Finance")

        # Act
        hits = await lexical_searcher.search(db_session, "budget audit")

        # Assert
        assert [hit.work_note.work_id for hit in hits] == [both.work_id]

    @pytest.mark.asyncio
    async def test_should_apply_note_filters(
        self, db_session: AsyncSession, seed_people: None, make_note
    ) -> None:
        # Arrange
        finance = await make_note("Budget", "Q3", category="report", person_ids=["P-001"])
        await make_note("Budget", "Q3", category="report", person_ids=["P-003"])
        await make_note("Budget", "Q3", category="meeting", person_ids=["P-001"])

        # Act
        hits = await lexical_searcher.search(
            db_session, "budget", category="report", dept_name="Finance"
        )

        # Assert
        assert [hit.work_note.work_id for hit in hits] == [finance.work_id]

    @pytest.mark.asyncio
    async def test_should_follow_updates_and_deletes(
        self, db_session: AsyncSession, make_note
    ) -> None:
        """Test the triggers keep the index in step with work_notes."""
        # Arrange
        note = await make_note("Budget", "Q3")
        gone = await make_note("Budget again", "Q4")

        # Act
        await work_note_crud.update(db_session, note.work_id, title="Hiring plan")
        await work_note_crud.delete(db_session, gone.work_id)
        await db_session.commit()

        # Assert
        assert await lexical_searcher.search(db_session, "budget") == []
        hits = await lexical_searcher.search(db_session, "hiring")
        assert [hit.work_note.work_id for hit in hits] == [note.work_id]

    @pytest.mark.asyncio
    async def test_special_characters_should_not_raise(
        self, db_session: AsyncSession, make_note
    ) -> None:
        await make_note("Budget", "Q3")
        assert await lexical_searcher.search(db_session, 'budget* AND (NEAR "') == []

    @pytest.mark.asyncio
    async def test_empty_query_should_return_nothing(self, db_session: AsyncSession) -> None:
        assert await lexical_searcher.search(db_session, "  ") == []

    @pytest.mark.asyncio
    async def test_rebuild_should_keep_results(self, db_session: AsyncSession, make_note) -> None:
        # Arrange
        note = await make_note("Security audit", "Annual")

        # Act
        await rebuild_fts_index(db_session)
        await db_session.commit()

        # Assert
        hits = await lexical_searcher.search(db_session, "audit")
        assert [hit.work_note.work_id for hit in hits] == [note.work_id]
