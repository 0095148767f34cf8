"""
FTS5 full-text index schema for work notes.

Creates the ``notes_fts`` virtual table (trigram tokenizer, external content
``work_notes``) together with the triggers that keep it in sync, whenever
``Base.metadata.create_all`` creates the ``work_notes`` table on SQLite.

Dependencies: sqlalchemy
System role: Lexical index DDL
"""

from sqlalchemy import DDL, event, text
from sqlalchemy.ext.asyncio import AsyncSession

from notegraph.boundary.db.models.work_note_model import WorkNoteModel

FTS_TABLE = "notes_fts"

CREATE_FTS_TABLE = DDL(
    f"""
    CREATE VIRTUAL TABLE IF NOT EXISTS {FTS_TABLE} USING fts5(
        title,
        content_raw,
        category,
        tokenize='trigram',
        content='work_notes',
        content_rowid='rowid'
    )
    """
)

# External-content tables must be told what to forget via the 'delete' command.
CREATE_INSERT_TRIGGER = DDL(
    f"""
    CREATE TRIGGER IF NOT EXISTS {FTS_TABLE}_ai AFTER INSERT ON work_notes BEGIN
        INSERT INTO {FTS_TABLE}(rowid, title, content_raw, category)
        VALUES (new.rowid, new.title, new.content_raw, new.category);
    END
    """
)

CREATE_DELETE_TRIGGER = DDL(
    f"""
    CREATE TRIGGER IF NOT EXISTS {FTS_TABLE}_ad AFTER DELETE ON work_notes BEGIN
        INSERT INTO {FTS_TABLE}({FTS_TABLE}, rowid, title, content_raw, category)
        VALUES ('delete', old.rowid, old.title, old.content_raw, old.category);
    END
    """
)

CREATE_UPDATE_TRIGGER = DDL(
    f"""
    CREATE TRIGGER IF NOT EXISTS {FTS_TABLE}_au
    AFTER UPDATE OF title, content_raw, category ON work_notes BEGIN
        INSERT INTO {FTS_TABLE}({FTS_TABLE}, rowid, title, content_raw, category)
        VALUES ('delete', old.rowid, old.title, old.content_raw, old.category);
        INSERT INTO {FTS_TABLE}(rowid, title, content_raw, category)
        VALUES (new.rowid, new.title, new.content_raw, new.category);
    END
    """
)

DROP_FTS_TABLE = DDL(f"DROP TABLE IF EXISTS {FTS_TABLE}")

for _ddl in (
    CREATE_FTS_TABLE,
    CREATE_INSERT_TRIGGER,
    CREATE_DELETE_TRIGGER,
    CREATE_UPDATE_TRIGGER,
):
    event.listen(WorkNoteModel.__table__, "after_create", _ddl.execute_if(dialect="sqlite"))

event.listen(
    WorkNoteModel.__table__,
    "before_drop",
    DROP_FTS_TABLE.execute_if(dialect="sqlite"),
)


async def rebuild_fts_index(session: AsyncSession) -> None:
    """
    Rebuild notes_fts from work_notes.

    Needed after bulk loads that bypass the triggers or after VACUUM
    renumbers work_notes rowids.
    """
    await session.execute(text(f"INSERT INTO {FTS_TABLE}({FTS_TABLE}) VALUES ('rebuild')"))
