"""
Work note, person and department ORM models.

The primary store for notes and the associations the index derives chunk
metadata from (persons on a note, each person's current department).

Dependencies: sqlalchemy, notegraph.boundary.db.base
System role: Primary record store schema
"""

import enum
from datetime import datetime

from sqlalchemy import Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notegraph.boundary.db.base import Base, TimestampMixin, TZDateTime


class PersonRole(str, enum.Enum):
    """
    Role of a person on a work note.

    OWNER: Person responsible for the note
    RELATED: Person mentioned or involved
    """

    OWNER = "OWNER"
    RELATED = "RELATED"


class DepartmentModel(Base):
    """
    Department ORM model.

    Attributes:
        dept_name: Department name (primary key)
        description: Optional free-text description
    """

    __tablename__ = "departments"

    dept_name: Mapped[str] = mapped_column(String(255), primary_key=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)


class PersonModel(Base, TimestampMixin):
    """
    Person ORM model.

    Attributes:
        person_id: Person identifier (primary key)
        name: Display name
        current_dept: Current department (nullable)
    """

    __tablename__ = "persons"

    person_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    current_dept: Mapped[str | None] = mapped_column(
        ForeignKey("departments.dept_name", ondelete="SET NULL"),
        nullable=True,
        default=None,
        index=True,
    )


class WorkNotePersonModel(Base):
    """
    Association between a work note and a person.

    Attributes:
        work_id: Work note (cascade on delete)
        person_id: Person (cascade on delete)
        role: OWNER or RELATED
        position: Order of the person on the note (0 is the owner)
    """

    __tablename__ = "work_note_persons"

    work_id: Mapped[str] = mapped_column(
        ForeignKey("work_notes.work_id", ondelete="CASCADE"),
        primary_key=True,
    )
    person_id: Mapped[str] = mapped_column(
        ForeignKey("persons.person_id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    role: Mapped[PersonRole] = mapped_column(
        Enum(PersonRole, native_enum=False),
        nullable=False,
        default=PersonRole.OWNER,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    person = relationship("PersonModel", lazy="joined")


class WorkNoteModel(Base, TimestampMixin):
    """
    Work note ORM model.

    Title, body and category are mirrored into the ``notes_fts`` FTS5 table
    by triggers (see fts_schema). ``embedded_at`` is stamped after the note's
    chunks were successfully written to the vector index and is cleared when
    the note changes.

    Attributes:
        work_id: Work note identifier (primary key)
        title: Note title
        content_raw: Note body
        category: Optional category
        embedded_at: Last successful vector sync (UTC), None when pending
        person_links: Person associations (selectin-loaded)
    """

    __tablename__ = "work_notes"
    __table_args__ = (
        Index("idx_work_notes_created_at", "created_at"),
        Index("idx_work_notes_embedded_at", "embedded_at"),
    )

    work_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content_raw: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str | None] = mapped_column(String(255), nullable=True, default=None)
    embedded_at: Mapped[datetime | None] = mapped_column(
        TZDateTime(),
        nullable=True,
        default=None,
    )

    person_links = relationship(
        "WorkNotePersonModel",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="WorkNotePersonModel.position",
    )

    @property
    def person_ids(self) -> list[str]:
        """Associated person IDs."""
        return [link.person_id for link in self.person_links]
