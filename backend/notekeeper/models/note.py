"""
NoteKeeper Backend — Note SQLAlchemy Models
=============================================

What:  ORM models for the `notes` table and its `note_tags` child table.
How:   Each Note belongs to exactly one User (`owner_id`). Tags are kept as
       rows of `note_tags` with an explicit `position`, so the tag sequence
       keeps its order and tag membership is a plain SQL predicate
       (`Note.tag_rows.any(NoteTag.tag == "work")`).
Who:   Used by NoteRepository for every note operation and by Alembic.

Ownership:
    `owner_id` is assigned once from the authenticated identity and never
    changes. Every repository query filters on it.

Query Patterns:
    - List a user's notes:   WHERE owner_id = :uid ORDER BY created_at
      → idx_notes_owner_created
    - Tag filter:            EXISTS (SELECT 1 FROM note_tags WHERE tag = :tag ...)
      → idx_note_tags_tag
    - Owner-scoped lookup:   WHERE id = :id AND owner_id = :uid
      → primary key
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from notekeeper.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Note(Base):
    """
    A personal text note.

    Lifecycle:
        1. Created by its owner (POST /notes)
        2. Updated only by its owner; every update refreshes `updated_at`
        3. Hard-deleted only by its owner; tag rows go with it
    """

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    content: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        comment="Owning identity; immutable",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    # Set explicitly by NoteRepository on every mutation
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    # selectin: tags are loaded with the note in the same await, so the
    # collection is usable after the session closes
    tag_rows: Mapped[List["NoteTag"]] = relationship(
        back_populates="note",
        order_by="NoteTag.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_notes_owner_created", "owner_id", "created_at"),
    )

    @property
    def tags(self) -> List[str]:
        """Tag values in their stored order."""
        return [row.tag for row in self.tag_rows]

    def set_tags(self, tags: List[str]) -> None:
        """Replace the whole tag sequence, renumbering positions from 0."""
        self.tag_rows = [NoteTag(position=i, tag=tag) for i, tag in enumerate(tags)]

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, owner_id={self.owner_id}, title='{self.title}')>"


class NoteTag(Base):
    """One tag of one note, at a given position in the note's tag list."""

    __tablename__ = "note_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("notes.id", ondelete="CASCADE"),
        nullable=False,
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False)

    tag: Mapped[str] = mapped_column(Text, nullable=False)

    note: Mapped["Note"] = relationship(back_populates="tag_rows")

    __table_args__ = (
        Index("idx_note_tags_tag", "tag"),
        Index("idx_note_tags_note_id", "note_id"),
    )

    def __repr__(self) -> str:
        return f"<NoteTag(note_id={self.note_id}, position={self.position}, tag='{self.tag}')>"
