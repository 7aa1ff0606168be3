"""
NoteKeeper Backend — Note Repository
======================================

What:  Owner-scoped create / list / update / delete of notes.
How:   Every query that touches an existing note filters on BOTH the note id
       and the requesting identity's id, so one identity can never observe,
       change or remove another identity's note, whatever id it sends.
Who:   Built per request with the request's AsyncSession; called by the
       notes router.

Information hiding:
    A note that does not exist and a note owned by someone else look the
    same to the caller. `update_owned()` returns an `UpdateResult` whose
    status is NOT_FOUND_OR_FORBIDDEN in both cases; `delete_owned()` returns
    a `DeleteResult` with `deleted == 0`. Neither raises. The HTTP layer
    turns these into `null` and {"message": "Note deleted"} respectively.

Tag filter:
    `list_by_owner(owner, tag)` ignores `tag` when it is None or "" and
    otherwise keeps notes whose tag list contains exactly that value.
"""

import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Sequence, Union

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.exceptions import DatabaseError, ValidationError
from notekeeper.models.note import Note, NoteTag

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "content", "tags"})


class UpdateStatus(str, enum.Enum):
    UPDATED = "updated"
    NOT_FOUND_OR_FORBIDDEN = "not_found_or_forbidden"


@dataclass(frozen=True)
class UpdateResult:
    """Outcome of `update_owned()`; `note` is set only when UPDATED."""

    status: UpdateStatus
    note: Optional[Note] = None

    @property
    def updated(self) -> bool:
        return self.status is UpdateStatus.UPDATED


@dataclass(frozen=True)
class DeleteResult:
    """Outcome of `delete_owned()`: how many notes were removed (0 or 1)."""

    deleted: int


def _parse_note_id(note_id: Union[str, uuid.UUID]) -> Optional[uuid.UUID]:
    # An id that cannot be a note id matches nothing
    if isinstance(note_id, uuid.UUID):
        return note_id
    try:
        return uuid.UUID(str(note_id))
    except ValueError:
        return None


class NoteRepository:
    """
    Note persistence scoped to an owner.

    Args:
        db: Session for this request
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        owner_id: uuid.UUID,
        title: str,
        content: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Note:
        """
        Persist a new note owned by `owner_id`.

        Raises:
            ValidationError: title empty or missing
            DatabaseError: the insert failed
        """
        if not title:
            raise ValidationError(message="Note title must not be empty", field="title")

        note = Note(owner_id=owner_id, title=title, content=content)
        note.set_tags(list(tags or []))
        self.db.add(note)
        try:
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating note: %s", str(e))
            raise DatabaseError(
                message="Could not save the note. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Note %s created by %s", note.id, owner_id)
        return note

    async def list_by_owner(
        self,
        owner_id: uuid.UUID,
        tag: Optional[str] = None,
    ) -> List[Note]:
        """
        All notes of `owner_id`, oldest first, optionally narrowed to a tag.

        Returns an empty list when nothing matches.
        """
        query = select(Note).where(Note.owner_id == owner_id)

        # "" is treated the same as no filter
        if tag:
            query = query.where(Note.tag_rows.any(NoteTag.tag == tag))

        query = query.order_by(Note.created_at)

        try:
            result = await self.db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                context={"error_type": type(e).__name__},
            ) from e
        return list(result.scalars().all())

    async def _get_owned(self, note_id: uuid.UUID, owner_id: uuid.UUID) -> Optional[Note]:
        result = await self.db.execute(
            select(Note).where(Note.id == note_id, Note.owner_id == owner_id)
        )
        return result.scalar_one_or_none()

    async def update_owned(
        self,
        note_id: Union[str, uuid.UUID],
        owner_id: uuid.UUID,
        fields: Mapping[str, Any],
    ) -> UpdateResult:
        """
        Apply `fields` (any of title, content, tags) to a note the caller owns.

        Fields absent from the mapping are left untouched. `updated_at` is
        refreshed on every successful update.

        Raises:
            ValidationError: unknown field, or an empty title
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                message=f"Unknown note fields: {', '.join(sorted(unknown))}",
                context={"fields": sorted(unknown)},
            )
        if "title" in fields and not fields["title"]:
            raise ValidationError(message="Note title must not be empty", field="title")

        parsed_id = _parse_note_id(note_id)
        if parsed_id is None:
            return UpdateResult(UpdateStatus.NOT_FOUND_OR_FORBIDDEN)

        try:
            note = await self._get_owned(parsed_id, owner_id)
            if note is None:
                return UpdateResult(UpdateStatus.NOT_FOUND_OR_FORBIDDEN)

            if "title" in fields:
                note.title = fields["title"]
            if "content" in fields:
                note.content = fields["content"]
            if "tags" in fields:
                note.set_tags(list(fields["tags"] or []))
            note.updated_at = datetime.now(timezone.utc)

            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating note %s: %s", parsed_id, str(e))
            raise DatabaseError(
                message="Could not update the note. Please try again.",
                context={"note_id": str(parsed_id)},
            ) from e

        logger.info("Note %s updated by %s", note.id, owner_id)
        return UpdateResult(UpdateStatus.UPDATED, note)

    async def delete_owned(
        self,
        note_id: Union[str, uuid.UUID],
        owner_id: uuid.UUID,
    ) -> DeleteResult:
        """Delete the note if the caller owns it; deleting nothing is not an error."""
        parsed_id = _parse_note_id(note_id)
        if parsed_id is None:
            return DeleteResult(deleted=0)

        try:
            note = await self._get_owned(parsed_id, owner_id)
            if note is None:
                return DeleteResult(deleted=0)

            await self.db.delete(note)
            await self.db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", parsed_id, str(e))
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                context={"note_id": str(parsed_id)},
            ) from e

        logger.info("Note %s deleted by %s", parsed_id, owner_id)
        return DeleteResult(deleted=1)
