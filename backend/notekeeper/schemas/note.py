"""
NoteKeeper Backend — Note Request/Response Schemas
====================================================

What:  Pydantic models defining the notes API contract.
How:   Request bodies are strict and closed (`extra="forbid"`): unknown
       fields and mistyped values are rejected with 400 before any
       repository code runs. Responses use camelCase keys
       (`ownerId`, `createdAt`, `updatedAt`).
Who:   Used by the notes router; `NoteUpdate.changes()` feeds
       NoteRepository.update_owned().
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(BaseModel):
    """Body of POST /notes."""

    model_config = ConfigDict(extra="forbid", strict=True)

    title: str = Field(min_length=1, max_length=255, description="Note title (required)")
    content: Optional[str] = Field(default=None, description="Free-form note body")
    tags: List[str] = Field(default_factory=list, description="Ordered keyword tags")


class NoteUpdate(BaseModel):
    """
    Body of PUT /notes/{id}.

    Every field is optional; only the fields present in the request are
    applied. `content` may be sent as null to clear it. `title` and `tags`
    may be omitted but not nulled.
    """

    model_config = ConfigDict(extra="forbid", strict=True)

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None)
    tags: Optional[List[str]] = Field(default=None)

    @field_validator("title", "tags", mode="before")
    @classmethod
    def reject_explicit_null(cls, v: Any) -> Any:
        """Only runs for fields present in the payload."""
        if v is None:
            raise ValueError("may be omitted but must not be null")
        return v

    def changes(self) -> Dict[str, Any]:
        """The fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """
    Full representation of a note.

    Example:
        {
            "id": "0b6f...",
            "title": "Groceries",
            "content": "milk, eggs",
            "tags": ["home"],
            "ownerId": "5d1c...",
            "createdAt": "2024-01-15T12:00:00Z",
            "updatedAt": "2024-01-15T12:00:00Z"
        }
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: uuid.UUID
    title: str
    content: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_note(cls, note: Any) -> "NoteResponse":
        """Build from a `Note` ORM object."""
        return cls(
            id=note.id,
            title=note.title,
            content=note.content,
            tags=list(note.tags),
            owner_id=note.owner_id,
            created_at=note.created_at,
            updated_at=note.updated_at,
        )
