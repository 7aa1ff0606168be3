"""
NoteKeeper Backend — Notes Route Handlers
===========================================

What:  Create, list, update and delete the caller's notes.
How:   The whole router depends on `require_identity`, so no handler runs
       without a verified identity. Handlers pass that identity to
       NoteRepository as the owner and translate repository results into
       responses.

Response mapping:
    POST   /notes        → 200 Note
    GET    /notes?tag=   → 200 [Note, ...]   ([] when nothing matches)
    PUT    /notes/{id}   → 200 Note, or 200 null when the note is missing
                           or belongs to someone else
    DELETE /notes/{id}   → 200 {"message": "Note deleted"} in every case
"""

import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.database import get_db_session
from notekeeper.middleware.auth import require_identity
from notekeeper.schemas.common import ErrorResponse, MessageResponse
from notekeeper.schemas.note import NoteCreate, NoteResponse, NoteUpdate
from notekeeper.services.note_repository import NoteRepository

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/notes",
    tags=["Notes"],
    dependencies=[Depends(require_identity)],
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
)


def get_note_repository(
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> NoteRepository:
    """Note repository bound to this request's session."""
    return NoteRepository(db)


@router.post(
    "",
    response_model=NoteResponse,
    responses={400: {"description": "Invalid note body", "model": ErrorResponse}},
    summary="Create a note",
)
async def create_note(
    body: NoteCreate,
    user_id: uuid.UUID = Depends(require_identity),
    repo: NoteRepository = Depends(get_note_repository, scope="function"),
) -> NoteResponse:
    note = await repo.create(
        owner_id=user_id,
        title=body.title,
        content=body.content,
        tags=body.tags,
    )
    return NoteResponse.from_note(note)


@router.get(
    "",
    response_model=List[NoteResponse],
    summary="List your notes, optionally filtered by tag",
)
async def list_notes(
    tag: Optional[str] = Query(
        default=None,
        description="Only notes carrying exactly this tag. Empty means no filter.",
    ),
    user_id: uuid.UUID = Depends(require_identity),
    repo: NoteRepository = Depends(get_note_repository, scope="function"),
) -> List[NoteResponse]:
    notes = await repo.list_by_owner(user_id, tag)
    return [NoteResponse.from_note(note) for note in notes]


@router.put(
    "/{note_id}",
    response_model=Optional[NoteResponse],
    responses={400: {"description": "Invalid note body", "model": ErrorResponse}},
    summary="Update one of your notes",
)
async def update_note(
    note_id: str,
    body: NoteUpdate,
    user_id: uuid.UUID = Depends(require_identity),
    repo: NoteRepository = Depends(get_note_repository, scope="function"),
) -> Optional[NoteResponse]:
    result = await repo.update_owned(note_id, user_id, body.changes())
    if not result.updated:
        return None
    return NoteResponse.from_note(result.note)


@router.delete(
    "/{note_id}",
    response_model=MessageResponse,
    summary="Delete one of your notes",
)
async def delete_note(
    note_id: str,
    user_id: uuid.UUID = Depends(require_identity),
    repo: NoteRepository = Depends(get_note_repository, scope="function"),
) -> MessageResponse:
    result = await repo.delete_owned(note_id, user_id)
    if not result.deleted:
        logger.debug("Delete of %s by %s matched nothing", note_id, user_id)
    return MessageResponse(message="Note deleted")
