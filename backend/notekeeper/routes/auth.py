"""
NoteKeeper Backend — Signup & Login Routes
============================================

What:  POST /signup and POST /login.
How:   Validates the credentials body, delegates to CredentialStore, and for
       login signs a token with TokenService. Errors are raised as
       application exceptions and mapped to status codes by the global
       handlers (400 / 401 / 409).
"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.database import get_db_session
from notekeeper.schemas.auth import Credentials, TokenResponse
from notekeeper.schemas.common import ErrorResponse, MessageResponse
from notekeeper.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


def get_credential_store(
    request: Request,
    db: AsyncSession = Depends(get_db_session, scope="function"),
) -> CredentialStore:
    """Credential store bound to this request's session."""
    return CredentialStore(db, request.app.state.pwd_context)


@router.post(
    "/signup",
    response_model=MessageResponse,
    responses={
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        409: {"description": "Username already taken", "model": ErrorResponse},
    },
    summary="Register a new user",
)
async def signup(
    body: Credentials,
    store: CredentialStore = Depends(get_credential_store, scope="function"),
) -> MessageResponse:
    await store.register(body.username, body.password)
    return MessageResponse(message="User created")


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        401: {"description": "Unknown user or wrong password", "model": ErrorResponse},
    },
    summary="Exchange username and password for a bearer token",
)
async def login(
    body: Credentials,
    request: Request,
    store: CredentialStore = Depends(get_credential_store, scope="function"),
) -> TokenResponse:
    """
    Verify credentials and issue a token.

    The two failure cases keep distinct messages ("User not found",
    "Wrong password"); usernames are not treated as secret.
    """
    user = await store.verify(body.username, body.password)
    token = request.app.state.token_service.issue(user)
    logger.info("User %s logged in", user.id)
    return TokenResponse(token=token)
