"""
NoteKeeper Backend — Credential Store
=======================================

What:  Registers identities and checks their passwords.
How:   Passwords are hashed with bcrypt through a passlib `CryptContext`
       (per-password random salt, tunable cost via BCRYPT_ROUNDS). Hashing
       and verification are CPU-bound, so they run in Starlette's thread pool
       instead of on the event loop.
Who:   Built per request with the request's AsyncSession; called by the
       /signup and /login routes.

Uniqueness:
    `register()` checks for an existing username first and reports a
    ConflictError. The unique constraint on users.username covers the race
    where two signups for the same name pass the check concurrently; the
    loser's IntegrityError is reported as the same ConflictError.
"""

import logging

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from notekeeper.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    UserNotFoundError,
    ValidationError,
)
from notekeeper.models.user import User
from notekeeper.schemas.auth import UserPublic

logger = logging.getLogger(__name__)


def build_password_context(rounds: int = 10) -> CryptContext:
    """bcrypt context with the configured cost factor."""
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


class CredentialStore:
    """
    Persistence and verification of identities.

    Args:
        db:           Session for this request
        pwd_context:  Password hashing context (see build_password_context)
    """

    def __init__(self, db: AsyncSession, pwd_context: CryptContext):
        self.db = db
        self.pwd_context = pwd_context

    async def register(self, username: str, raw_secret: str) -> UserPublic:
        """
        Create a new identity.

        Returns:
            Public fields of the created identity (never the hash)

        Raises:
            ValidationError: username or password missing
            ConflictError: username already registered
        """
        if not username or not raw_secret:
            raise ValidationError(message="Missing fields")

        existing = await self.db.execute(select(User.id).where(User.username == username))
        if existing.scalar_one_or_none() is not None:
            logger.info("Signup rejected: username already taken")
            raise ConflictError(message="Same user name exists", context={"field": "username"})

        password_hash = await run_in_threadpool(self.pwd_context.hash, raw_secret)

        user = User(username=username, password_hash=password_hash)
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError as e:
            logger.info("Signup lost a race on username uniqueness")
            raise ConflictError(
                message="Same user name exists", context={"field": "username"}
            ) from e

        logger.info("User %s registered", user.id)
        return UserPublic.model_validate(user)

    async def verify(self, username: str, raw_secret: str) -> User:
        """
        Check a username/password pair.

        Raises:
            UserNotFoundError: no identity with this username
            InvalidCredentialsError: password does not match
        """
        result = await self.db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError()

        matches = await run_in_threadpool(
            self.pwd_context.verify, raw_secret, user.password_hash
        )
        if not matches:
            logger.warning("Failed login for user %s", user.id)
            raise InvalidCredentialsError()

        return user
