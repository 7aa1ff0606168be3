"""
NoteKeeper Backend — Database Handle
======================================

What:  The persistence handle: async SQLAlchemy engine, session factory and
       the FastAPI dependency that hands one session to each request.
How:   `Database` is constructed explicitly by the application factory and
       stored on `app.state.db`. Nothing in this module opens a connection at
       import time; the Credential Store and Note Repository receive the
       session they work with when they are built.
Who:   Used by `main.create_app()`, the route dependencies, Alembic and tests.

Session lifecycle (per request):
    1. `get_db_session` opens a session from `app.state.db`
    2. The route handler runs its repository calls
    3. On success the transaction is committed, on error rolled back
    4. The connection always returns to the pool

Routes inject the session with `Depends(get_db_session, scope="function")`
so the commit finishes before the response is sent and a failed commit
answers 500.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from notekeeper.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for --autogenerate.
    """
    pass


class Database:
    """
    Owns the connection pool for one database URL.

    Attributes:
        engine:          The async engine (connection pool)
        session_factory: Creates `AsyncSession` objects bound to the engine
    """

    def __init__(
        self,
        url: str,
        pool_size: int = 10,
        max_overflow: int = 10,
        pool_pre_ping: bool = True,
        echo: bool = False,
        **engine_kwargs: Any,
    ):
        options: Dict[str, Any] = {"echo": echo}
        # SQLite pools (StaticPool, NullPool) reject the sizing arguments
        if not url.startswith("sqlite"):
            options.update(
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_pre_ping=pool_pre_ping,
                pool_recycle=3600,
            )
        options.update(engine_kwargs)

        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **options)
        # expire_on_commit=False: objects stay readable after commit, when the
        # response is serialized outside the session
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Yield a session, commit on success, roll back on any error.

        Errors are re-raised so the global exception handlers can answer. A
        failed commit surfaces as `DatabaseError`.
        """
        async with self.session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            try:
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Commit failed: %s", str(e))
                raise DatabaseError(
                    message="Failed to save changes",
                    context={"error": str(e)},
                ) from e

    async def create_all(self) -> None:
        """Create every table registered on `Base.metadata` that is missing."""
        # Model modules register their tables on import
        from notekeeper.models import note, user  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ensured")

    async def ping(self) -> bool:
        """Lightweight connectivity probe used by the health endpoint."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Database ping failed: %s", str(e))
            return False

    async def dispose(self) -> None:
        """Close all pooled connections (application shutdown)."""
        await self.engine.dispose()


def database_from_settings(settings: Any, **engine_kwargs: Any) -> Database:
    """Build a `Database` from a `Settings` instance."""
    return Database(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        echo=settings.log_level == "DEBUG",
        **engine_kwargs,
    )


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Example usage in a route:
        @router.get("/notes")
        async def list_notes(db: AsyncSession = Depends(get_db_session, scope="function")):
            ...
    """
    db: Optional[Database] = getattr(request.app.state, "db", None)
    if db is None:
        raise RuntimeError("Database handle is not configured on app.state.db")
    async with db.session() as session:
        yield session
