"""
NoteKeeper Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets a fresh in-memory SQLite database (aiosqlite +
       StaticPool, so all sessions share the one connection) with the
       schema created from the ORM metadata. No Postgres needed.

Fixture Hierarchy (all function-scoped):
    test_settings ─┐
    db ────────────┼── app ── client      (HTTP-level tests)
                   └── session            (service-level tests)
    pwd_context, token_service            (unit tests)
    make_user, signup_and_login           (helpers)
"""

import uuid
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from notekeeper.config import Settings
from notekeeper.database import Database
from notekeeper.main import create_app
from notekeeper.models.user import User
from notekeeper.services.credential_store import build_password_context
from notekeeper.services.token_service import TokenService

TEST_SECRET = "test-secret-not-for-production"


@pytest.fixture
def test_settings() -> Settings:
    """Settings for tests: in-memory DB, cheapest bcrypt cost, quiet logs."""
    return Settings(
        database_url="sqlite+aiosqlite://",
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[Database, None]:
    """A Database handle on a fresh in-memory SQLite database with all tables."""
    database = Database(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await database.create_all()
    yield database
    await database.dispose()


@pytest_asyncio.fixture
async def session(db: Database) -> AsyncGenerator[AsyncSession, None]:
    """
    A bare session for service-level tests.

    Not committed: whatever the test wrote is rolled back on close.
    """
    async with db.session_factory() as s:
        yield s


@pytest.fixture
def pwd_context():
    return build_password_context(rounds=4)


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture
def make_user(session: AsyncSession):
    """Insert a User row directly (bypasses hashing) and return it."""

    async def _make_user(username: str = None) -> User:
        user = User(
            username=username or f"user-{uuid.uuid4().hex[:8]}",
            password_hash="not-a-real-hash",
        )
        session.add(user)
        await session.flush()
        return user

    return _make_user


@pytest.fixture
def app(test_settings: Settings, db: Database):
    return create_app(test_settings, db=db)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient wired straight to the ASGI app.

    Usage:
        async def test_health(client):
            response = await client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def signup_and_login(client: AsyncClient):
    """Register a user through the API and return (auth headers, token)."""

    async def _signup_and_login(username: str, password: str = "pw1"):
        response = await client.post("/signup", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        response = await client.post("/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        token = response.json()["token"]
        return {"Authorization": f"Bearer {token}"}, token

    return _signup_and_login
