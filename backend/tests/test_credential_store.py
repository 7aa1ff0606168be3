"""
NoteKeeper Backend — Credential Store Tests
=============================================

What:  Signup and password verification against a real (in-memory) database.

What we test:
    ✅ register stores a salted bcrypt hash and returns public fields only
    ✅ duplicate username → ConflictError regardless of password
    ✅ usernames are case-sensitive
    ✅ the unique constraint backs up the pre-check (concurrent signup)
    ✅ verify: unknown user, wrong password, success
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy import select

from notekeeper.exceptions import (
    ConflictError,
    InvalidCredentialsError,
    UserNotFoundError,
    ValidationError,
)
from notekeeper.models.user import User
from notekeeper.services.credential_store import CredentialStore


class TestRegister:

    @pytest.mark.asyncio
    async def test_register_returns_public_fields(self, session, pwd_context):
        store = CredentialStore(session, pwd_context)

        public = await store.register("alice", "pw1")

        assert public.username == "alice"
        assert public.id is not None
        assert "password" not in public.model_dump()
        assert "password_hash" not in public.model_dump_json()

    @pytest.mark.asyncio
    async def test_register_hashes_with_bcrypt(self, session, pwd_context):
        store = CredentialStore(session, pwd_context)
        await store.register("alice", "pw1")

        user = (await session.execute(select(User).where(User.username == "alice"))).scalar_one()
        assert user.password_hash != "pw1"
        assert user.password_hash.startswith("$2")
        assert pwd_context.verify("pw1", user.password_hash)

    @pytest.mark.asyncio
    async def test_same_password_gets_different_salt(self, session, pwd_context):
        store = CredentialStore(session, pwd_context)
        await store.register("alice", "same")
        await store.register("bob", "same")

        hashes = (await session.execute(select(User.password_hash))).scalars().all()
        assert len(set(hashes)) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("second_password", ["pw1", "pw2", "something else"])
    async def test_duplicate_username_conflicts(self, session, pwd_context, second_password):
        store = CredentialStore(session, pwd_context)
        await store.register("alice", "pw1")

        with pytest.raises(ConflictError):
            await store.register("alice", second_password)

    @pytest.mark.asyncio
    async def test_usernames_are_case_sensitive(self, session, pwd_context):
        store = CredentialStore(session, pwd_context)
        await store.register("alice", "pw1")

        public = await store.register("Alice", "pw1")

        assert public.username == "Alice"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("username,password", [("", "pw"), ("alice", ""), ("", "")])
    async def test_missing_fields_rejected(self, session, pwd_context, username, password):
        store = CredentialStore(session, pwd_context)
        with pytest.raises(ValidationError):
            await store.register(username, password)

    @pytest.mark.asyncio
    async def test_unique_constraint_reports_conflict(self, session, pwd_context, make_user):
        """Two signups passing the existence check at once: the second insert loses."""
        await make_user("bob")
        store = CredentialStore(session, pwd_context)

        no_match = MagicMock()
        no_match.scalar_one_or_none.return_value = None
        with patch.object(session, "execute", AsyncMock(return_value=no_match)):
            with pytest.raises(ConflictError):
                await store.register("bob", "pw")


class TestVerify:

    @pytest.mark.asyncio
    async def test_verify_success_returns_identity(self, session, pwd_context):
        store = CredentialStore(session, pwd_context)
        public = await store.register("alice", "pw1")

        user = await store.verify("alice", "pw1")

        assert user.id == public.id
        assert user.username == "alice"

    @pytest.mark.asyncio
    async def test_unknown_username(self, session, pwd_context):
        store = CredentialStore(session, pwd_context)
        with pytest.raises(UserNotFoundError, match="User not found"):
            await store.verify("nobody", "pw")

    @pytest.mark.asyncio
    async def test_wrong_password(self, session, pwd_context):
        store = CredentialStore(session, pwd_context)
        await store.register("alice", "pw1")

        with pytest.raises(InvalidCredentialsError, match="Wrong password"):
            await store.verify("alice", "pw2")
