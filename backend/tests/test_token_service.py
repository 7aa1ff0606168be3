"""
NoteKeeper Backend — Token Service Unit Tests
===============================================

What we test:
    ✅ issue → verify returns the same identity id
    ✅ Tokens carry no expiry unless one is configured
    ✅ Tampered tokens, foreign secrets (rotation) and garbage are rejected
    ✅ Tokens without a usable userId claim are rejected
    ✅ Configured expiry is enforced
"""

import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
from jose import jwt

from notekeeper.exceptions import InvalidTokenError
from notekeeper.services.token_service import TokenService, USER_ID_CLAIM

SECRET = "unit-test-secret"


def identity(user_id=None):
    return SimpleNamespace(id=user_id or uuid.uuid4())


class TestIssueAndVerify:

    def setup_method(self):
        self.service = TokenService(SECRET)

    def test_round_trip_returns_identity_id(self):
        user = identity()
        token = self.service.issue(user)
        assert self.service.verify(token) == user.id

    def test_token_binds_user_id_claim(self):
        user = identity()
        claims = jwt.get_unverified_claims(self.service.issue(user))
        assert claims[USER_ID_CLAIM] == str(user.id)
        assert "iat" in claims

    def test_no_expiry_by_default(self):
        claims = jwt.get_unverified_claims(self.service.issue(identity()))
        assert "exp" not in claims

    def test_empty_secret_refused(self):
        with pytest.raises(ValueError):
            TokenService("")


class TestRejection:

    def setup_method(self):
        self.service = TokenService(SECRET)

    def test_rotated_secret_invalidates_tokens(self):
        token = TokenService("old-secret").issue(identity())
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)

    def test_tampered_signature(self):
        token = self.service.issue(identity())
        header, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
        with pytest.raises(InvalidTokenError):
            self.service.verify(".".join([header, payload, flipped]))

    @pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c", "Bearer"])
    def test_malformed_encoding(self, garbage):
        with pytest.raises(InvalidTokenError):
            self.service.verify(garbage)

    def test_missing_user_claim(self):
        token = jwt.encode({"sub": "someone"}, SECRET, algorithm="HS256")
        with pytest.raises(InvalidTokenError) as exc_info:
            self.service.verify(token)
        assert exc_info.value.context["reason"] == "missing_claim"

    def test_non_uuid_user_claim(self):
        token = jwt.encode({USER_ID_CLAIM: "12345"}, SECRET, algorithm="HS256")
        with pytest.raises(InvalidTokenError) as exc_info:
            self.service.verify(token)
        assert exc_info.value.context["reason"] == "bad_claim"

    def test_algorithm_mismatch(self):
        token = jwt.encode({USER_ID_CLAIM: str(uuid.uuid4())}, SECRET, algorithm="HS512")
        with pytest.raises(InvalidTokenError):
            self.service.verify(token)


class TestOptionalExpiry:

    def test_configured_expiry_is_added(self):
        service = TokenService(SECRET, expire_minutes=5)
        claims = jwt.get_unverified_claims(service.issue(identity()))
        assert "exp" in claims

    def test_expired_token_rejected(self):
        service = TokenService(SECRET, expire_minutes=5)
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {USER_ID_CLAIM: str(uuid.uuid4()), "iat": past, "exp": past + timedelta(minutes=5)},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(InvalidTokenError) as exc_info:
            service.verify(token)
        assert exc_info.value.context["reason"] == "expired"
