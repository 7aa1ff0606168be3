"""
NoteKeeper Backend — Authentication Schemas
=============================================

What:  Request and response models for /signup and /login, plus the public
       view of an identity.
How:   Credentials are strict, closed models; a missing or empty username or
       password fails validation (400) before the Credential Store is called.
       `UserPublic` has no password field, so a hash cannot be serialized.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Credentials(BaseModel):
    """Body of POST /signup and POST /login."""

    model_config = ConfigDict(extra="forbid", strict=True)

    # No normalization: "Alice" and "alice" are different users
    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        """bcrypt only looks at the first 72 bytes of a secret."""
        if len(v.encode("utf-8")) > 72:
            raise ValueError("password must be at most 72 bytes when UTF-8 encoded")
        return v


class UserPublic(BaseModel):
    """Public fields of an identity."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    username: str
    created_at: datetime


class TokenResponse(BaseModel):
    """Returned by POST /login."""

    token: str = Field(description="Bearer token; send as 'Authorization: Bearer <token>'")
