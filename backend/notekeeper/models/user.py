"""
NoteKeeper Backend — User SQLAlchemy Model
============================================

What:  ORM model for the `users` table: one row per registered identity.
Who:   Written by CredentialStore.register(), read by CredentialStore.verify().

Lifecycle:
    Created once at signup; never mutated; never deleted (no account
    deletion flow exists). The password hash never leaves the service layer:
    API responses are built from `UserPublic`, which has no such field.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from notekeeper.database import Base


class User(Base):
    """A registered identity (username + bcrypt hash)."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        comment="Opaque, system-generated identity id",
    )

    # Stored exactly as submitted: uniqueness is case-sensitive
    username: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
        unique=True,
        comment="Login name, unique, immutable after creation",
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="bcrypt hash (salt and cost factor embedded)",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        # password_hash intentionally left out
        return f"<User(id={self.id}, username='{self.username}')>"
