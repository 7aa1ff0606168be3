"""Create users, notes and note_tags tables

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Initial schema: identities, their notes, and the ordered tags of
       each note. Mirrors notekeeper/models/user.py and models/note.py.

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False, comment="Opaque, system-generated identity id"),
        sa.Column(
            "username",
            sa.String(150),
            nullable=False,
            comment="Login name, unique, immutable after creation",
        ),
        sa.Column(
            "password_hash",
            sa.String(255),
            nullable=False,
            comment="bcrypt hash (salt and cost factor embedded)",
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "notes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("owner_id", sa.Uuid(), nullable=False, comment="Owning identity; immutable"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    # Every listing is "this owner's notes in creation order"
    op.create_index("idx_notes_owner_created", "notes", ["owner_id", "created_at"])

    op.create_table(
        "note_tags",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("note_id", sa.Uuid(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("tag", sa.Text(), nullable=False),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_note_tags_tag", "note_tags", ["tag"])
    op.create_index("idx_note_tags_note_id", "note_tags", ["note_id"])


def downgrade() -> None:
    op.drop_index("idx_note_tags_note_id", table_name="note_tags")
    op.drop_index("idx_note_tags_tag", table_name="note_tags")
    op.drop_table("note_tags")
    op.drop_index("idx_notes_owner_created", table_name="notes")
    op.drop_table("notes")
    op.drop_table("users")
