"""
Alembic Migration Environment
===============================

What:  Runs the NoteKeeper schema migrations (users, notes, note_tags)
       through the async SQLAlchemy engine.
How:   The database URL comes from NoteKeeper settings (DATABASE_URL), and
       `alembic -x database_url=...` overrides it for a one-off target.
       SQLite targets use batch mode so ALTERs work there too.
Who:   Called by `alembic` CLI commands (upgrade, downgrade, revision).
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config
from alembic import context

from notekeeper.config import settings
from notekeeper.database import Base

# Register every model on Base.metadata for --autogenerate
from notekeeper.models.note import Note, NoteTag  # noqa: F401
from notekeeper.models.user import User  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

database_url = context.get_x_argument(as_dictionary=True).get(
    "database_url", settings.database_url
)
config.set_main_option("sqlalchemy.url", database_url)


def _configure_options() -> dict:
    return {
        "target_metadata": target_metadata,
        # column type changes (e.g. a widened tag column) show up in autogenerate
        "compare_type": True,
        "render_as_batch": database_url.startswith("sqlite"),
    }


def run_migrations_offline() -> None:
    """Emit migration SQL to stdout without connecting."""
    context.configure(
        url=database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(),
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(connection=connection, **_configure_options())

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """Connect with an async engine and apply pending migrations."""
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    async with engine.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
