"""
Alembic Migration Environment
===============================

What:  Runs migrations for the blog schema (users, posts).
How:   Connects with the application's own DATABASE_URL through an async
       engine; alembic.ini carries only logging configuration. SQLite
       connections get foreign keys switched on, as in the application,
       and batch mode so ALTER TABLE operations can be emulated.
"""

import asyncio
from logging.config import fileConfig

from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine
from alembic import context

import app.models  # noqa: F401  (registers users and posts on Base.metadata)
from app.config import settings
from app.database import Base, enable_sqlite_foreign_keys

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def _configure(**options) -> None:
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        **options,
    )


def run_migrations_offline() -> None:
    """`alembic upgrade head --sql`: print the DDL instead of executing it."""
    _configure(
        url=settings.database_url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    _configure(connection=connection, render_as_batch=settings.is_sqlite)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    # NullPool: one short-lived connection, nothing to keep warm
    engine = create_async_engine(settings.database_url, poolclass=pool.NullPool)
    if settings.is_sqlite:
        enable_sqlite_foreign_keys(engine)

    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
