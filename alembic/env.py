"""Alembic environment for the marketplace core tables.

Migrations are hand-written SQL (op.execute), so there is no target metadata
and no autogenerate. The URL comes from config.settings, the same DATABASE_URL
the app connects with; alembic.ini carries logging config only.

Each revision runs in its own transaction: a failed revision leaves the
earlier ones applied and the version table pointing at the last good one.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from config.settings import settings

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

_CONFIGURE_OPTS = {
    "target_metadata": None,
    "transaction_per_migration": True,
}


def run_migrations_offline() -> None:
    """Emit the SQL script instead of executing it (alembic upgrade --sql)."""
    context.configure(
        url=settings.DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_CONFIGURE_OPTS,
    )
    with context.begin_transaction():
        context.run_migrations()


def _run_on_connection(connection: Connection) -> None:
    context.configure(connection=connection, **_CONFIGURE_OPTS)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    # NullPool: one short-lived connection, nothing left open after the run.
    engine = create_async_engine(settings.DATABASE_URL, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_run_on_connection)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
