"""
Snippetbox — Alembic Environment
=================================

What:  Applies the revisions in versions/ to the Snippetbox database.
How:   The DSN defaults to DATABASE_URL from snippetbox.config, the same value
       the server uses. `alembic -x dsn=...` overrides it, mirroring the
       server's --dsn flag. Online mode only: migrations always run against
       a live database through a single unpooled async connection.

    alembic upgrade head
    alembic -x dsn=postgresql+asyncpg://web:pass@db/snippetbox upgrade head
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

import snippetbox.models  # noqa: F401  (registers snippets and users on Base)
from snippetbox.config import settings
from snippetbox.database import Base

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)


def _apply(connection) -> None:
    context.configure(connection=connection, target_metadata=Base.metadata)
    with context.begin_transaction():
        context.run_migrations()


async def migrate(dsn: str) -> None:
    engine = create_async_engine(dsn, poolclass=NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_apply)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    raise SystemExit("Snippetbox migrations run online only; drop --sql")

asyncio.run(migrate(context.get_x_argument(as_dictionary=True).get("dsn", settings.database_url)))
