"""
Snippetbox — Database Session Management
=========================================

What:  Async SQLAlchemy engine factory, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   The application factory builds one engine per application and stores the
       session factory on `app.state`; `get_db_session` hands each request its
       own session that commits on success and rolls back on error.
When:  Engine is created by `create_app()`; sessions are created per-request.

Connection Pooling Strategy:
    pool_size / max_overflow / pool_pre_ping come from settings.
    SQLite (used by the test suite) keeps SQLAlchemy's default pool because
    its pool classes do not accept sizing arguments.
"""

import logging
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    stop_after_attempt,
    wait_exponential,
)

from snippetbox.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object with Alembic (see alembic/env.py).
    """
    pass


# ── Engine Configuration ──────────────────────────────────────────────────
def create_engine(settings: Settings) -> AsyncEngine:
    """
    Build the async engine for the configured data source name.

    Creating the engine does not connect; the first connection is opened by
    `ping_database()` at startup or by the first request.
    """
    kwargs = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        "echo": settings.log_level == "DEBUG",
    }
    if not settings.is_sqlite:
        kwargs.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
        )
    return create_async_engine(settings.database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: handlers read attributes after the commit
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the application's factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back the transaction and re-raises
        5. Always: closes the session (returns connection to pool)
    """
    factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def ping_database(engine: AsyncEngine, attempts: int = 3) -> None:
    """
    Verify the data store is reachable, retrying transient failures.

    What:  Runs SELECT 1, up to `attempts` times with exponential backoff.
    When:  Once at process startup, before the server starts listening.
    Raises the last connection error when every attempt failed; the caller
    treats that as fatal.
    """
    async for attempt in AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.5, max=5),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    ):
        with attempt:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables directly from model metadata (tests and local development)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine(engine: AsyncEngine) -> None:
    """Close all pooled connections. Called on shutdown and after the startup ping."""
    await engine.dispose()
