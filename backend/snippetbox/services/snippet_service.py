"""
Snippetbox — Snippet Service
=============================

What:  Insert, fetch and list snippets.
Who:   Called by the snippet route handlers with a per-request AsyncSession.

Design Decision:
    SnippetService is stateless: it receives the db session for each call,
    so it is safe to share one instance across concurrent requests.
    Expired snippets are filtered in SQL: a snippet past its expiry is
    indistinguishable from one that never existed (NotFoundError).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.exceptions import DatabaseError, NotFoundError
from snippetbox.models.snippet import Snippet

logger = logging.getLogger(__name__)


class SnippetService:
    """
    Business logic layer for snippet operations.

    Error Handling Strategy:
        SQLAlchemy errors are wrapped in DatabaseError (hides internal details).
        A missing or expired record raises NotFoundError.
    """

    async def insert(
        self,
        db: AsyncSession,
        title: str,
        content: str,
        expires_days: int,
    ) -> int:
        """
        Store a new snippet and return its id.

        The id is assigned by the flush; the commit happens in get_db_session.
        """
        now = datetime.now(timezone.utc)
        snippet = Snippet(
            title=title,
            content=content,
            created=now,
            expires=now + timedelta(days=expires_days),
        )
        try:
            db.add(snippet)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error inserting snippet: %s", str(e))
            raise DatabaseError(
                message="Could not store the snippet",
                context={"error_type": type(e).__name__},
            ) from e

        logger.info("Snippet %d created (expires in %d days)", snippet.id, expires_days)
        return snippet.id

    async def get(self, db: AsyncSession, snippet_id: int) -> Snippet:
        """
        Retrieve a single non-expired snippet.

        Raises:
            NotFoundError: No snippet with this id, or it has expired (→ 404)
            DatabaseError: Query execution failed (→ 500)
        """
        try:
            result = await db.execute(
                select(Snippet).where(
                    Snippet.id == snippet_id,
                    Snippet.expires > datetime.now(timezone.utc),
                )
            )
            snippet = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching snippet %s: %s", snippet_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the snippet",
                context={"snippet_id": snippet_id},
            ) from e

        if snippet is None:
            raise NotFoundError(resource="snippet", resource_id=str(snippet_id))
        return snippet

    async def latest(self, db: AsyncSession, limit: int = 10) -> List[Snippet]:
        """Return up to `limit` non-expired snippets, newest first."""
        try:
            result = await db.execute(
                select(Snippet)
                .where(Snippet.expires > datetime.now(timezone.utc))
                .order_by(desc(Snippet.id))
                .limit(limit)
            )
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing snippets: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve snippets",
                context={"error_type": type(e).__name__},
            ) from e
