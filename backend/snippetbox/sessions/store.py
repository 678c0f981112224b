"""
Snippetbox — In-Memory Session Store
=====================================

What:  Process-wide mapping token → SessionRecord(values, deadline).
Why:   Session attributes (auth state, flash, remembered path) never leave the
       server; the client only holds the token.

Concurrency Model:
    All request tasks run on one event loop. Every store operation is a single
    dictionary operation with no `await` in between, so the map itself can
    never be observed half-updated and requests for different tokens never
    wait on each other. Records are copied on the way out and replaced whole
    on the way in: two concurrent requests carrying the same token each work
    on their own copy, and the last commit wins. `replace` only overwrites a
    record that is still present, so a token deleted by one request (logout)
    is not written back by another.

    The methods are coroutines so that a networked store (Redis, database)
    can be dropped in behind the same interface.

Production Upgrade Path:
    Single-process only. Multi-worker deployments need a shared store.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionRecord:
    values: Dict[str, Any] = field(default_factory=dict)
    deadline: datetime = field(default_factory=utcnow)

    def expired(self, now: datetime) -> bool:
        return self.deadline <= now


class MemoryStore:
    """
    In-memory session store with lazy and periodic expiry.

    Expired records are dropped when looked up, and `cleanup()` sweeps the
    ones nobody asks for again (called from a background task, see main.py).
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._records: Dict[str, SessionRecord] = {}
        self._clock = clock

    async def find(self, token: str) -> Optional[SessionRecord]:
        """Return a copy of the live record for `token`, or None."""
        record = self._records.get(token)
        if record is None:
            return None
        if record.expired(self._clock()):
            self._records.pop(token, None)
            return None
        return SessionRecord(values=dict(record.values), deadline=record.deadline)

    async def commit(self, token: str, values: Dict[str, Any], deadline: datetime) -> None:
        self._records[token] = SessionRecord(values=dict(values), deadline=deadline)

    async def replace(self, token: str, values: Dict[str, Any], deadline: datetime) -> bool:
        """
        Overwrite the record for `token` only if it is still live.

        Returns False when the token was deleted (logout, login elsewhere) or
        has expired since it was loaded; nothing is written then.
        """
        record = self._records.get(token)
        if record is None or record.expired(self._clock()):
            return False
        self._records[token] = SessionRecord(values=dict(values), deadline=deadline)
        return True

    async def delete(self, token: str) -> None:
        self._records.pop(token, None)

    def cleanup(self) -> int:
        """Remove every expired record; returns how many were removed."""
        now = self._clock()
        expired = [token for token, record in self._records.items() if record.expired(now)]
        for token in expired:
            del self._records[token]
        if expired:
            logger.debug("Cleaned up %d expired sessions", len(expired))
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, token: object) -> bool:
        return token in self._records
