# Sessions package init
"""
Snippetbox — Server-Side Sessions
==================================

What:  Per-client state keyed by an opaque token carried in a cookie.

    store.py:    where session records live (in memory, swept for expiry)
    manager.py:  the request-scoped Session, token renewal, cookie transport
                 and the load-and-save middleware

Session keys used by the application:
    authenticated_user_id      present ⇔ the session is Authenticated
    flash                      one-shot message, consumed when read
    redirect_path_after_login  destination remembered by the auth gate
"""

from snippetbox.sessions.manager import (
    AUTH_USER_KEY,
    FLASH_KEY,
    REDIRECT_AFTER_LOGIN_KEY,
    Session,
    SessionManager,
    load_and_save_session,
)
from snippetbox.sessions.store import MemoryStore, SessionRecord

__all__ = [
    "AUTH_USER_KEY",
    "FLASH_KEY",
    "REDIRECT_AFTER_LOGIN_KEY",
    "MemoryStore",
    "Session",
    "SessionManager",
    "SessionRecord",
    "load_and_save_session",
]
