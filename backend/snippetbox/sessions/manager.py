"""
Snippetbox — Session Manager
=============================

What:  Loads the Session for a request, and persists it after the handler.
How:   `load_and_save_session` is the first middleware of the dynamic route
       group. It reads the token cookie, looks the record up in the store,
       attaches a `Session` to `request.state.session`, delegates, then
       commits whatever the handler changed and (re)sends the cookie.

Lifecycle:
    no cookie / unknown token / expired  → new anonymous Session, fresh token
    put / pop / remove                   → status MODIFIED → saved on commit
    renew_token()                        → old token deleted on commit, new
                                           token + new deadline issued

Expiry policy: FIXED lifetime. The deadline is set when a session is created
or its token renewed (login, logout) and is not pushed back by later
requests. A session past its deadline is treated exactly like no session.

Authentication state machine (see routes/users.py):
    Anonymous ──login──▶ Authenticated(id)     token renewed, id stored
    Authenticated ──logout──▶ Anonymous        token renewed, id removed
"""

import enum
import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from starlette.requests import Request
from starlette.responses import Response

from snippetbox.sessions.store import MemoryStore, utcnow

logger = logging.getLogger(__name__)

AUTH_USER_KEY = "authenticated_user_id"
FLASH_KEY = "flash"
REDIRECT_AFTER_LOGIN_KEY = "redirect_path_after_login"


def generate_token() -> str:
    return secrets.token_urlsafe(32)


class SessionStatus(enum.Enum):
    UNMODIFIED = "unmodified"
    MODIFIED = "modified"


class Session:
    """
    Request-scoped view of one session record.

    Handlers mutate it freely; nothing reaches the store until the
    load-and-save middleware commits it after the handler returned.
    """

    def __init__(
        self,
        token: str,
        values: Optional[Dict[str, Any]] = None,
        deadline: Optional[datetime] = None,
        is_new: bool = False,
    ):
        self.token = token
        self.deadline = deadline
        self.is_new = is_new
        self.status = SessionStatus.UNMODIFIED
        self.renewed = False
        self.stale_tokens: List[str] = []
        self._values: Dict[str, Any] = values or {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def put(self, key: str, value: Any) -> None:
        self._values[key] = value
        self.status = SessionStatus.MODIFIED

    def pop(self, key: str, default: Any = None) -> Any:
        """Read and remove a value (read-once semantics, used for flash)."""
        if key not in self._values:
            return default
        self.status = SessionStatus.MODIFIED
        return self._values.pop(key)

    def remove(self, key: str) -> None:
        if key in self._values:
            del self._values[key]
            self.status = SessionStatus.MODIFIED

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    def renew_token(self) -> None:
        """
        Issue a new token for this session (session-fixation defence).

        The old token stops being valid when the session is committed.
        """
        self.stale_tokens.append(self.token)
        self.token = generate_token()
        self.renewed = True
        self.status = SessionStatus.MODIFIED

    @property
    def authenticated_user_id(self) -> Optional[int]:
        return self._values.get(AUTH_USER_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.authenticated_user_id is not None


class SessionManager:
    """
    Owns the store, the lifetime policy and the cookie transport.

    Attributes:
        store:         where records live (MemoryStore)
        lifetime:      fixed session lifetime
        cookie_name:   name of the token cookie
        cookie_secure: send the cookie over HTTPS only
    """

    def __init__(
        self,
        store: MemoryStore,
        lifetime: timedelta = timedelta(hours=12),
        cookie_name: str = "session",
        cookie_secure: bool = True,
        cookie_samesite: str = "lax",
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.lifetime = lifetime
        self.cookie_name = cookie_name
        self.cookie_secure = cookie_secure
        self.cookie_samesite = cookie_samesite
        self._clock = clock

    async def load(self, token: Optional[str]) -> Session:
        """Return the live session for `token`, or a brand new anonymous one."""
        if token:
            record = await self.store.find(token)
            if record is not None and record.deadline > self._clock():
                return Session(token, record.values, record.deadline)
        return Session(generate_token(), deadline=self._clock() + self.lifetime, is_new=True)

    async def commit(self, session: Session, response: Response) -> None:
        """
        Persist a modified session and send its cookie.

        Only new or renewed sessions create a record. Any other session may
        only overwrite a record that is still in the store: if a concurrent
        request deleted its token (logout, login), the changes are dropped
        and no cookie is sent, so the deleted token never comes back.
        """
        for stale in session.stale_tokens:
            await self.store.delete(stale)
        session.stale_tokens.clear()

        if session.status is SessionStatus.UNMODIFIED:
            return

        creating = session.is_new or session.renewed
        if session.renewed or session.deadline is None:
            session.deadline = self._clock() + self.lifetime
            session.renewed = False

        if creating:
            await self.store.commit(session.token, session.values(), session.deadline)
            session.is_new = False
        elif not await self.store.replace(session.token, session.values(), session.deadline):
            logger.debug("Session token no longer in the store, changes dropped")
            return

        max_age = max(int((session.deadline - self._clock()).total_seconds()), 0)
        response.set_cookie(
            self.cookie_name,
            session.token,
            max_age=max_age,
            expires=session.deadline,
            path="/",
            secure=self.cookie_secure,
            httponly=True,
            samesite=self.cookie_samesite,
        )

    async def load_and_save(self, request: Request, call_next) -> Response:
        session = await self.load(request.cookies.get(self.cookie_name))
        request.state.session = session

        response = await call_next(request)

        await self.commit(session, response)
        return response


async def load_and_save_session(request: Request, call_next) -> Response:
    """
    Session loading middleware for the dynamic route group.

    Looks up the application's SessionManager so the route-group chains can
    be declared once at import time.
    """
    manager: SessionManager = request.app.state.session_manager
    return await manager.load_and_save(request, call_next)
