"""
Snippetbox — CSRF Protection Middleware
========================================

What:  Rejects state-changing requests that do not carry the client's
       anti-forgery token.
How:   Double-submit token. The secret lives in its own HttpOnly
       `csrf_token` cookie, not in the server-side session, so anonymous
       page views never create session records. Every form renders the
       secret as a hidden field (see templates.new_template_data). Requests
       with an unsafe method must send it back in the `csrf_token` form
       field or the `X-CSRF-Token` header, and it must match the cookie.
       Comparison is constant-time.
When:  Second middleware of the dynamic route group, right after session
       loading. A handler that renews the session token (login, logout)
       also gets a fresh CSRF secret on its response.

Failure:
    CSRFTokenError → 400 Bad Request (exception handler in main.py). The
    handler never runs, so nothing is written to the store.
"""

import logging
import secrets
from datetime import timedelta

from starlette.requests import Request
from starlette.responses import Response

from snippetbox.exceptions import CSRFTokenError

logger = logging.getLogger(__name__)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})
CSRF_COOKIE = "csrf_token"
CSRF_FORM_FIELD = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"
CSRF_COOKIE_MAX_AGE = int(timedelta(days=365).total_seconds())


def generate_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def _set_csrf_cookie(request: Request, response: Response, token: str) -> None:
    response.set_cookie(
        CSRF_COOKIE,
        token,
        max_age=CSRF_COOKIE_MAX_AGE,
        path="/",
        secure=request.app.state.session_manager.cookie_secure,
        httponly=True,
        samesite="lax",
    )


async def _submitted_token(request: Request) -> str:
    header = request.headers.get(CSRF_HEADER)
    if header:
        return header.strip()
    # Starlette caches the parsed form, so the handler can read it again
    form = await request.form()
    value = form.get(CSRF_FORM_FIELD)
    return value.strip() if isinstance(value, str) else ""


async def verify_csrf_token(request: Request, call_next) -> Response:
    expected = request.cookies.get(CSRF_COOKIE, "")
    issued = not expected
    if issued:
        expected = generate_csrf_token()
    request.state.csrf_token = expected

    if request.method not in SAFE_METHODS:
        submitted = await _submitted_token(request)
        if issued or not submitted:
            logger.warning("CSRF token missing on %s %s", request.method, request.url.path)
            raise CSRFTokenError("missing")
        if not secrets.compare_digest(submitted.encode(), expected.encode()):
            logger.warning("CSRF token mismatch on %s %s", request.method, request.url.path)
            raise CSRFTokenError("invalid")

    response = await call_next(request)

    session = getattr(request.state, "session", None)
    if session is not None and session.renewed:
        _set_csrf_cookie(request, response, generate_csrf_token())
    elif issued:
        _set_csrf_cookie(request, response, expected)
    return response
