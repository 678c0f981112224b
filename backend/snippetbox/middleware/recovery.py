"""
Snippetbox — Panic Recovery Middleware
=======================================

What:  Outermost middleware. Converts any exception that nothing else handled
       into a generic 500 response.
Why:   An unhandled exception must never reach the ASGI server: the server
       would log it out of context and the client would see a dropped
       connection. Typed application errors are answered by the exception
       handlers in main.py; whatever is left ends up here.
How:   Logs method, URI and the full traceback, then answers
       "Internal Server Error" with `Connection: close` so the server drops
       the connection instead of reusing one whose state is unknown. The
       security headers are set here too: the fault skipped the stage that
       normally adds them.

Isolation:
    Each request runs in its own task with its own pass through this
    middleware. A fault in one request has no effect on any other.
"""

import logging

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from snippetbox.middleware.headers import SECURITY_HEADERS
from snippetbox.middleware.logging import request_uri

logger = logging.getLogger(__name__)


def server_error_response() -> Response:
    return PlainTextResponse(
        "Internal Server Error",
        status_code=500,
        headers={**SECURITY_HEADERS, "Connection": "close"},
    )


async def recover_panic(request: Request, call_next) -> Response:
    try:
        return await call_next(request)
    except Exception as exc:
        method = request.method
        uri = request_uri(request)
        logger.error(
            "Unrecovered error handling %s %s: %s",
            method,
            uri,
            str(exc) or type(exc).__name__,
            exc_info=exc,
            extra={
                "method": method,
                "uri": uri,
                "request_id": getattr(request.state, "request_id", "-"),
            },
        )
        return server_error_response()
