"""
Snippetbox — Request Logging Middleware
========================================

What:  Logs every request on arrival and its outcome on completion.
How:   Assigns a request ID (client-provided X-Request-ID or a short UUID),
       stores it in a ContextVar so every log line of the request carries it,
       logs ip / protocol / method / URI BEFORE dispatch, then status and
       duration after.

What we log vs what we DON'T log (privacy):
    ✅ Log: method, URI, protocol, status, duration, IP, request ID
    ❌ Don't log: request body (passwords!), cookies, session contents
"""

import logging
import time
import uuid
from contextvars import ContextVar

from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("snippetbox.access")

# Coroutine-local: concurrent requests on the same thread each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


class RequestIDFilter(logging.Filter):
    """Adds `request_id` to every record so the log format can reference it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


def request_uri(request: Request) -> str:
    """Path plus query string, as the client sent it."""
    uri = request.url.path
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    return uri


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def log_request(request: Request, call_next) -> Response:
    rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
    token = request_id_var.set(rid)
    request.state.request_id = rid

    method = request.method
    uri = request_uri(request)
    proto = f"HTTP/{request.scope.get('http_version', '1.1')}"
    ip = client_ip(request)

    try:
        logger.info(
            "received request %s %s %s from %s",
            proto,
            method,
            uri,
            ip,
            extra={"method": method, "uri": uri, "proto": proto, "client_ip": ip},
        )

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        # 5xx → ERROR, 4xx → WARNING, 2xx/3xx → INFO
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms",
            method,
            uri,
            status,
            duration_ms,
            extra={"status": status, "duration_ms": round(duration_ms, 2)},
        )

        response.headers["X-Request-ID"] = rid
        return response
    finally:
        request_id_var.reset(token)
