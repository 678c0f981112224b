"""
Snippetbox — Common Security Headers Middleware
================================================

What:  Sets a fixed set of browser security headers on every response.

    Content-Security-Policy   only our own scripts/styles, Google Fonts allowed
    Referrer-Policy           send only the origin to other sites
    X-Content-Type-Options    no MIME sniffing
    X-Frame-Options           never render inside a frame (clickjacking)
    X-XSS-Protection          0: disable the legacy filter, CSP replaces it

A Starlette middleware only holds a response once `call_next` has built
it, so the headers are added on the way back up. They are added only where
the handler did not set its own value, the same result as setting them
before delegating and letting the handler override. Faults below the
recovery stage skip this stage; the recovery response sets them itself.
"""

from starlette.requests import Request
from starlette.responses import Response

SECURITY_HEADERS = {
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'self' fonts.googleapis.com; font-src fonts.gstatic.com"
    ),
    "Referrer-Policy": "origin-when-cross-origin",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "deny",
    "X-XSS-Protection": "0",
}


async def common_headers(request: Request, call_next) -> Response:
    response = await call_next(request)
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response
