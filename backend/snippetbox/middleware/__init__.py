# Middleware package init
"""
Snippetbox — Middleware Package
================================

What:  Cross-cutting concerns composed around the router and the handlers.

Middleware Chain (order matters!):

    Every request (application stack, main.py):
        [Recovery] → [Logging] → [Security Headers] → Router

    Dynamic routes (routes/groups.py):
        → [Session Load/Save] → [CSRF] → Handler

    Protected routes:
        → [Session Load/Save] → [CSRF] → [Auth Gate] → Handler

    Why this order:
    1. Recovery FIRST: it must see every fault raised anywhere below it
    2. Logging: records the request before anything can short-circuit it
    3. Security headers: applied to every response that comes back up
    4. Session before CSRF: a token renewal rotates the CSRF cookie too
    5. CSRF before the gate: a forged POST is rejected before anything,
       including the gate's redirect bookkeeping, touches the session
"""

from snippetbox.middleware.auth import require_authentication
from snippetbox.middleware.chain import Chain, ChainedRoute, route_class
from snippetbox.middleware.csrf import verify_csrf_token
from snippetbox.middleware.headers import common_headers
from snippetbox.middleware.logging import log_request
from snippetbox.middleware.recovery import recover_panic

__all__ = [
    "Chain",
    "ChainedRoute",
    "common_headers",
    "log_request",
    "recover_panic",
    "require_authentication",
    "route_class",
    "verify_csrf_token",
]
