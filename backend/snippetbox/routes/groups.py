"""
Snippetbox — Route Groups
==========================

What:  The middleware chains that wrap route handlers, by group.

    dynamic    session load/save → CSRF check → handler
    protected  session load/save → CSRF check → auth gate → handler

Routers declare their group through `route_class`, e.g.
`APIRouter(route_class=ProtectedRoute)`. Static files and the health probe
belong to no group: they only pass through the application-wide stack.
"""

from snippetbox.middleware.auth import require_authentication
from snippetbox.middleware.chain import Chain, route_class
from snippetbox.middleware.csrf import verify_csrf_token
from snippetbox.sessions.manager import load_and_save_session

dynamic = Chain(load_and_save_session, verify_csrf_token)
protected = dynamic.append(require_authentication)

DynamicRoute = route_class(dynamic, "DynamicRoute")
ProtectedRoute = route_class(protected, "ProtectedRoute")
