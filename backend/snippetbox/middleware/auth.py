"""
Snippetbox — Authentication Gate
=================================

What:  Lets only Authenticated sessions reach protected handlers.
How:   Anonymous request → remember where it was going (GET only; a POST
       target cannot be revisited by a redirect) → 303 to /user/login. The
       handler is never invoked. After login the login handler sends the
       user back to the remembered path.
       Authenticated request → delegate, then mark the response
       `Cache-Control: no-store` so pages behind login are not cached by
       the browser or shared caches.
"""

import logging

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from snippetbox.middleware.logging import request_uri
from snippetbox.sessions.manager import REDIRECT_AFTER_LOGIN_KEY

logger = logging.getLogger(__name__)

LOGIN_PATH = "/user/login"


async def require_authentication(request: Request, call_next) -> Response:
    session = request.state.session

    if not session.is_authenticated:
        if request.method == "GET":
            session.put(REDIRECT_AFTER_LOGIN_KEY, request_uri(request))
        logger.info("Anonymous %s %s redirected to login", request.method, request.url.path)
        return RedirectResponse(LOGIN_PATH, status_code=303)

    response = await call_next(request)
    response.headers["Cache-Control"] = "no-store"
    return response
