"""
Snippetbox — Middleware Chain
==============================

What:  Composes `async (request, call_next) -> response` middleware around a
       terminal handler.
Why:   The same middleware functions are used in two places:
         1. the application-wide stack (recovery, logging, security headers),
            installed as Starlette middleware via `Chain.as_middleware()`
         2. the per-route-group stacks (session, CSRF, auth gate), wrapped
            around each route's handler by `ChainedRoute`
How:   `Chain(mw1, mw2, mw3).then(handler)` returns a handler that calls mw1,
       which may call mw2 (through `call_next`), ... which finally calls
       `handler`. Any middleware may act before delegating, after it, or
       return its own response without delegating at all.

    Request → mw1 → mw2 → mw3 → handler
    Response ← mw1 ← mw2 ← mw3 ← handler

Chains are immutable: `append()` returns a new Chain, so a base group can be
extended without affecting routes already using it.

    dynamic   = Chain(load_and_save_session, verify_csrf_token)
    protected = dynamic.append(require_authentication)
"""

from typing import Awaitable, Callable, Iterator, List, Type

from fastapi.routing import APIRoute
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

Handler = Callable[[Request], Awaitable[Response]]
MiddlewareFunc = Callable[[Request, Handler], Awaitable[Response]]


def _bind(middleware: MiddlewareFunc, call_next: Handler) -> Handler:
    async def handler(request: Request) -> Response:
        return await middleware(request, call_next)

    handler.__name__ = getattr(middleware, "__name__", "middleware")
    return handler


class Chain:
    """An ordered, reusable list of middleware functions."""

    def __init__(self, *middlewares: MiddlewareFunc):
        self._middlewares = tuple(middlewares)

    def append(self, *middlewares: MiddlewareFunc) -> "Chain":
        return Chain(*self._middlewares, *middlewares)

    def then(self, handler: Handler) -> Handler:
        """Wrap `handler`; the first middleware in the chain runs first."""
        for middleware in reversed(self._middlewares):
            handler = _bind(middleware, handler)
        return handler

    def as_middleware(self) -> List[Middleware]:
        """
        The chain as Starlette middleware, outermost first.

        Suitable for `FastAPI(middleware=...)`, which keeps list order.
        """
        return [Middleware(BaseHTTPMiddleware, dispatch=m) for m in self._middlewares]

    def __iter__(self) -> Iterator[MiddlewareFunc]:
        return iter(self._middlewares)

    def __len__(self) -> int:
        return len(self._middlewares)


class ChainedRoute(APIRoute):
    """
    APIRoute whose request handler is wrapped by `chain`.

    FastAPI builds the handler once, when the route is registered, so the
    composed chain is reused for every request to the route.
    """

    chain: Chain = Chain()

    def get_route_handler(self) -> Handler:
        return self.chain.then(super().get_route_handler())


def route_class(chain: Chain, name: str = "ChainedRoute") -> Type[APIRoute]:
    """Build an APIRoute subclass bound to `chain`, for `APIRouter(route_class=...)`."""
    return type(name, (ChainedRoute,), {"chain": chain})
