"""
Snippetbox — FastAPI Application Factory
=========================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware registration, route mounting
       and lifecycle management in one place.
How:   Factory pattern: create_app(settings) returns a configured FastAPI
       instance with its dependencies (engine, template cache, session
       manager, services) attached to `app.state`.
Who:   Called by the command line entry point (python -m snippetbox), by
       uvicorn (`uvicorn --factory snippetbox.main:create_app`) and by the
       test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Application stack (every request, incl. 404/405):       │
    │  ┌────────────┐ ┌────────────┐ ┌───────────────────┐     │
    │  │  Recovery  │→│  Logging   │→│ Security headers  │→ Router
    │  └────────────┘ └────────────┘ └───────────────────┘     │
    │                                                          │
    │  Routes:                                                 │
    │    /static/*          files, no session                  │
    │    /health            JSON probe, no session             │
    │    dynamic group      session → CSRF → handler           │
    │    protected group    session → CSRF → auth → handler    │
    │                                                          │
    │  Exception Handlers:                                     │
    │    ClientError→400  NotFound→404  HTTPException→status   │
    │    ServerError→500 (logged with trace)                   │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   start the expired-session sweeper
    Shutdown:  stop the sweeper, dispose the database engine
"""

import asyncio
import contextlib
import logging
import sys
from contextlib import asynccontextmanager
from datetime import timedelta
from http import HTTPStatus
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import PlainTextResponse

from snippetbox import __version__
from snippetbox.config import Settings
from snippetbox.config import settings as default_settings
from snippetbox.database import create_engine, create_session_factory, dispose_engine
from snippetbox.exceptions import SnippetboxError
from snippetbox.middleware import Chain, common_headers, log_request, recover_panic
from snippetbox.middleware.logging import RequestIDFilter, request_uri
from snippetbox.routes import health, snippets, users
from snippetbox.services.passwords import PasswordHasher
from snippetbox.services.snippet_service import SnippetService
from snippetbox.services.user_service import UserService
from snippetbox.sessions import MemoryStore, SessionManager
from snippetbox.templates import TemplateRenderer

logger = logging.getLogger(__name__)

# Outermost first
standard = Chain(recover_panic, log_request, common_headers)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s

    The request ID comes from RequestIDFilter, so lines logged outside a
    request (startup, the session sweeper) show "-".
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDFilter())

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Reduce noise from third-party libraries
    # Our own access log replaces uvicorn's
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

async def sweep_expired_sessions(store: MemoryStore, interval: float) -> None:
    """Periodically drop expired records from the session store."""
    while True:
        await asyncio.sleep(interval)
        removed = store.cleanup()
        if removed:
            logger.debug("Removed %d expired sessions", removed)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    logger.info("Snippetbox %s starting up...", __version__)
    sweeper = asyncio.create_task(
        sweep_expired_sessions(app.state.session_manager.store, settings.session_cleanup_interval)
    )

    yield

    logger.info("Snippetbox shutting down...")
    sweeper.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await sweeper

    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def status_text_response(status_code: int, headers: Optional[dict] = None) -> PlainTextResponse:
    """Plain-text body carrying only the standard status phrase."""
    return PlainTextResponse(HTTPStatus(status_code).phrase, status_code=status_code, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to status-text responses.

    Handler hierarchy:
        SnippetboxError subclasses  → their status_code (400, 404, 500, ...)
        HTTPException (router)      → its status (404 no route, 405 + Allow)
        RequestValidationError      → 400 Bad Request

    Security: responses NEVER carry internal detail. 5xx are logged with
    method, URI and the traceback; the body is just "Internal Server Error".
    """

    @app.exception_handler(SnippetboxError)
    async def handle_snippetbox_error(request: Request, exc: SnippetboxError):
        if exc.status_code >= 500:
            logger.error(
                "%s %s: %s | Context: %s",
                request.method,
                request_uri(request),
                exc.message,
                exc.context,
                exc_info=exc,
            )
        else:
            logger.info("%s %s: %s", request.method, request_uri(request), exc.message)
        return status_text_response(exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return status_text_response(exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        logger.info("%s %s: invalid request: %s", request.method, request_uri(request), exc.errors())
        return status_text_response(400)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to use; the environment-loaded settings when omitted.

    Raises:
        jinja2.TemplateSyntaxError: A template failed to compile. Startup
            must not proceed with a broken template cache.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="Snippetbox",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        middleware=standard.as_middleware(),
        lifespan=lifespan,
    )

    # ── Dependencies ──────────────────────────────────────────────────────
    app.state.settings = settings
    app.state.engine = create_engine(settings)
    app.state.session_factory = create_session_factory(app.state.engine)
    app.state.templates = TemplateRenderer(settings.templates_dir)
    app.state.session_manager = SessionManager(
        MemoryStore(),
        lifetime=timedelta(seconds=settings.session_lifetime),
        cookie_name=settings.session_cookie_name,
        cookie_secure=settings.session_cookie_secure,
    )
    app.state.snippets = SnippetService()
    app.state.users = UserService(PasswordHasher(rounds=settings.bcrypt_rounds))

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.mount("/static", StaticFiles(directory=settings.static_dir), name="static")
    app.include_router(health.router)
    app.include_router(snippets.router)
    app.include_router(snippets.protected_router)
    app.include_router(users.router)
    app.include_router(users.protected_router)

    return app
