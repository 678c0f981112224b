"""
Snippetbox — Health Check Route
================================

What:  Health check endpoint for monitoring and load balancer probes.
Why:   A process that cannot reach its database cannot serve a single page,
       so the probe checks the database, not just that the process is up.
How:   Runs SELECT 1 on the application's engine. The route belongs to no
       route group: it carries no session and needs no CSRF token.

Status levels:
    healthy:    database reachable (HTTP 200)
    unhealthy:  database unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from snippetbox import __version__
from snippetbox.schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

# Module-level: initialized once at import, reported as uptime
_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(request: Request) -> JSONResponse:
    """
    Probe the database and report aggregate status.

    SELECT 1 is essentially free, so the probe can run every few seconds.
    """
    db_status = "connected"
    overall = "healthy"

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    body = HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        active_sessions=len(request.app.state.session_manager.store),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
    return JSONResponse(body.model_dump(), status_code=200 if overall == "healthy" else 503)
