"""
Snippetbox — Command Line Entry Point
======================================

Usage:
    python -m snippetbox [--addr HOST:PORT] [--dsn DATABASE_URL]

Startup order:
    1. Configure logging
    2. Build the application (compiles the template cache; a broken
       template aborts startup)
    3. Ping the database, retrying transient failures
    4. Serve until interrupted

Any failure before the server starts is logged and the process exits with
status 1.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import uvicorn
from jinja2 import TemplateError
from sqlalchemy.exc import SQLAlchemyError

from snippetbox.config import parse_addr, settings
from snippetbox.database import dispose_engine, ping_database
from snippetbox.main import create_app, setup_logging

logger = logging.getLogger("snippetbox")


async def check_database(engine, attempts: int) -> None:
    try:
        await ping_database(engine, attempts=attempts)
    finally:
        await dispose_engine(engine)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="snippetbox", description="Snippetbox web application")
    parser.add_argument(
        "--addr",
        default=f"{settings.backend_host}:{settings.backend_port}",
        help="HTTP network address (default: %(default)s)",
    )
    parser.add_argument(
        "--dsn",
        default=settings.database_url,
        help="Database data source name",
    )
    args = parser.parse_args(argv)

    setup_logging(settings.log_level)

    try:
        host, port = parse_addr(args.addr)
    except ValueError as e:
        logger.error("%s", e)
        return 1

    config = settings.model_copy(
        update={"database_url": args.dsn, "backend_host": host, "backend_port": port}
    )

    try:
        app = create_app(config)
    except TemplateError as e:
        logger.error("Template cache could not be built: %s", e)
        return 1

    try:
        asyncio.run(check_database(app.state.engine, config.db_connect_attempts))
    except (SQLAlchemyError, OSError) as e:
        logger.error("Database unreachable: %s", e)
        return 1

    logger.info("starting server on %s:%d", host, port)
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
