"""
Application lifecycle event handlers.

Manages startup and shutdown tasks: logging setup, database tables, the
national ballots, and the connection pool.
"""

from typing import Callable

import structlog
from fastapi import FastAPI

from core.config import settings
from core.logging import configure_logging
from db.session import close_db, get_session_factory, init_db
from services.ballot_registry import BallotRegistry

logger = structlog.get_logger(__name__)


def create_start_app_handler(app: FastAPI) -> Callable:
    """Create startup event handler."""

    async def start_app() -> None:
        configure_logging(settings.LOG_LEVEL, json_output=not settings.is_development)
        logger.info("app_starting", app=settings.APP_NAME, env=settings.APP_ENV)

        await init_db()

        # Party preference and referendum ballots always exist
        async with get_session_factory()() as session:
            ballots = await BallotRegistry(session).ensure_national_ballots()
        logger.info("national_ballots_ready", count=len(ballots))

        logger.info("app_started")

    return start_app


def create_stop_app_handler(app: FastAPI) -> Callable:
    """Create shutdown event handler."""

    async def stop_app() -> None:
        logger.info("app_stopping")
        await close_db()
        logger.info("app_stopped")

    return stop_app
