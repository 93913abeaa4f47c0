"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vetdesk.api.middleware import request_context_middleware
from vetdesk.api.routes.router import router
from vetdesk.core.config import settings
from vetdesk.core.db import Database
from vetdesk.core.errors import register_exception_handlers
from vetdesk.core.logging import configure_logging
from vetdesk.services.oidc_client import discover
from vetdesk.services.session_cleanup import run_cleanup_task

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Opens the database, discovers the identity provider and runs the
    expired-session cleanup task. A discovery failure aborts startup.
    """
    database = Database(settings.SQLALCHEMY_DATABASE_URI, pool_pre_ping=True)
    database.open()
    app.state.database = database

    stop_event = asyncio.Event()
    cleanup_task: asyncio.Task | None = None
    try:
        app.state.oidc_config = await discover(
            settings.GOOGLE_CLIENT_ID,
            settings.GOOGLE_CLIENT_SECRET,
            settings.OIDC_ISSUER,
        )

        cleanup_task = asyncio.create_task(
            run_cleanup_task(
                database,
                interval_seconds=settings.SESSION_CLEANUP_INTERVAL_SECONDS,
                stop_event=stop_event,
            )
        )

        logger.info("Starting %s %s", settings.PROJECT_NAME, settings.APP_VERSION)
        yield
    finally:
        stop_event.set()
        if cleanup_task is not None:
            try:
                await asyncio.wait_for(cleanup_task, timeout=5)
            except asyncio.TimeoutError:
                cleanup_task.cancel()
        database.close()
        logger.info("Shut down %s", settings.PROJECT_NAME)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.APP_ORIGIN],
        allow_credentials=True,
        allow_methods=["GET", "PUT", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Cookie", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    app.middleware("http")(request_context_middleware)

    register_exception_handlers(app)
    app.include_router(router)

    return app


# Application instance for uvicorn
app = create_app()
