"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Lifespan manages startup/shutdown (database engine).
Logging, middleware, error handlers and routers are all registered here;
each concern lives in its own module.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskboard import __version__
from taskboard.api import api_router
from taskboard.config import Settings, get_settings
from taskboard.errors import register_exception_handlers
from taskboard.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. Schema is managed outside the app (`taskboard init-db`).
    """
    settings: Settings = app.state.settings
    logger.info(
        "taskboard.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    yield

    logger.info("taskboard.shutdown")

    from taskboard.db.engine import engine
    await engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Taskboard",
        description="Project and task tracker with role-based access control",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from taskboard.middleware.request_id import RequestIdMiddleware
    from taskboard.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)
    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: taskboard.main:app)
app = create_app()
