"""word-rest-api — FastAPI application entry point."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from word_api import __version__
from word_api.api.errors import register_error_handlers
from word_api.api.health import router as health_router
from word_api.api.posts import router as posts_router
from word_api.api.users import router as users_router
from word_api.api.vocabulary import router as vocabulary_router
from word_api.config import AppConfig
from word_api.db.migrate import migrate
from word_api.db.pool import ConnectionPool, open_pool
from word_api.db.vocabulary import VocabularyRepository
from word_api.middleware import RequestLoggingMiddleware

logger = logging.getLogger(__name__)


def init_db(config: AppConfig, *, seed: bool | None = None) -> ConnectionPool:
    """Open the pool, check it, migrate, and optionally seed vocabulary.

    Any failure closes the pool and propagates.
    """
    pool = open_pool(config.database)
    try:
        pool.health_check()
        migrate(pool)
        if config.seed_vocabulary if seed is None else seed:
            VocabularyRepository(pool).seed()
    except Exception:
        pool.close()
        raise
    return pool


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup/shutdown lifecycle."""
    logger.info("Serving with %s backend", app.state.pool.backend)
    yield
    app.state.pool.close()
    logger.info("Application shutdown complete")


def _init_sentry(dsn: str, environment: str) -> None:
    """Initialize Sentry SDK if a DSN is configured and not in development."""
    if not dsn or environment == "development":
        return
    sentry_sdk.init(
        dsn,
        environment=environment,
        send_default_pii=False,
        traces_sample_rate=0,
        send_client_reports=False,
        auto_session_tracking=False,
    )


def create_app(config: AppConfig | None = None, pool: ConnectionPool | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Opens and migrates the database unless an initialized ``pool`` is given.
    """
    if config is None:
        config = AppConfig.from_yaml()

    _init_sentry(config.sentry_dsn, config.environment)

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, config.server.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="word-rest-api",
        version=__version__,
        description="Users, posts and vocabulary over PostgreSQL or SQLite",
        lifespan=lifespan,
        debug=config.environment == "development",
    )

    # Initialize database
    app.state.config = config
    app.state.pool = pool if pool is not None else init_db(config)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        allow_credentials=False,
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_error_handlers(app)

    # Register routes
    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(posts_router)
    app.include_router(vocabulary_router)

    return app


def cli_entry() -> None:
    """CLI entry point for running the server."""
    import uvicorn

    config = AppConfig.from_yaml()
    try:
        app = create_app(config)
    except Exception as exc:
        logger.critical("Startup failed: %s", exc, exc_info=True)
        sys.exit(1)

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.server.log_level,
    )
