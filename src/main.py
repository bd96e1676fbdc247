"""
Toreca Tracker — Application Entrypoint

Configures structlog, builds the async SQLAlchemy engine, and assembles the
FastAPI application with its caches, rate limiter and routers.

Run via:
    python -m src.main
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import structlog
import uvicorn
from fastapi import FastAPI
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.api.rate_limit import IntervalRateLimiter
from src.api.responses import install_exception_handlers
from src.api.routes import ALL_ROUTERS
from src.cache import TTLCache
from src.config import Settings, settings as default_settings

__version__ = "0.1.0"


# ---------------------------------------------------------------------------
# Structlog Configuration
# ---------------------------------------------------------------------------


def _configure_logging(log_level: str = "INFO") -> None:
    """
    Set up structured logging with JSON output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    # Configure stdlib logging first (for uvicorn, sqlalchemy, httpx)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Database Setup
# ---------------------------------------------------------------------------


def create_db_engine(config: Settings) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """
    Create SQLAlchemy async engine and session factory.

    Returns:
        (engine, session_factory) tuple.
    """
    logger = structlog.get_logger(__name__)
    logger.info("database_engine_initializing")

    engine_kwargs: dict[str, Any] = {"echo": False, "pool_pre_ping": True}
    if not config.DATABASE_URL.startswith("sqlite"):
        engine_kwargs.update(pool_size=5, max_overflow=10)

    engine = create_async_engine(config.DATABASE_URL, **engine_kwargs)
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    logger.info("database_engine_ready")
    return engine, session_factory


# ---------------------------------------------------------------------------
# Application Factory
# ---------------------------------------------------------------------------


def create_app(
    config: Settings | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Settings to use. Defaults to the module singleton.
        session_factory: Pre-built session factory (tests pass an aiosqlite one).
            When omitted, an engine is created from config at startup and
            disposed at shutdown.
    """
    config = config or default_settings
    logger = structlog.get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine: AsyncEngine | None = None
        if app.state.session_factory is None:
            engine, app.state.session_factory = create_db_engine(config)
            try:
                async with app.state.session_factory() as session:
                    await session.execute(text("SELECT 1"))
                logger.info("database_health_check_passed")
            except Exception as e:
                logger.error(
                    "database_health_check_failed",
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await engine.dispose()
                raise

        if not config.JUSTTCG_API_KEY:
            logger.warning("config_justtcg_api_key_missing")
        if not config.PRICECHARTING_TOKEN:
            logger.warning("config_pricecharting_token_missing")
        if not config.CRON_SECRET:
            logger.warning("config_cron_secret_missing", note="cron endpoints will reject all calls")

        logger.info("toreca_tracker_startup_complete", version=__version__)
        try:
            yield
        finally:
            if engine is not None:
                await engine.dispose()
            logger.info("toreca_tracker_shutdown_complete")

    app = FastAPI(title="Toreca Tracker", version=__version__, lifespan=lifespan)

    app.state.settings = config
    app.state.session_factory = session_factory
    app.state.justtcg_sets_cache = TTLCache(config.JUSTTCG_SETS_CACHE_TTL_SECONDS, name="justtcg_sets")
    app.state.justtcg_cards_cache = TTLCache(config.JUSTTCG_CARDS_CACHE_TTL_SECONDS, name="justtcg_cards")
    app.state.search_limiter = IntervalRateLimiter(config.SEARCH_RATE_LIMIT_SECONDS)

    install_exception_handlers(app)
    for router in ALL_ROUTERS:
        app.include_router(router)

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# ---------------------------------------------------------------------------
# CLI Entry
# ---------------------------------------------------------------------------


def main() -> None:
    _configure_logging(log_level=default_settings.LOG_LEVEL)
    uvicorn.run(create_app(), host="0.0.0.0", port=8000, log_config=None)


if __name__ == "__main__":
    main()
