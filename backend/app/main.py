"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.infrastructure.database import Base, engine
from app.infrastructure.dependencies import get_session_registry, get_sse_manager
from app.infrastructure.logging.log_config import setup_logging
from app.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


async def _ensure_database_exists() -> None:
    """Create the PostgreSQL database if it does not yet exist.

    Connects to the default ``postgres`` maintenance database, checks for the
    target database name, and issues ``CREATE DATABASE`` when missing.
    Other database backends are left alone.
    """
    from urllib.parse import urlparse

    settings = get_settings()
    if not settings.database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        return

    import asyncpg

    parsed = urlparse(settings.database_url)
    db_name = parsed.path.lstrip("/")
    if not db_name:
        return

    # asyncpg expects a plain postgresql:// URL pointing at the maintenance db
    maintenance_url = (
        settings.database_url.replace("postgresql+asyncpg://", "postgresql://", 1)
        .rsplit("/", 1)[0] + "/postgres"
    )

    try:
        conn = await asyncpg.connect(maintenance_url)
        try:
            exists = await conn.fetchval(
                "SELECT 1 FROM pg_database WHERE datname = $1", db_name
            )
            if not exists:
                # CREATE DATABASE cannot run inside a transaction block
                await conn.execute(f'CREATE DATABASE "{db_name}"')
                logger.info("Created database '%s'", db_name)
            else:
                logger.debug("Database '%s' already exists", db_name)
        finally:
            await conn.close()
    except Exception as exc:
        logger.warning("Could not auto-create database '%s': %s", db_name, exc)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan — create tables, prepare the cache, stop live sessions."""
    settings = get_settings()
    setup_logging()

    # 0. Ensure the PostgreSQL database exists (auto-create if missing)
    await _ensure_database_exists()

    # 1. Create all database tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # 2. Ensure the local analysis cache directory exists
    Path(settings.cache_dir).mkdir(parents=True, exist_ok=True)

    logger.info(
        "Generation service: %s (timeout %.0fs, max %d records, strategy '%s')",
        settings.generation_service_url,
        settings.generation_timeout_seconds,
        settings.max_generation_records,
        settings.record_selection_strategy,
    )

    yield

    # Shutdown
    await get_session_registry().shutdown()
    sse = get_sse_manager()
    await sse.shutdown()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
