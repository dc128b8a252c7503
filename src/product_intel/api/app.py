"""FastAPI application.

Run with:
    uvicorn product_intel.api.app:create_app --factory
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from product_intel.api.routers import scores
from product_intel.config import Settings, get_settings
from product_intel.db.base import Database
from product_intel.db.persistence import ScorePersistence

logger = logging.getLogger(__name__)


def create_app(
    database: Optional[Database] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Build the API around a database handle.

    Args:
        database: Database to read scores from. When omitted, one is
            created from ``settings.database_url`` and disposed on shutdown.
        settings: Application settings (uses cached settings if None).
    """
    settings = settings or get_settings()
    owns_database = database is None
    if database is None:
        database = Database(settings.database_url, echo=settings.debug)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if owns_database:
            logger.info("Disposing database engine")
            await database.dispose()

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Product scoring read API",
        version="0.1.0",
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.database = database
    app.state.persistence = ScorePersistence(database)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(scores.router, prefix=settings.api_prefix)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app
