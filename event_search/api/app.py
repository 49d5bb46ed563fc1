"""
Event Search API
Main FastAPI application
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..logging_config import logging as _  # noqa: F401  # ensure config applied early
from ..services.cache_state import CacheStoreError
from .routes import get_orchestrator, router as events_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Provision the execution index; caching degrades if the store is down."""
    logger.info("Event Search API starting up...")
    try:
        get_orchestrator().store.ensure_indexes()
    except CacheStoreError as e:
        logger.warning("[Cache] Execution store not ready - running without cache: %s", e)
    yield
    logger.info("Event Search API shutting down...")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Event Search",
        description="Event catalog search kept fresh by the ingestion workflow",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.include_router(events_router)

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "event-search"}

    return app


app = create_app()
