"""
FastAPI application entry point.

This module initializes the FastAPI application, configures logging,
and registers the API routers.
"""
import logging
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI

from .api.routers import uploads
from .core.config import settings
from .core.logging_config import configure_logging

# Logging must be in place before the first request; an unwritable log file aborts startup.
configure_logging(settings.log_level, settings.log_file)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log the effective ingestion limits on startup."""
    logger.info(
        "Cashback ingestion ready: workers=%d queue=%d pool=%d..%d timeout=%ss",
        settings.ingest_worker_count,
        settings.ingest_queue_size,
        settings.db_pool_min_size,
        settings.db_pool_max_size,
        settings.ingest_request_timeout_seconds or "none",
    )
    if settings.ingest_worker_count > settings.db_pool_max_size:
        logger.warning(
            "ingest_worker_count (%d) exceeds db_pool_max_size (%d); extra writers will wait for connections",
            settings.ingest_worker_count,
            settings.db_pool_max_size,
        )
    yield


app = FastAPI(
    title="Cashback Ingestion API",
    version="1.0.0",
    description="Loads monthly shipment/cashback exports into per-month PostgreSQL schemas",
    lifespan=lifespan,
)

app.include_router(uploads.router)


@app.get("/")
async def root():
    """Root endpoint returning API information."""
    return {
        "message": "Cashback Ingestion API",
        "version": "1.0.0"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for deployment monitoring."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "cashback-ingest"
    }
