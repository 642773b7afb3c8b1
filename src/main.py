#!/usr/bin/env python3
"""
FastAPI server for shipment tracking.
Deploy to Google Cloud Run.
"""

# Load environment variables first
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from common.config import config
from common.logging import get_logger
from pipeline.orchestrator import TrackingPipeline
from routes import health, tracking
from services.providers.registry import build_providers
from tracking.cache import AdaptiveCache
from tracking.fetcher import FetchOrchestrator
from tracking.merge import MergeEngine
from tracking.router import ProviderRouter

load_dotenv()

logger = get_logger(__name__)


def build_pipeline(providers=None) -> TrackingPipeline:
    """Wire cache, router, fetcher and merge engine around the given adapters."""
    providers = build_providers() if providers is None else providers
    profiles = [p.describe() for p in providers]

    router = ProviderRouter(profiles)
    return TrackingPipeline(
        cache=AdaptiveCache(),
        router=router,
        fetcher=FetchOrchestrator(providers, router),
        merger=MergeEngine([p.id for p in profiles]),
        deadline=config.request_deadline,
        batch_max_concurrency=config.batch_max_concurrency,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    if not hasattr(app.state, "pipeline"):
        app.state.pipeline = build_pipeline()
    logger.info("Tracking pipeline ready")
    yield
    purged = app.state.pipeline.cache.purge_expired()
    logger.info(f"Shutting down, purged {purged} expired cache entries")


# Initialize
app = FastAPI(
    title="Shipment Tracking API",
    description="Aggregates ocean carrier and aggregator tracking data into one shipment record",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(tracking.router)


if __name__ == "__main__":
    import uvicorn

    # Get port from environment (Cloud Run sets this)
    port = int(os.environ.get("PORT", 8080))

    # Run the server
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=port,
        reload=False,  # Disable reload in production
        log_level="info",
    )
