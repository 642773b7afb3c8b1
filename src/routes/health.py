"""Health check and service info endpoints."""

from fastapi import APIRouter, Request

from common.config import config
from common.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    """Root endpoint with basic info."""
    return {
        "service": "Shipment Tracking API",
        "version": "0.1.0",
        "status": "running",
        "description": "Multi-provider container, booking and bill-of-lading tracking",
        "endpoints": {
            "health": "/health",
            "docs": "/docs",
            "track": "/api/track/{tracking_number}",
            "batch": "/api/track/batch",
            "providers": "/api/providers",
        },
        "example_request": "/api/track/MAEU1234567?type=container",
    }


@router.get("/health")
async def health_check():
    """Liveness check."""
    return {"status": "healthy", "service": "shipment-tracking"}


@router.get("/health/debug")
async def debug_check(request: Request):
    """Verify configuration and registered providers."""
    pipeline = request.app.state.pipeline
    adapters = list(pipeline.fetcher.providers)

    checks = {
        "status": "healthy" if adapters else "unhealthy",
        "config": {
            "maersk_key_set": bool(config.maersk_api_key.get_secret_value()),
            "shipsgo_key_set": bool(config.shipsgo_api_key.get_secret_value()),
            "request_deadline": config.request_deadline,
            "cache_max_entries": config.cache_max_entries,
        },
        "providers": {"profiles": len(pipeline.router.profiles), "adapters": adapters},
        "cache": pipeline.cache.stats(),
    }

    logger.info(f"Debug check result: {checks}")
    return checks
