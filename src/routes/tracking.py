"""Shipment tracking endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from common.errors import TrackingError, TrackingFailure, invalid_request
from common.logging import get_logger
from models.tracking import (
    RoutingContext,
    TrackingQuery,
    TrackingType,
    UserTier,
    validate_tracking_number,
)
from pipeline.orchestrator import TrackingPipeline
from tracking.schemas import BatchItem, TrackingResult

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["tracking"])

MAX_BATCH_SIZE = 25


class TrackRequest(BaseModel):
    tracking_number: str = Field(description="Container, booking or bill-of-lading number")
    type: TrackingType | None = Field(None, description="Detected from the number when omitted")
    force_refresh: bool = False


class RoutingPreferences(BaseModel):
    user_tier: UserTier | None = None
    cost_optimize: bool | None = None
    reliability_optimize: bool | None = None

    def context(self) -> RoutingContext:
        return RoutingContext(
            user_tier=self.user_tier,
            cost_optimize=self.cost_optimize,
            reliability_optimize=self.reliability_optimize,
        )


class BatchTrackRequest(RoutingPreferences):
    items: list[TrackRequest] = Field(min_length=1, max_length=MAX_BATCH_SIZE)


def get_pipeline(request: Request) -> TrackingPipeline:
    return request.app.state.pipeline


def routing_preferences(
    user_tier: UserTier | None = None,
    cost_optimize: bool | None = None,
    reliability_optimize: bool | None = None,
) -> RoutingPreferences:
    return RoutingPreferences(
        user_tier=user_tier, cost_optimize=cost_optimize, reliability_optimize=reliability_optimize
    )


def http_error(failure: TrackingFailure) -> HTTPException:
    headers = {"Retry-After": str(failure.retry_after)} if failure.retry_after is not None else None
    return HTTPException(status_code=failure.status_code, detail=failure.model_dump(), headers=headers)


def build_query(tracking_number: str, tracking_type: TrackingType | None, force_refresh: bool) -> TrackingQuery:
    """Validate raw input and build a query; raises a 400 TrackingError when invalid."""
    if message := validate_tracking_number(tracking_number):
        raise invalid_request(message)
    return TrackingQuery.create(tracking_number.strip(), tracking_type, force_refresh=force_refresh)


async def _track(
    pipeline: TrackingPipeline,
    tracking_number: str,
    tracking_type: TrackingType | None,
    force_refresh: bool,
    preferences: RoutingPreferences,
) -> TrackingResult:
    try:
        query = build_query(tracking_number, tracking_type, force_refresh)
        return await pipeline.track(query, preferences.context())
    except TrackingError as e:
        logger.warning(f"Tracking request for {tracking_number} failed: {e.failure.code}")
        raise http_error(e.failure) from e


@router.get("/track/{tracking_number}", response_model=TrackingResult)
async def track_shipment(
    tracking_number: str,
    type: TrackingType | None = Query(None, description="container | booking | bol"),
    force_refresh: bool = False,
    preferences: RoutingPreferences = Depends(routing_preferences),
    pipeline: TrackingPipeline = Depends(get_pipeline),
):
    """
    Track a shipment by tracking number.

    Serves fresh cached data when available, otherwise queries every
    provider that supports the tracking type and merges their answers.
    When all providers fail, previously cached data is returned with
    `stale=true` and a warning.

    Example:
        GET /api/track/MAEU1234567?type=container&user_tier=premium
    """
    return await _track(pipeline, tracking_number, type, force_refresh, preferences)


@router.get("/track/{tracking_number}/refresh", response_model=TrackingResult)
async def refresh_shipment(
    tracking_number: str,
    type: TrackingType | None = None,
    preferences: RoutingPreferences = Depends(routing_preferences),
    pipeline: TrackingPipeline = Depends(get_pipeline),
):
    """Track a shipment, bypassing the cache."""
    return await _track(pipeline, tracking_number, type, True, preferences)


@router.post("/track/search", response_model=TrackingResult)
async def search_shipment(
    request: TrackRequest,
    preferences: RoutingPreferences = Depends(routing_preferences),
    pipeline: TrackingPipeline = Depends(get_pipeline),
):
    """
    Track a shipment from a JSON body.

    Example request:
        ```json
        {"tracking_number": "MAEU1234567", "type": "container"}
        ```
    """
    return await _track(pipeline, request.tracking_number, request.type, request.force_refresh, preferences)


@router.post("/track/batch", response_model=list[BatchItem])
async def track_batch(request: BatchTrackRequest, pipeline: TrackingPipeline = Depends(get_pipeline)):
    """
    Track several shipments at once.

    Invalid tracking numbers are reported per item and do not fail the
    batch.

    Example request:
        ```json
        {
            "items": [
                {"tracking_number": "MAEU1234567"},
                {"tracking_number": "BK20240001", "type": "booking"}
            ],
            "user_tier": "free"
        }
        ```
    """
    items: list[BatchItem | None] = [None] * len(request.items)
    queries, positions = [], []
    for i, item in enumerate(request.items):
        try:
            queries.append(build_query(item.tracking_number, item.type, item.force_refresh))
            positions.append(i)
        except TrackingError as e:
            items[i] = BatchItem(
                tracking_number=item.tracking_number,
                tracking_type=item.type or TrackingType.CONTAINER,
                error=e.failure,
            )

    for i, result in zip(positions, await pipeline.track_many(queries, request.context()), strict=True):
        items[i] = result

    failed = sum(1 for item in items if item.error)
    logger.info(f"Batch tracking completed: {len(items) - failed}/{len(items)} succeeded")
    return items


@router.get("/providers")
async def list_providers(pipeline: TrackingPipeline = Depends(get_pipeline)):
    """Provider profiles and recent failure history."""
    return pipeline.router.provider_stats()


@router.get("/cache/stats")
async def cache_stats(pipeline: TrackingPipeline = Depends(get_pipeline)):
    return pipeline.cache.stats()


@router.delete("/cache/{tracking_number}")
async def invalidate_cache(
    tracking_number: str,
    type: TrackingType | None = None,
    pipeline: TrackingPipeline = Depends(get_pipeline),
):
    """Drop cached data for a tracking number (all tracking types unless `type` is given)."""
    query = TrackingQuery.create(tracking_number, type or TrackingType.CONTAINER)
    types = [type] if type else list(TrackingType)
    removed = [t.value for t in types if pipeline.cache.invalidate((query.tracking_number, t))]
    logger.info(f"Invalidated cache for {query.tracking_number}: {removed or 'nothing cached'}")
    return {"tracking_number": query.tracking_number, "invalidated": removed}
