# src/pipeline/orchestrator.py
"""
Tracking pipeline: cache check, routing, concurrent fetch, merge and cache
store, with single-flight, batch tracking and stale fallback.
"""

import asyncio

from common.config import config
from common.errors import AllFailedError, NoDataError, TrackingError, collapse_provider_errors
from common.logging import get_logger
from models.shipment import Shipment
from models.tracking import RoutingContext, TrackingQuery
from tracking.cache import AdaptiveCache, CacheEntry
from tracking.fetcher import FetchOrchestrator
from tracking.merge import MergeEngine
from tracking.router import ProviderRouter
from tracking.schemas import BatchItem, RoutingDecision, TrackingResult, format_data_age
from tracking.singleflight import SingleFlight

logger = get_logger(__name__)

STALE_WARNING = "Showing cached data from {age} ago. Current tracking information is unavailable."


class TrackingPipeline:
    """Caller-facing tracking service. Build once at startup and share."""

    def __init__(
        self,
        cache: AdaptiveCache,
        router: ProviderRouter,
        fetcher: FetchOrchestrator,
        merger: MergeEngine,
        deadline: float | None = config.request_deadline,
        batch_max_concurrency: int = config.batch_max_concurrency,
    ):
        self.cache = cache
        self.router = router
        self.fetcher = fetcher
        self.merger = merger
        self.deadline = deadline
        self.batch_max_concurrency = batch_max_concurrency
        self._flights = SingleFlight()

    async def track(
        self,
        query: TrackingQuery,
        context: RoutingContext | None = None,
        deadline: float | None = None,
    ) -> TrackingResult:
        """
        Track one shipment.

        Raises:
            TrackingError: no provider returned data and nothing is cached
        """
        if not query.force_refresh:
            entry = self.cache.get(query.cache_key)
            if entry is not None:
                logger.info(f"Serving {query.tracking_number} from cache")
                return self._from_cache(entry)

        return await self._track_uncached(query, context, deadline)

    async def refresh(self, query: TrackingQuery, context: RoutingContext | None = None) -> TrackingResult:
        """Track, bypassing the cache read."""
        return await self.track(query.model_copy(update={"force_refresh": True}), context)

    async def track_many(
        self, queries: list[TrackingQuery], context: RoutingContext | None = None
    ) -> list[BatchItem]:
        """
        Track several shipments. Fresh cache hits are answered directly, the
        rest are fetched concurrently. A failed item never fails the batch.

        Returns:
            One BatchItem per query, in input order
        """
        items: list[BatchItem | None] = [None] * len(queries)
        misses = []
        for i, query in enumerate(queries):
            entry = None if query.force_refresh else self.cache.get(query.cache_key)
            if entry is not None:
                items[i] = self._item(query, result=self._from_cache(entry))
            else:
                misses.append(i)

        logger.info(f"Batch of {len(queries)}: {len(queries) - len(misses)} cached, {len(misses)} to fetch")

        semaphore = asyncio.Semaphore(self.batch_max_concurrency)

        async def run(i: int) -> None:
            query = queries[i]
            async with semaphore:
                try:
                    items[i] = self._item(query, result=await self._track_uncached(query, context))
                except TrackingError as e:
                    items[i] = self._item(query, error=e.failure)

        await asyncio.gather(*(run(i) for i in misses))
        return items

    # Private

    async def _track_uncached(
        self, query: TrackingQuery, context: RoutingContext | None, deadline: float | None = None
    ) -> TrackingResult:
        try:
            shipment, decision = await self._flights.do(
                query.cache_key,
                lambda: self._fetch_and_store(query, context, deadline),
            )
        except (NoDataError, AllFailedError) as e:
            stale = self.cache.get_stale(query.cache_key)
            if stale is not None:
                logger.warning(f"All providers failed for {query.tracking_number}, serving stale data")
                return self._from_cache(stale, stale=True)

            failure = collapse_provider_errors(e.errors)
            logger.error(f"Tracking failed for {query.tracking_number}: {failure.code} ({failure.message})")
            raise TrackingError(failure) from e

        return TrackingResult(
            shipment=shipment,
            strategy=decision.strategy,
            providers=decision.providers,
            age_minutes=0,
            data_age=format_data_age(0),
        )

    async def _fetch_and_store(
        self, query: TrackingQuery, context: RoutingContext | None, deadline: float | None
    ) -> tuple[Shipment, RoutingDecision]:
        decision = self.router.select_order(query, context)
        results = await self.fetcher.fetch(
            decision.providers,
            query,
            deadline=deadline if deadline is not None else self.deadline,
        )
        shipment = self.merger.merge(results, query.tracking_type)
        self.cache.put(query.cache_key, shipment)
        logger.info(f"Tracked {query.tracking_number}: {shipment.status} via {shipment.data_source}")
        return shipment, decision

    def _from_cache(self, entry: CacheEntry, stale: bool = False) -> TrackingResult:
        age_minutes = int(entry.age_seconds(self.cache.now()) // 60)
        data_age = format_data_age(age_minutes)
        return TrackingResult(
            shipment=entry.value,
            from_cache=True,
            stale=stale,
            age_minutes=age_minutes,
            data_age=data_age,
            warning=STALE_WARNING.format(age=data_age) if stale else None,
        )

    @staticmethod
    def _item(query: TrackingQuery, **kwargs) -> BatchItem:
        return BatchItem(tracking_number=query.tracking_number, tracking_type=query.tracking_type, **kwargs)
