"""Concurrent fan-out of one query to many providers."""

import asyncio

from common.config import config
from common.logging import get_logger
from models.provider import ProviderError, ProviderErrorKind, RawResult
from models.tracking import TrackingQuery
from services.providers.base import TrackingProvider
from tracking.retry import Sleep, call_with_retry
from tracking.router import ProviderRouter

logger = get_logger(__name__)


class FetchOrchestrator:
    """Dispatches a query to every candidate provider at once and collects all outcomes."""

    def __init__(
        self,
        providers: list[TrackingProvider],
        router: ProviderRouter,
        retry_base_delay: float = config.retry_base_delay,
        retry_max_delay: float = config.retry_max_delay,
        sleep: Sleep = asyncio.sleep,
    ):
        self.providers = {p.id: p for p in providers}
        self.router = router
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self._sleep = sleep

    async def fetch(
        self, provider_ids: list[str], query: TrackingQuery, deadline: float | None = None
    ) -> list[RawResult]:
        """
        Fetch from all providers concurrently. Never raises.

        Args:
            provider_ids: Providers to call, in routing order
            query: The tracking query
            deadline: Optional overall budget in seconds. Calls still pending
                when it runs out are cancelled and reported as TIMEOUT.

        Returns:
            One RawResult per dispatched provider, in `provider_ids` order
        """
        tasks: dict[str, asyncio.Task] = {}
        for provider_id in provider_ids:
            provider = self.providers.get(provider_id)
            if provider is None:
                logger.warning(f"No adapter registered for provider {provider_id}, skipping")
                continue
            tasks[provider_id] = asyncio.create_task(
                call_with_retry(
                    provider,
                    query,
                    base_delay=self.retry_base_delay,
                    max_delay=self.retry_max_delay,
                    sleep=self._sleep,
                ),
                name=f"fetch:{provider_id}:{query.tracking_number}",
            )

        if not tasks:
            return []

        logger.info(f"Fetching {query.tracking_number} from {len(tasks)} providers: {list(tasks)}")
        try:
            _, pending = await asyncio.wait(tasks.values(), timeout=deadline)
        except asyncio.CancelledError:
            for task in tasks.values():
                task.cancel()
            raise

        if pending:
            logger.warning(f"Deadline of {deadline}s reached, cancelling {len(pending)} pending provider calls")
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        results = [self._collect(provider_id, task, query) for provider_id, task in tasks.items()]

        for result in results:
            if result.ok:
                self.router.record_success(result.provider_id)
            else:
                self.router.record_failure(result.provider_id, result.error)

        succeeded = sum(1 for r in results if r.ok)
        logger.info(f"Fetched {query.tracking_number}: {succeeded}/{len(results)} providers succeeded")
        return results

    def _collect(self, provider_id: str, task: asyncio.Task, query: TrackingQuery) -> RawResult:
        if task.cancelled():
            return RawResult.failure(
                query.tracking_number,
                ProviderError(
                    kind=ProviderErrorKind.TIMEOUT,
                    provider_id=provider_id,
                    message="Cancelled by deadline",
                ),
            )

        if (exc := task.exception()) is not None:
            logger.opt(exception=exc).error(f"[{provider_id}] Fetch task failed")
            return RawResult.failure(
                query.tracking_number,
                ProviderError(
                    kind=ProviderErrorKind.INVALID_RESPONSE,
                    provider_id=provider_id,
                    message=f"Fetch task failed: {type(exc).__name__}",
                ),
            )

        return task.result()
