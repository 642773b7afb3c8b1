"""
Merge engine.

Reduces provider results into one `Shipment`. Every scalar field comes from
a single primary result. Only the timeline is combined across providers.
"""

from datetime import UTC, datetime, timedelta

from common.errors import AllFailedError, NoDataError
from common.logging import get_logger
from models.provider import RawResult
from models.shipment import Shipment, TimelineEvent
from models.tracking import TrackingType

logger = get_logger(__name__)


def _as_utc(timestamp: datetime) -> datetime:
    # Naive timestamps are taken to be UTC
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(UTC)


def _round_to_minute(timestamp: datetime) -> datetime:
    return (_as_utc(timestamp) + timedelta(seconds=30)).replace(second=0, microsecond=0)


def event_identity(event: TimelineEvent) -> tuple[str, str, datetime]:
    """Two events are the same milestone when status, location and minute agree."""
    return (event.status.strip().lower(), event.location.strip().lower(), _round_to_minute(event.timestamp))


def merge_timelines(timelines: list[list[TimelineEvent]]) -> list[TimelineEvent]:
    """
    Union of timelines, deduplicated, sorted by timestamp ascending.

    The first occurrence of a duplicate wins, so callers pass the primary
    provider's timeline first. Sorting is stable.
    """
    seen = set()
    merged = []
    for timeline in timelines:
        for event in timeline:
            identity = event_identity(event)
            if identity in seen:
                continue
            seen.add(identity)
            merged.append(event)
    return sorted(merged, key=lambda e: _as_utc(e.timestamp))


class MergeEngine:
    """Builds a canonical shipment from the successful provider results."""

    def __init__(self, provider_order: list[str] | None = None):
        # Declaration order breaks reliability ties
        self._rank = {pid: i for i, pid in enumerate(provider_order or [])}

    def rank(self, results: list[RawResult]) -> list[RawResult]:
        """Order results by reliability, then declaration order, then id."""
        unknown = len(self._rank)
        return sorted(
            results,
            key=lambda r: (-r.reliability, self._rank.get(r.provider_id, unknown), r.provider_id),
        )

    def merge(self, results: list[RawResult], tracking_type: TrackingType = TrackingType.CONTAINER) -> Shipment:
        """
        Merge results into one shipment.

        Raises:
            NoDataError: no results at all
            AllFailedError: every result is an error
        """
        if not results:
            raise NoDataError()

        successful = [r for r in results if r.ok]
        if not successful:
            raise AllFailedError([r.error for r in results if r.error is not None])

        ranked = self.rank(successful)
        primary = ranked[0]
        payload = primary.payload

        shipment = Shipment(
            tracking_number=primary.tracking_number,
            tracking_type=tracking_type,
            carrier=payload.carrier,
            service=payload.service,
            status=payload.status,
            timeline=merge_timelines([r.payload.timeline for r in ranked]),
            containers=payload.containers,
            vessel=payload.vessel,
            route=payload.route,
            data_source=primary.provider_id,
            reliability=primary.reliability,
            last_updated=primary.fetched_at,
        )

        logger.debug(
            f"Merged {len(successful)}/{len(results)} results for {shipment.tracking_number}, "
            f"primary={primary.provider_id}, {len(shipment.timeline)} events"
        )
        return shipment
