import asyncio
from datetime import UTC, datetime
from unittest.mock import AsyncMock

import pytest

from common.errors import ProviderCallError
from models.provider import ProviderError, ProviderProfile, ProviderTier, RawResult
from models.shipment import CanonicalFields, TimelineEvent
from models.tracking import TrackingType
from pipeline.orchestrator import TrackingPipeline
from services.providers.base import TrackingProvider
from tracking.cache import AdaptiveCache
from tracking.fetcher import FetchOrchestrator
from tracking.merge import MergeEngine
from tracking.router import ProviderRouter


class FakeProvider(TrackingProvider):
    """
    Provider that replays scripted outcomes, one per call.

    An outcome is CanonicalFields (success), a ProviderError (raised as
    ProviderCallError, or returned as a failed RawResult with
    `return_errors`) or any other exception (raised as is). The last
    outcome repeats once the script runs out.
    """

    def __init__(self, profile: ProviderProfile, outcomes=None, delay: float = 0.0, return_errors: bool = False):
        super().__init__(profile)
        self.outcomes = list(outcomes or [])
        self.delay = delay
        self.return_errors = return_errors
        self.calls = 0

    async def fetch(self, tracking_number: str, tracking_type: TrackingType) -> RawResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)

        outcome = self.outcomes[min(self.calls, len(self.outcomes)) - 1] if self.outcomes else None
        if outcome is None:
            outcome = CanonicalFields(carrier=self.id, status="In Transit")
        if isinstance(outcome, ProviderError):
            if self.return_errors:
                return RawResult.failure(tracking_number, outcome)
            raise ProviderCallError(outcome)
        if isinstance(outcome, Exception):
            raise outcome
        return RawResult.success(self.id, tracking_number, outcome, self.profile.base_reliability)


@pytest.fixture
def make_profile():
    """Factory for provider profiles with sensible test defaults."""

    def _make(provider_id: str, reliability: float = 0.8, cost: int = 10, **kwargs) -> ProviderProfile:
        kwargs.setdefault("tier", ProviderTier.AGGREGATOR)
        kwargs.setdefault("timeout_seconds", 5.0)
        return ProviderProfile(id=provider_id, base_reliability=reliability, cost_units=cost, **kwargs)

    return _make


@pytest.fixture
def make_provider(make_profile):
    """Factory for FakeProvider instances."""

    def _make(
        provider_id: str, outcomes=None, delay: float = 0.0, return_errors: bool = False, **profile_kwargs
    ) -> FakeProvider:
        return FakeProvider(
            make_profile(provider_id, **profile_kwargs), outcomes=outcomes, delay=delay, return_errors=return_errors
        )

    return _make


@pytest.fixture
def make_fields():
    """Factory for CanonicalFields with a timeline of (status, location, timestamp) tuples."""

    def _make(carrier: str = "Maersk", status: str = "In Transit", events=()) -> CanonicalFields:
        return CanonicalFields(
            carrier=carrier,
            status=status,
            timeline=[
                TimelineEvent(id=f"{carrier}-{i}", status=s, location=loc, timestamp=ts)
                for i, (s, loc, ts) in enumerate(events)
            ],
        )

    return _make


@pytest.fixture
def no_sleep():
    """Backoff sleep that returns immediately and records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_pipeline(no_sleep, clock):
    """Build a pipeline around the given providers, with a fake clock and no backoff sleeps."""

    def _make(providers, cache: AdaptiveCache | None = None, **kwargs) -> TrackingPipeline:
        profiles = [p.describe() for p in providers]
        router = ProviderRouter(profiles)
        return TrackingPipeline(
            cache=cache if cache is not None else AdaptiveCache(clock=clock),
            router=router,
            fetcher=FetchOrchestrator(providers, router, sleep=no_sleep),
            merger=MergeEngine([p.id for p in profiles]),
            **kwargs,
        )

    return _make
