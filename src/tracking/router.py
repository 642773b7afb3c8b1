"""
Provider router.

Scores every provider that supports the query's tracking type and returns
them best first. The score blends reliability, cost, a bonus for the
carrier detected from the tracking number format, a tier bonus and a
decaying penalty for providers the caller reports as recently failed.
"""

import re
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import NamedTuple

from common.config import config
from common.logging import get_logger
from models.provider import ProviderError, ProviderProfile
from models.tracking import RoutingContext, TrackingQuery, UserTier
from tracking.schemas import CarrierDetection, RoutingDecision, RoutingStrategy

logger = get_logger(__name__)

FAILURE_PENALTY = 30.0
HEURISTIC_THRESHOLD = 0.5


class CarrierRule(NamedTuple):
    carrier: str | None
    pattern: re.Pattern
    confidence: float
    priority: int


CARRIER_RULES = [
    CarrierRule("maersk", re.compile(r"^MAEU\d{7}$"), 0.95, 1),
    CarrierRule("maersk", re.compile(r"^MSKU\d{7}$"), 0.90, 2),
    CarrierRule("msc", re.compile(r"^MSCU\d{7}$"), 0.95, 1),
    CarrierRule("msc", re.compile(r"^MEDU\d{7}$"), 0.85, 2),
    CarrierRule("cma-cgm", re.compile(r"^CMAU\d{7}$"), 0.95, 1),
    CarrierRule("cma-cgm", re.compile(r"^CGMU\d{7}$"), 0.90, 2),
    CarrierRule("cosco", re.compile(r"^COSU\d{7}$"), 0.95, 1),
    CarrierRule("cosco", re.compile(r"^CXDU\d{7}$"), 0.85, 2),
    CarrierRule("hapag-lloyd", re.compile(r"^HLXU\d{7}$"), 0.95, 1),
    CarrierRule("hapag-lloyd", re.compile(r"^HPLU\d{7}$"), 0.85, 2),
    CarrierRule("evergreen", re.compile(r"^EGLV\d{7}$"), 0.95, 1),
    CarrierRule("evergreen", re.compile(r"^EGHU\d{7}$"), 0.85, 2),
    CarrierRule("one-line", re.compile(r"^ONEU\d{7}$"), 0.95, 1),
    CarrierRule("yang-ming", re.compile(r"^YMLU\d{7}$"), 0.95, 1),
    CarrierRule("zim", re.compile(r"^ZIMU\d{7}$"), 0.95, 1),
    # Any ISO 6346 container number
    CarrierRule(None, re.compile(r"^[A-Z]{4}\d{7}$"), 0.30, 10),
]

# 3-letter prefix -> (carrier, confidence), used when no rule is confident
PREFIX_HEURISTICS = {
    "MAE": ("maersk", 0.60),
    "MSK": ("maersk", 0.55),
    "MSC": ("msc", 0.60),
    "CMA": ("cma-cgm", 0.60),
    "CGM": ("cma-cgm", 0.55),
    "COS": ("cosco", 0.60),
    "HAP": ("hapag-lloyd", 0.55),
    "HLL": ("hapag-lloyd", 0.55),
    "EVG": ("evergreen", 0.55),
    "EGL": ("evergreen", 0.60),
    "ONE": ("one-line", 0.60),
    "YML": ("yang-ming", 0.60),
    "ZIM": ("zim", 0.60),
}


def detect_carrier(tracking_number: str) -> CarrierDetection:
    """Guess the carrier from the tracking number format."""
    number = tracking_number.strip().upper()

    best: CarrierRule | None = None
    for rule in CARRIER_RULES:
        if not rule.pattern.match(number):
            continue
        if best is None or (rule.confidence, -rule.priority) > (best.confidence, -best.priority):
            best = rule

    detection = CarrierDetection(carrier=best.carrier, confidence=best.confidence) if best else CarrierDetection()

    if detection.confidence < HEURISTIC_THRESHOLD and number[:3] in PREFIX_HEURISTICS:
        carrier, confidence = PREFIX_HEURISTICS[number[:3]]
        if confidence > detection.confidence:
            detection = CarrierDetection(carrier=carrier, confidence=confidence)

    return detection


class ProviderHealth:
    """Recent failure history of one provider, guarded by its own lock."""

    def __init__(self, provider_id: str):
        self.provider_id = provider_id
        self.recent_failure_count = 0
        self.last_failure_at: datetime | None = None
        self.last_error: ProviderError | None = None
        self.total_successes = 0
        self.total_failures = 0
        self._lock = threading.Lock()

    def _expire(self, now: datetime, quiet_period: float) -> None:
        if self.last_failure_at and (now - self.last_failure_at).total_seconds() > quiet_period:
            self.recent_failure_count = 0

    def record_success(self, now: datetime, quiet_period: float) -> None:
        with self._lock:
            self._expire(now, quiet_period)
            self.recent_failure_count //= 2
            self.total_successes += 1

    def record_failure(self, now: datetime, quiet_period: float, error: ProviderError | None = None) -> None:
        with self._lock:
            self._expire(now, quiet_period)
            self.recent_failure_count += 1
            self.last_failure_at = now
            self.last_error = error
            self.total_failures += 1

    def snapshot(self, now: datetime, quiet_period: float) -> dict:
        with self._lock:
            self._expire(now, quiet_period)
            return {
                "recent_failure_count": self.recent_failure_count,
                "last_failure_at": self.last_failure_at,
                "last_error": self.last_error.kind.value if self.last_error else None,
                "total_successes": self.total_successes,
                "total_failures": self.total_failures,
            }


class ProviderRouter:
    """Orders providers for a query. Output depends only on its inputs and failure history."""

    def __init__(
        self,
        profiles: list[ProviderProfile],
        failure_quiet_period: float = config.failure_quiet_period,
        failure_penalty_window_hours: float = config.failure_penalty_window_hours,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        self.profiles = {p.id: p for p in profiles}
        self.failure_quiet_period = failure_quiet_period
        self.penalty_window_seconds = failure_penalty_window_hours * 3600
        self._clock = clock
        self._health = {p.id: ProviderHealth(p.id) for p in profiles}

    def select_order(self, query: TrackingQuery, context: RoutingContext | None = None) -> RoutingDecision:
        context = context or RoutingContext()
        detection = detect_carrier(query.tracking_number)

        candidates = [p for p in self.profiles.values() if p.supports(query.tracking_type)]
        scores = {p.id: round(self._score(p, context, detection), 4) for p in candidates}
        ordered = sorted(scores, key=lambda pid: (-scores[pid], pid))

        decision = RoutingDecision(
            providers=ordered,
            strategy=self._strategy(context),
            detected_carrier=detection.carrier,
            confidence=detection.confidence,
            scores=scores,
            reasoning=self._reasoning(context, detection, ordered),
        )
        logger.info(
            f"Routing {query.tracking_number} ({query.tracking_type.value}): "
            f"{decision.strategy.value} -> {ordered}"
        )
        return decision

    def record_success(self, provider_id: str) -> None:
        if health := self._health.get(provider_id):
            health.record_success(self._clock(), self.failure_quiet_period)

    def record_failure(self, provider_id: str, error: ProviderError | None = None) -> None:
        if health := self._health.get(provider_id):
            health.record_failure(self._clock(), self.failure_quiet_period, error)

    def provider_stats(self) -> dict[str, dict]:
        """Static profile plus failure history, per provider."""
        now = self._clock()
        return {
            pid: {
                "name": profile.name or pid,
                "tier": profile.tier.value,
                "cost_units": profile.cost_units,
                "base_reliability": profile.base_reliability,
                "supported_tracking_types": sorted(t.value for t in profile.supported_tracking_types),
                **self._health[pid].snapshot(now, self.failure_quiet_period),
            }
            for pid, profile in self.profiles.items()
        }

    # Scoring

    def _score(self, profile: ProviderProfile, context: RoutingContext, detection: CarrierDetection) -> float:
        reliability = profile.base_reliability
        cost = profile.cost_units

        score = 100 * reliability
        if context.is_cost_optimizing:
            score += max(0, 200 - 2 * cost)
        else:
            score += max(0, 100 - cost)

        if detection.carrier == profile.id:
            score += detection.confidence * 50

        if context.user_tier is UserTier.FREE and cost == 0:
            score += 100
        elif context.user_tier in (UserTier.PREMIUM, UserTier.ENTERPRISE):
            score += 20 * reliability

        if profile.id in context.previous_failures:
            score -= self._failure_penalty(profile.id)

        return max(0.0, score)

    def _failure_penalty(self, provider_id: str) -> float:
        """Full penalty right after a recorded failure, fading to zero over the penalty window."""
        health = self._health.get(provider_id)
        last_failure_at = health.last_failure_at if health else None
        if last_failure_at is None:
            return 0.0
        if self.penalty_window_seconds <= 0:
            return FAILURE_PENALTY

        elapsed = (self._clock() - last_failure_at).total_seconds()
        remaining = 1 - min(max(elapsed, 0.0), self.penalty_window_seconds) / self.penalty_window_seconds
        return FAILURE_PENALTY * remaining

    @staticmethod
    def _strategy(context: RoutingContext) -> RoutingStrategy:
        # Cost optimisation takes precedence over reliability optimisation
        if context.is_cost_optimizing:
            return RoutingStrategy.FREE_FIRST
        if context.is_reliability_optimizing:
            return RoutingStrategy.RELIABILITY_FIRST
        return RoutingStrategy.PAID_FIRST

    def _reasoning(self, context: RoutingContext, detection: CarrierDetection, ordered: list[str]) -> str:
        reasons = []
        if detection.carrier and detection.confidence > 0.7:
            reasons.append(
                f"Detected {detection.carrier.upper()} container format ({round(detection.confidence * 100)}% confidence)"
            )
        if context.is_cost_optimizing:
            reasons.append("Prioritizing cost-effective APIs")
        elif context.is_reliability_optimizing:
            reasons.append("Prioritizing high-reliability providers")
        if context.previous_failures:
            reasons.append(f"Avoiding recently failed providers: {', '.join(context.previous_failures)}")
        if ordered:
            top = self.profiles[ordered[0]]
            cost = "free" if top.cost_units == 0 else f"{top.cost_units}¢"
            reasons.append(f"Top choice: {top.id} ({cost}, {round(top.base_reliability * 100)}% reliable)")
        return "; ".join(reasons)
