"""Provider-side models: static profiles, typed errors and raw results."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from models.shipment import CanonicalFields
from models.tracking import TrackingType


class ProviderTier(str, Enum):
    """Retry tier of a provider."""

    PRIMARY = "primary"  # ocean carriers
    AGGREGATOR = "aggregator"  # low-cost aggregators / vessel trackers

    @property
    def default_max_attempts(self) -> int:
        return 3 if self is ProviderTier.PRIMARY else 2


class ProviderProfile(BaseModel):
    """Static metadata declared once per provider."""

    id: str
    name: str | None = None
    tier: ProviderTier = ProviderTier.AGGREGATOR
    cost_units: int = Field(50, ge=0, description="Cost per request in cents")
    base_reliability: float = Field(0.5, ge=0.0, le=1.0)
    supported_tracking_types: frozenset[TrackingType] = frozenset(TrackingType)
    timeout_seconds: float = Field(10.0, gt=0, description="Per-call timeout")
    max_attempts: int | None = Field(None, ge=1, description="Overrides the tier default")

    def supports(self, tracking_type: TrackingType) -> bool:
        return tracking_type in self.supported_tracking_types

    @property
    def attempts(self) -> int:
        return self.max_attempts or self.tier.default_max_attempts


class ProviderErrorKind(str, Enum):
    """Closed taxonomy of provider failures."""

    RATE_LIMIT = "RATE_LIMIT"
    NOT_FOUND = "NOT_FOUND"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"

    @property
    def retryable(self) -> bool:
        """Whether another attempt against the same provider can succeed."""
        return self in (ProviderErrorKind.TIMEOUT, ProviderErrorKind.NETWORK_ERROR)


class ProviderError(BaseModel):
    """A normalized provider failure."""

    kind: ProviderErrorKind
    provider_id: str
    message: str = ""
    retry_after: int | None = Field(None, description="Seconds, RATE_LIMIT only")
    status_code: int | None = None

    @classmethod
    def rate_limit(cls, provider_id: str, retry_after: int | None = None, message: str = "") -> "ProviderError":
        return cls(
            kind=ProviderErrorKind.RATE_LIMIT,
            provider_id=provider_id,
            retry_after=retry_after,
            message=message or "Rate limit exceeded",
        )


class ResultOutcome(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class RawResult(BaseModel):
    """One provider's answer to one query (success or error)."""

    provider_id: str
    tracking_number: str
    payload: CanonicalFields | None = None
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    reliability: float = Field(0.0, ge=0.0, le=1.0)
    outcome: ResultOutcome
    error: ProviderError | None = None
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return self.outcome is ResultOutcome.SUCCESS and self.payload is not None

    @classmethod
    def success(
        cls,
        provider_id: str,
        tracking_number: str,
        payload: CanonicalFields,
        reliability: float,
        fetched_at: datetime | None = None,
    ) -> "RawResult":
        return cls(
            provider_id=provider_id,
            tracking_number=tracking_number,
            payload=payload,
            reliability=reliability,
            outcome=ResultOutcome.SUCCESS,
            fetched_at=fetched_at or datetime.now(UTC),
        )

    @classmethod
    def failure(cls, tracking_number: str, error: ProviderError, attempts: int = 1) -> "RawResult":
        return cls(
            provider_id=error.provider_id,
            tracking_number=tracking_number,
            outcome=ResultOutcome.ERROR,
            error=error,
            attempts=attempts,
        )
