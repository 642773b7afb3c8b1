from enum import Enum

from pydantic import BaseModel, Field

from common.errors import TrackingFailure
from models.shipment import Shipment
from models.tracking import TrackingType


class RoutingStrategy(str, Enum):
    FREE_FIRST = "free_first"
    RELIABILITY_FIRST = "reliability_first"
    PAID_FIRST = "paid_first"


class CarrierDetection(BaseModel):
    """Carrier guessed from the tracking number format."""

    carrier: str | None = None
    confidence: float = Field(0.0, ge=0.0, le=1.0)


class RoutingDecision(BaseModel):
    """Ordered provider list and how it was reached."""

    providers: list[str] = Field(default_factory=list, description="Dispatch order, best first")
    strategy: RoutingStrategy
    detected_carrier: str | None = None
    confidence: float = 0.0
    scores: dict[str, float] = Field(default_factory=dict)
    reasoning: str = ""


class TrackingResult(BaseModel):
    """Caller-facing answer for one query."""

    shipment: Shipment
    from_cache: bool = False
    stale: bool = False
    age_minutes: int | None = None
    data_age: str | None = Field(None, description="Human readable age, e.g. '3 hours'")
    warning: str | None = None
    strategy: RoutingStrategy | None = None
    providers: list[str] = Field(default_factory=list)


class BatchItem(BaseModel):
    """One entry of a batch response: either a result or a failure."""

    tracking_number: str
    tracking_type: TrackingType
    result: TrackingResult | None = None
    error: TrackingFailure | None = None


def _plural(value: int, unit: str) -> str:
    return f"{value} {unit}{'' if value == 1 else 's'}"


def format_data_age(age_minutes: int) -> str:
    """Format an age in minutes as 'just now', 'N minutes', 'N hours' or 'N days'."""
    if age_minutes < 1:
        return "just now"
    if age_minutes < 60:
        return _plural(age_minutes, "minute")
    if age_minutes < 24 * 60:
        return _plural(age_minutes // 60, "hour")
    return _plural(age_minutes // (24 * 60), "day")
