import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

CONTAINER_NUMBER_PATTERN = re.compile(r"^[A-Z]{4}\d{7}$")
TRACKING_NUMBER_CHARS = re.compile(r"^[A-Za-z0-9\-_]+$")

MIN_TRACKING_NUMBER_LENGTH = 3
MAX_TRACKING_NUMBER_LENGTH = 50


class TrackingType(str, Enum):
    """Kinds of identifiers a shipment can be tracked by."""

    CONTAINER = "container"
    BOOKING = "booking"
    BOL = "bol"


class UserTier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    ENTERPRISE = "enterprise"


def normalize_tracking_number(tracking_number: str) -> str:
    """Normalize tracking number (remove spaces, dashes, dots; uppercase)."""
    return re.sub(r"[\s\-\.]", "", tracking_number).upper()


def validate_tracking_number(tracking_number: str | None) -> str | None:
    """
    Validate a raw tracking number.

    Returns an error message, or None when the number is acceptable.
    """
    if tracking_number is None:
        return "Tracking number is required"

    cleaned = tracking_number.strip()
    if not cleaned:
        return "Tracking number cannot be empty"
    if len(cleaned) < MIN_TRACKING_NUMBER_LENGTH:
        return f"Tracking number must be at least {MIN_TRACKING_NUMBER_LENGTH} characters long"
    if len(cleaned) > MAX_TRACKING_NUMBER_LENGTH:
        return f"Tracking number cannot exceed {MAX_TRACKING_NUMBER_LENGTH} characters"
    if not TRACKING_NUMBER_CHARS.match(cleaned):
        return "Tracking number can only contain letters, numbers, hyphens, and underscores"
    return None


def detect_tracking_type(tracking_number: str) -> TrackingType:
    """Guess the tracking type when the caller did not give one."""
    if CONTAINER_NUMBER_PATTERN.match(normalize_tracking_number(tracking_number)):
        return TrackingType.CONTAINER
    return TrackingType.BOOKING


class TrackingQuery(BaseModel):
    """A single tracking request. Immutable."""

    model_config = ConfigDict(frozen=True)

    tracking_number: str
    tracking_type: TrackingType = TrackingType.CONTAINER
    force_refresh: bool = False

    @field_validator("tracking_number")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_tracking_number(value)

    @property
    def cache_key(self) -> tuple[str, TrackingType]:
        return (self.tracking_number, self.tracking_type)

    @classmethod
    def create(
        cls,
        tracking_number: str,
        tracking_type: TrackingType | str | None = None,
        force_refresh: bool = False,
    ) -> "TrackingQuery":
        """Build a query, detecting the tracking type when it is missing."""
        resolved = TrackingType(tracking_type) if tracking_type else detect_tracking_type(tracking_number)
        return cls(tracking_number=tracking_number, tracking_type=resolved, force_refresh=force_refresh)


class RoutingContext(BaseModel):
    """Caller preferences that influence provider ordering."""

    user_tier: UserTier | None = None
    cost_optimize: bool | None = None
    reliability_optimize: bool | None = None
    previous_failures: list[str] = Field(default_factory=list)

    @property
    def is_cost_optimizing(self) -> bool:
        # Explicit flag wins over the tier
        if self.cost_optimize is not None:
            return self.cost_optimize
        return self.user_tier is UserTier.FREE

    @property
    def is_reliability_optimizing(self) -> bool:
        if self.reliability_optimize is not None:
            return self.reliability_optimize
        return self.user_tier is UserTier.ENTERPRISE
