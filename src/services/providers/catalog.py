"""Static profiles of the known tracking providers, in declaration order."""

from models.provider import ProviderProfile, ProviderTier
from models.tracking import TrackingType

ALL_TYPES = frozenset({TrackingType.CONTAINER, TrackingType.BOOKING, TrackingType.BOL})
NO_BOL = frozenset({TrackingType.CONTAINER, TrackingType.BOOKING})
CONTAINER_ONLY = frozenset({TrackingType.CONTAINER})

PROVIDER_PROFILES: list[ProviderProfile] = [
    # Ocean carriers
    ProviderProfile(id="maersk", name="Maersk", tier=ProviderTier.PRIMARY, cost_units=25, base_reliability=0.95, supported_tracking_types=ALL_TYPES, timeout_seconds=10),
    ProviderProfile(id="msc", name="MSC", tier=ProviderTier.PRIMARY, cost_units=20, base_reliability=0.88, supported_tracking_types=ALL_TYPES, timeout_seconds=12),
    ProviderProfile(id="cma-cgm", name="CMA CGM", tier=ProviderTier.PRIMARY, cost_units=22, base_reliability=0.85, supported_tracking_types=NO_BOL, timeout_seconds=9),
    ProviderProfile(id="cosco", name="COSCO", tier=ProviderTier.PRIMARY, cost_units=18, base_reliability=0.87, supported_tracking_types=ALL_TYPES, timeout_seconds=10),
    ProviderProfile(id="hapag-lloyd", name="Hapag-Lloyd", tier=ProviderTier.PRIMARY, cost_units=24, base_reliability=0.90, supported_tracking_types=NO_BOL, timeout_seconds=8),
    ProviderProfile(id="evergreen", name="Evergreen", tier=ProviderTier.PRIMARY, cost_units=20, base_reliability=0.84, supported_tracking_types=NO_BOL, timeout_seconds=9),
    ProviderProfile(id="one-line", name="Ocean Network Express", tier=ProviderTier.PRIMARY, cost_units=20, base_reliability=0.86, supported_tracking_types=NO_BOL, timeout_seconds=9),
    ProviderProfile(id="yang-ming", name="Yang Ming", tier=ProviderTier.PRIMARY, cost_units=18, base_reliability=0.82, supported_tracking_types=NO_BOL, timeout_seconds=8),
    ProviderProfile(id="zim", name="ZIM", tier=ProviderTier.PRIMARY, cost_units=15, base_reliability=0.80, supported_tracking_types=NO_BOL, timeout_seconds=8),
    # Container aggregators
    ProviderProfile(id="shipsgo", name="ShipsGo", tier=ProviderTier.AGGREGATOR, cost_units=5, base_reliability=0.88, supported_tracking_types=NO_BOL, timeout_seconds=8),
    ProviderProfile(id="searates", name="SeaRates", tier=ProviderTier.AGGREGATOR, cost_units=8, base_reliability=0.85, supported_tracking_types=NO_BOL, timeout_seconds=8),
    ProviderProfile(id="project44", name="project44", tier=ProviderTier.AGGREGATOR, cost_units=50, base_reliability=0.93, supported_tracking_types=ALL_TYPES, timeout_seconds=10, max_attempts=3),
    # Vessel trackers
    ProviderProfile(id="marine-traffic", name="MarineTraffic", tier=ProviderTier.AGGREGATOR, cost_units=30, base_reliability=0.70, supported_tracking_types=CONTAINER_ONLY, timeout_seconds=10),
    ProviderProfile(id="vessel-finder", name="VesselFinder", tier=ProviderTier.AGGREGATOR, cost_units=25, base_reliability=0.72, supported_tracking_types=CONTAINER_ONLY, timeout_seconds=8),
    # Free tracker
    ProviderProfile(id="track-trace", name="Track-Trace", tier=ProviderTier.AGGREGATOR, cost_units=0, base_reliability=0.68, supported_tracking_types=CONTAINER_ONLY, timeout_seconds=8),
]

PROFILES_BY_ID: dict[str, ProviderProfile] = {p.id: p for p in PROVIDER_PROFILES}


def get_profile(provider_id: str) -> ProviderProfile:
    try:
        return PROFILES_BY_ID[provider_id]
    except KeyError:
        available = ", ".join(PROFILES_BY_ID)
        raise ValueError(f"Unknown provider '{provider_id}'. Available providers: {available}") from None
