from typing import Any

import httpx

from common.config import config
from models.shipment import CanonicalFields, Container, RouteInfo, ServiceType, TimelineEvent, VesselInfo
from models.tracking import TrackingType
from services.providers.base import HttpTrackingProvider
from services.providers.catalog import get_profile
from services.providers.schemas import is_lcl, map_container_size, map_container_type
from services.shipsgo.schemas import ShipsGoEvent, ShipsGoTrackingResponse

STATUS_MAP = {
    "PLANNED": "Planned",
    "IN_TRANSIT": "In Transit",
    "DELIVERED": "Delivered",
    "DELAYED": "Delayed",
    "ON_HOLD": "On Hold",
    "CANCELLED": "Cancelled",
    "DEPARTED": "Departed",
    "ARRIVED": "Arrived",
    "LOADING": "Loading",
    "DISCHARGING": "Discharging",
}

EVENT_MAP = {
    "GATE_OUT": "Departed",
    "GATE_IN": "Arrived",
    "LOAD": "Loaded",
    "DISC": "Discharged",
    "DEPA": "Vessel Departed",
    "ARRI": "Vessel Arrived",
    "CREL": "Customs Released",
    "DLVR": "Delivered",
    "PICK": "Picked Up",
    "RETU": "Returned",
    "TMPS": "Transshipment",
    "STUF": "Stuffed",
    "STRP": "Stripped",
}


class ShipsGoClient(HttpTrackingProvider):
    """Multi-carrier container tracking via the ShipsGo aggregator."""

    def __init__(
        self,
        base_url: str = config.shipsgo_base_url,
        api_key=config.shipsgo_api_key,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(get_profile("shipsgo"), base_url=base_url, api_key=api_key, transport=transport)

    def endpoint(self, tracking_type: TrackingType) -> str:
        return "/booking" if tracking_type is TrackingType.BOOKING else "/container"

    def headers(self) -> dict[str, str]:
        return {**super().headers(), "X-API-Version": "2.0"}

    def parse(self, tracking_number: str, data: dict[str, Any]) -> CanonicalFields:
        response = ShipsGoTrackingResponse.model_validate(data)
        status = response.status or "Unknown"
        return CanonicalFields(
            carrier=response.carrier or "Unknown",
            service=ServiceType.LCL if is_lcl(response.service) else ServiceType.FCL,
            status=STATUS_MAP.get(status.upper(), status),
            timeline=[self._event(i, e) for i, e in enumerate(response.events)],
            containers=[
                Container(
                    number=c.container_number,
                    size=map_container_size(c.container_size),
                    type=map_container_type(c.container_type),
                    seal_number=c.seal_number,
                    weight=c.weight.value if c.weight else None,
                )
                for c in response.containers
            ]
            or None,
            vessel=(
                VesselInfo(
                    name=response.vessel.vessel_name,
                    imo=response.vessel.vessel_imo,
                    voyage=response.vessel.voyage_number,
                    current_position=(
                        response.vessel.current_position.to_latlng() if response.vessel.current_position else None
                    ),
                    eta=response.vessel.estimated_time_of_arrival,
                    ata=response.vessel.actual_time_of_arrival,
                )
                if response.vessel
                else None
            ),
            route=(
                RouteInfo(
                    origin=response.route.origin.to_port(),
                    destination=response.route.destination.to_port(),
                    intermediate_ports=[p.to_port() for p in response.route.intermediate_stops],
                )
                if response.route
                else None
            ),
        )

    def _event(self, index: int, event: ShipsGoEvent) -> TimelineEvent:
        return TimelineEvent(
            id=event.event_id or f"shipsgo-event-{index}",
            timestamp=event.event_date_time,
            status=EVENT_MAP.get(event.event_code.upper(), event.event_code),
            location=event.location.format(),
            description=event.event_description,
            is_completed=event.is_completed,
            coordinates=event.location.coordinates.to_latlng() if event.location.coordinates else None,
        )
