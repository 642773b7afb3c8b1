from typing import Any

import httpx

from common.config import config
from models.shipment import CanonicalFields, Container, RouteInfo, ServiceType, TimelineEvent, VesselInfo
from models.tracking import TrackingType
from services.maersk.schemas import MaerskContainer, MaerskEvent, MaerskTrackingResponse, MaerskVessel
from services.providers.base import HttpTrackingProvider
from services.providers.catalog import get_profile
from services.providers.schemas import is_lcl, map_container_size, map_container_type

STATUS_MAP = {
    "PLANNED": "Planned",
    "IN_PROGRESS": "In Transit",
    "COMPLETED": "Delivered",
    "DELAYED": "Delayed",
    "ON_HOLD": "On Hold",
    "CANCELLED": "Cancelled",
}

EVENT_MAP = {
    "GATE_OUT": "Departed",
    "GATE_IN": "Arrived",
    "LOADED": "Loaded",
    "DISCHARGED": "Discharged",
    "VESSEL_DEPARTURE": "Vessel Departed",
    "VESSEL_ARRIVAL": "Vessel Arrived",
    "CUSTOMS_RELEASE": "Customs Released",
    "DELIVERED": "Delivered",
}

ENDPOINTS = {
    TrackingType.CONTAINER: "/containers",
    TrackingType.BOOKING: "/bookings",
    TrackingType.BOL: "/bills-of-lading",
}


class MaerskClient(HttpTrackingProvider):
    """
    Maersk container, booking and bill-of-lading tracking.

    Example:
        client = MaerskClient()
        result = await client.fetch("MAEU1234567", TrackingType.CONTAINER)
    """

    def __init__(
        self,
        base_url: str = config.maersk_base_url,
        api_key=config.maersk_api_key,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(get_profile("maersk"), base_url=base_url, api_key=api_key, transport=transport)

    def endpoint(self, tracking_type: TrackingType) -> str:
        return ENDPOINTS.get(tracking_type, "/containers")

    def parse(self, tracking_number: str, data: dict[str, Any]) -> CanonicalFields:
        response = MaerskTrackingResponse.model_validate(data)
        return CanonicalFields(
            carrier="Maersk",
            service=ServiceType.LCL if is_lcl(response.service) else ServiceType.FCL,
            status=STATUS_MAP.get(response.status.upper(), response.status),
            timeline=[self._event(i, e) for i, e in enumerate(response.events)],
            containers=[self._container(c) for c in response.containers] or None,
            vessel=self._vessel(response.vessel),
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

    # Private

    def _event(self, index: int, event: MaerskEvent) -> TimelineEvent:
        return TimelineEvent(
            id=event.event_id or f"maersk-event-{index}",
            timestamp=event.event_date_time,
            status=EVENT_MAP.get(event.event_type.upper(), event.event_type.replace("_", " ")),
            location=event.location.format(),
            description=event.event_description or event.event_type,
            is_completed=event.is_completed,
            coordinates=event.location.coordinates.to_latlng() if event.location.coordinates else None,
        )

    def _container(self, container: MaerskContainer) -> Container:
        return Container(
            number=container.container_number,
            size=map_container_size(container.container_size),
            type=map_container_type(container.container_type),
            seal_number=container.seal_number,
            weight=container.weight.value if container.weight else None,
        )

    def _vessel(self, vessel: MaerskVessel | None) -> VesselInfo | None:
        if vessel is None:
            return None
        return VesselInfo(
            name=vessel.vessel_name,
            imo=vessel.vessel_imo,
            voyage=vessel.voyage_number,
            current_position=vessel.current_position.to_latlng() if vessel.current_position else None,
            eta=vessel.estimated_time_of_arrival,
            ata=vessel.actual_time_of_arrival,
        )
