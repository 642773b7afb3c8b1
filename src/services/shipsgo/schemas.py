from datetime import datetime

from pydantic import Field

from services.providers.schemas import ApiCoordinates, ApiLocation, ApiModel, ApiPort, ApiWeight


class ShipsGoEvent(ApiModel):
    event_id: str | None = Field(None, alias="eventId")
    event_date_time: datetime = Field(alias="eventDateTime")
    event_code: str = Field(alias="eventCode")
    event_description: str | None = Field(None, alias="eventDescription")
    location: ApiLocation = Field(default_factory=ApiLocation)
    is_completed: bool = Field(False, alias="isCompleted")


class ShipsGoContainer(ApiModel):
    container_number: str = Field(alias="containerNumber")
    container_size: str = Field("", alias="containerSize")
    container_type: str = Field("", alias="containerType")
    seal_number: str | None = Field(None, alias="sealNumber")
    weight: ApiWeight | None = None


class ShipsGoVessel(ApiModel):
    vessel_name: str = Field(alias="vesselName")
    vessel_imo: str | None = Field(None, alias="vesselIMO")
    voyage_number: str | None = Field(None, alias="voyageNumber")
    current_position: ApiCoordinates | None = Field(None, alias="currentPosition")
    estimated_time_of_arrival: datetime | None = Field(None, alias="estimatedTimeOfArrival")
    actual_time_of_arrival: datetime | None = Field(None, alias="actualTimeOfArrival")


class ShipsGoRoute(ApiModel):
    origin: ApiPort
    destination: ApiPort
    intermediate_stops: list[ApiPort] = Field(default_factory=list, alias="intermediateStops")


class ShipsGoTrackingResponse(ApiModel):
    """ShipsGo v2 tracking response (multi-carrier aggregator)."""

    tracking_number: str | None = Field(None, alias="trackingNumber")
    status: str | None = None
    carrier: str | None = None
    service: str | None = None
    events: list[ShipsGoEvent] = Field(default_factory=list)
    containers: list[ShipsGoContainer] = Field(default_factory=list)
    vessel: ShipsGoVessel | None = None
    route: ShipsGoRoute | None = None
    aggregated_from: list[str] = Field(default_factory=list, alias="aggregatedFrom")
