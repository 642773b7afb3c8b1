from datetime import datetime

from pydantic import Field

from services.providers.schemas import ApiCoordinates, ApiLocation, ApiModel, ApiPort, ApiWeight


class MaerskEvent(ApiModel):
    event_id: str | None = Field(None, alias="eventId")
    event_date_time: datetime = Field(alias="eventDateTime")
    event_type: str = Field(alias="eventType")
    event_description: str | None = Field(None, alias="eventDescription")
    location: ApiLocation = Field(default_factory=ApiLocation)
    is_completed: bool = Field(False, alias="isCompleted")


class MaerskContainer(ApiModel):
    container_number: str = Field(alias="containerNumber")
    container_size: str = Field("", alias="containerSize")
    container_type: str = Field("", alias="containerType")
    seal_number: str | None = Field(None, alias="sealNumber")
    weight: ApiWeight | None = None


class MaerskVessel(ApiModel):
    vessel_name: str = Field(alias="vesselName")
    vessel_imo: str | None = Field(None, alias="vesselIMO")
    voyage_number: str | None = Field(None, alias="voyageNumber")
    current_position: ApiCoordinates | None = Field(None, alias="currentPosition")
    estimated_time_of_arrival: datetime | None = Field(None, alias="estimatedTimeOfArrival")
    actual_time_of_arrival: datetime | None = Field(None, alias="actualTimeOfArrival")


class MaerskRoute(ApiModel):
    origin: ApiPort
    destination: ApiPort
    intermediate_stops: list[ApiPort] = Field(default_factory=list, alias="intermediateStops")


class MaerskTrackingResponse(ApiModel):
    """Maersk track API response."""

    tracking_number: str | None = Field(None, alias="trackingNumber")
    status: str = "Unknown"
    service: str | None = None
    events: list[MaerskEvent] = Field(default_factory=list)
    containers: list[MaerskContainer] = Field(default_factory=list)
    vessel: MaerskVessel | None = None
    route: MaerskRoute | None = None
