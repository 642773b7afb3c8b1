"""Canonical shipment models shared by every provider adapter."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from models.tracking import TrackingType


class ServiceType(str, Enum):
    FCL = "FCL"
    LCL = "LCL"


class LatLng(BaseModel):
    lat: float
    lng: float


class TimelineEvent(BaseModel):
    """A single milestone in a shipment's history."""

    id: str
    timestamp: datetime
    status: str
    location: str = ""
    description: str | None = None
    is_completed: bool = False
    coordinates: LatLng | None = None


class Container(BaseModel):
    number: str
    size: str | None = Field(None, description="20ft | 40ft | 45ft")
    type: str | None = Field(None, description="GP | HC | RF | OT")
    seal_number: str | None = None
    weight: float | None = None


class VesselInfo(BaseModel):
    name: str
    imo: str | None = None
    voyage: str | None = None
    current_position: LatLng | None = None
    eta: datetime | None = None
    ata: datetime | None = None


class Port(BaseModel):
    code: str
    name: str
    city: str | None = None
    country: str | None = None
    coordinates: LatLng | None = None


class RouteInfo(BaseModel):
    origin: Port
    destination: Port
    intermediate_ports: list[Port] = Field(default_factory=list)


class CanonicalFields(BaseModel):
    """The provider-agnostic shape every adapter produces."""

    carrier: str
    service: ServiceType = ServiceType.FCL
    status: str = "Unknown"
    timeline: list[TimelineEvent] = Field(default_factory=list)
    containers: list[Container] | None = None
    vessel: VesselInfo | None = None
    route: RouteInfo | None = None


class Shipment(BaseModel):
    """Merged, canonical shipment record."""

    tracking_number: str
    tracking_type: TrackingType
    carrier: str
    service: ServiceType
    status: str
    timeline: list[TimelineEvent] = Field(default_factory=list)
    containers: list[Container] | None = None
    vessel: VesselInfo | None = None
    route: RouteInfo | None = None
    data_source: str = Field(description="Provider whose answer won the merge")
    reliability: float = Field(ge=0.0, le=1.0)
    last_updated: datetime
