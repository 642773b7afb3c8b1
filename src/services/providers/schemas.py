"""Wire fragments shared by carrier-style tracking APIs (camelCase JSON)."""

from pydantic import BaseModel, ConfigDict, Field

from models.shipment import LatLng, Port


class ApiModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ApiCoordinates(ApiModel):
    latitude: float
    longitude: float

    def to_latlng(self) -> LatLng:
        return LatLng(lat=self.latitude, lng=self.longitude)


class ApiLocation(ApiModel):
    location_name: str = Field("", alias="locationName")
    city: str | None = None
    country: str | None = None
    port_code: str | None = Field(None, alias="portCode")
    coordinates: ApiCoordinates | None = None

    def format(self) -> str:
        return ", ".join(part for part in (self.location_name, self.city, self.country) if part)


class ApiPort(ApiModel):
    port_code: str = Field(alias="portCode")
    port_name: str = Field(alias="portName")
    city: str | None = None
    country: str | None = None
    coordinates: ApiCoordinates | None = None

    def to_port(self) -> Port:
        return Port(
            code=self.port_code,
            name=self.port_name,
            city=self.city,
            country=self.country,
            coordinates=self.coordinates.to_latlng() if self.coordinates else None,
        )


class ApiWeight(ApiModel):
    value: float
    unit: str = "KG"


def map_container_size(size: str) -> str:
    if "20" in size:
        return "20ft"
    if "45" in size:
        return "45ft"
    return "40ft"


def map_container_type(container_type: str) -> str:
    lowered = container_type.lower()
    if "high" in lowered or "hc" in lowered:
        return "HC"
    if "reefer" in lowered or "rf" in lowered:
        return "RF"
    if "open" in lowered or "ot" in lowered:
        return "OT"
    return "GP"


def is_lcl(service: str | None) -> bool:
    lowered = (service or "").lower()
    return "lcl" in lowered or "less than container" in lowered
