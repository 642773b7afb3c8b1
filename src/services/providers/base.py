"""
Provider adapter contract.

Every adapter implements `describe()` (static profile, read once at startup)
and `fetch()` (one call, no retries). Retries, timeouts and scoring are the
core's job, not the adapter's.
"""

from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import SecretStr

from common.errors import ProviderCallError
from common.http_errors import normalize_http_errors
from common.logging import get_logger
from models.provider import ProviderError, ProviderErrorKind, ProviderProfile, RawResult
from models.shipment import CanonicalFields
from models.tracking import TrackingType

logger = get_logger(__name__)

USER_AGENT = "ShipmentTracker/1.0"


class TrackingProvider(ABC):
    """A single external tracking data source."""

    def __init__(self, profile: ProviderProfile):
        self.profile = profile

    @property
    def id(self) -> str:
        return self.profile.id

    def describe(self) -> ProviderProfile:
        return self.profile

    @abstractmethod
    async def fetch(self, tracking_number: str, tracking_type: TrackingType) -> RawResult:
        """Fetch once. Errors may be returned as a failed RawResult or raised as `ProviderCallError`."""


class HttpTrackingProvider(TrackingProvider):
    """
    Base for JSON-over-HTTP adapters.

    Subclasses declare the endpoint per tracking type and translate the
    provider's payload into `CanonicalFields`.

    Example:
        class AcmeProvider(HttpTrackingProvider):
            def endpoint(self, tracking_type): return "/containers"
            def parse(self, tracking_number, data): return CanonicalFields(...)
    """

    def __init__(
        self,
        profile: ProviderProfile,
        base_url: str,
        api_key: SecretStr | str,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(profile)
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key.get_secret_value() if isinstance(api_key, SecretStr) else api_key
        self._transport = transport

    @abstractmethod
    def endpoint(self, tracking_type: TrackingType) -> str: ...

    @abstractmethod
    def parse(self, tracking_number: str, data: dict[str, Any]) -> CanonicalFields: ...

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    def params(self, tracking_number: str) -> dict[str, Any]:
        return {
            "trackingNumber": tracking_number,
            "includeEvents": "true",
            "includeContainers": "true",
            "includeVessel": "true",
            "includeRoute": "true",
        }

    async def fetch(self, tracking_number: str, tracking_type: TrackingType) -> RawResult:
        if not self.api_key:
            raise ProviderCallError(
                ProviderError(
                    kind=ProviderErrorKind.AUTH_ERROR,
                    provider_id=self.id,
                    message=f"{self.id} API key not configured",
                )
            )

        logger.debug(f"[{self.id}] GET {self.endpoint(tracking_type)} for {tracking_number}")
        with normalize_http_errors(self.id):
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers(),
                timeout=self.profile.timeout_seconds,
                transport=self._transport,
            ) as client:
                resp = await client.get(self.endpoint(tracking_type), params=self.params(tracking_number))
                resp.raise_for_status()
                data = resp.json()

            if not isinstance(data, dict):
                raise ValueError(f"Expected JSON object, got {type(data).__name__}")
            payload = self.parse(tracking_number, data)

        return RawResult.success(
            provider_id=self.id,
            tracking_number=tracking_number,
            payload=payload,
            reliability=self.profile.base_reliability,
        )
