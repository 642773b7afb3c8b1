"""Builds the configured provider adapters, in declaration order."""

from collections.abc import Callable

from common.config import Config, config
from common.logging import get_logger
from services.maersk.client import MaerskClient
from services.providers.base import TrackingProvider
from services.shipsgo.client import ShipsGoClient

logger = get_logger(__name__)

# provider id -> (api key accessor, adapter factory)
ADAPTERS: dict[str, tuple[Callable[[Config], str], Callable[[Config], TrackingProvider]]] = {
    "maersk": (
        lambda c: c.maersk_api_key.get_secret_value(),
        lambda c: MaerskClient(base_url=c.maersk_base_url, api_key=c.maersk_api_key),
    ),
    "shipsgo": (
        lambda c: c.shipsgo_api_key.get_secret_value(),
        lambda c: ShipsGoClient(base_url=c.shipsgo_base_url, api_key=c.shipsgo_api_key),
    ),
}


def build_providers(settings: Config = config) -> list[TrackingProvider]:
    """Instantiate every adapter that has an API key configured."""
    providers: list[TrackingProvider] = []
    for provider_id, (api_key, factory) in ADAPTERS.items():
        if not api_key(settings):
            logger.warning(f"{provider_id} API key not configured, skipping provider")
            continue
        providers.append(factory(settings))

    logger.info(f"Initialized {len(providers)} tracking providers: {[p.id for p in providers]}")
    return providers
