"""
Adaptive in-process shipment cache.

TTL is chosen from the shipment status when the entry is stored: delivered
or cancelled shipments rarely change and are kept for hours, moving ones
for minutes, anything else only briefly. Eviction is strict LRU. Expired
entries are hidden from `get` but stay readable through `get_stale` until
they are evicted or purged.
"""

import time
from collections import OrderedDict
from collections.abc import Callable

from pydantic import BaseModel

from common.config import config
from common.logging import get_logger
from models.shipment import Shipment
from models.tracking import TrackingType

logger = get_logger(__name__)

CacheKey = tuple[str, TrackingType]

TERMINAL_STATUSES = {"delivered", "cancelled", "canceled"}

ACTIVE_STATUSES = {
    "planned",
    "booked",
    "in transit",
    "departed",
    "arrived",
    "at port",
    "loading",
    "loaded",
    "discharging",
    "discharged",
    "delayed",
    "on hold",
    "customs",
    "customs released",
    "vessel departed",
    "vessel arrived",
    "gate in",
    "gate out",
    "picked up",
    "transshipment",
    "out for delivery",
}


def _normalize_status(status: str) -> str:
    return " ".join(status.replace("_", " ").replace("-", " ").lower().split())


class CacheEntry(BaseModel):
    key: CacheKey
    value: Shipment
    inserted_at: float
    ttl_seconds: float
    last_accessed_at: float
    hit_count: int = 0

    def expires_at(self) -> float:
        return self.inserted_at + self.ttl_seconds

    def is_expired(self, now: float) -> bool:
        return self.expires_at() < now

    def age_seconds(self, now: float) -> float:
        return max(0.0, now - self.inserted_at)


class AdaptiveCache:
    """Bounded LRU cache keyed by (tracking number, tracking type)."""

    def __init__(
        self,
        max_entries: int = config.cache_max_entries,
        ttl_terminal: float = config.cache_ttl_terminal,
        ttl_active: float = config.cache_ttl_active,
        ttl_default: float = config.cache_ttl_default,
        stale_retention: float = config.cache_stale_retention,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.ttl_terminal = ttl_terminal
        self.ttl_active = ttl_active
        self.ttl_default = ttl_default
        self.stale_retention = stale_retention
        self._clock = clock
        self._entries: OrderedDict[CacheKey, CacheEntry] = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._stale_hits = 0
        self._evictions = 0

    def ttl_for_status(self, status: str) -> float:
        normalized = _normalize_status(status)
        if normalized in TERMINAL_STATUSES:
            return self.ttl_terminal
        if normalized in ACTIVE_STATUSES:
            return self.ttl_active
        return self.ttl_default

    def now(self) -> float:
        return self._clock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries

    def get(self, key: CacheKey) -> CacheEntry | None:
        """Fresh entry for the key, or None. A hit refreshes recency, not the TTL."""
        now = self._clock()
        entry = self._entries.get(key)
        if entry is None or entry.is_expired(now):
            self._misses += 1
            return None

        entry.last_accessed_at = now
        entry.hit_count += 1
        self._entries.move_to_end(key)
        self._hits += 1
        logger.debug(f"Cache hit for {key[0]} ({key[1].value}), hit #{entry.hit_count}")
        return entry

    def get_stale(self, key: CacheKey) -> CacheEntry | None:
        """Entry for the key whether or not it has expired."""
        entry = self._entries.get(key)
        if entry is not None:
            self._stale_hits += 1
        return entry

    def put(self, key: CacheKey, shipment: Shipment) -> CacheEntry:
        now = self._clock()
        entry = CacheEntry(
            key=key,
            value=shipment,
            inserted_at=now,
            ttl_seconds=self.ttl_for_status(shipment.status),
            last_accessed_at=now,
        )
        self._entries[key] = entry
        self._entries.move_to_end(key)

        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Evicted least recently used entry {evicted[0]} ({evicted[1].value})")

        return entry

    def invalidate(self, key: CacheKey) -> bool:
        return self._entries.pop(key, None) is not None

    def purge_expired(self) -> int:
        """Drop entries that expired longer ago than the stale retention window."""
        now = self._clock()
        doomed = [k for k, e in self._entries.items() if e.expires_at() + self.stale_retention < now]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.info(f"Purged {len(doomed)} expired cache entries")
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> dict:
        now = self._clock()
        lookups = self._hits + self._misses
        return {
            "entries": len(self._entries),
            "expired_entries": sum(1 for e in self._entries.values() if e.is_expired(now)),
            "max_entries": self.max_entries,
            "hits": self._hits,
            "misses": self._misses,
            "stale_hits": self._stale_hits,
            "evictions": self._evictions,
            "hit_rate": round(self._hits / lookups, 4) if lookups else 0.0,
        }
