"""
Core cache data structures.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class CacheSentinel(Enum):
    """
    Marker stored in place of a value.

    NOT_FOUND means the upstream fetch definitively found nothing (or
    failed), which is different from the key being absent from the cache.
    """
    NOT_FOUND = "not_found"

    def __repr__(self) -> str:
        return f"<{self.name}>"


NOT_FOUND = CacheSentinel.NOT_FOUND


class CacheSource(Enum):
    """How a cache read was served."""
    FRESH = "fresh"       # Within TTL
    STALE = "stale"       # Past TTL, served while revalidating
    UPSTREAM = "upstream" # Fetched from the content source


@dataclass
class CacheEntry:
    """
    A cached value with the time it was stored.

    Times come from the owning cache's clock (monotonic seconds).
    """
    data: Any
    fetched_at: float
    ttl_seconds: Optional[float] = None

    def age_seconds(self, now: float) -> float:
        """Seconds since data was fetched."""
        return now - self.fetched_at

    def is_fresh(self, now: float) -> bool:
        """Entries without a TTL never go stale."""
        if self.ttl_seconds is None:
            return True
        return self.age_seconds(now) < self.ttl_seconds

    @property
    def is_not_found(self) -> bool:
        return self.data is NOT_FOUND
