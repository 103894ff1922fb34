"""
Capacity and TTL policies for the item and profile caches.
"""
from dataclasses import dataclass
from typing import Optional

from config.settings import settings


@dataclass(frozen=True)
class CachePolicy:
    """
    How a KeyedCache bounds and ages its entries.

    Attributes:
        max_entries: LRU capacity; least recently used entries go first
        ttl_seconds: Age after which an entry is stale (None = never)
        allow_stale: Serve stale entries while refreshing in the background
    """
    max_entries: int
    ttl_seconds: Optional[float] = None
    allow_stale: bool = False

    def __post_init__(self):
        if self.max_entries < 1:
            raise ValueError(f"max_entries must be positive, got {self.max_entries}")
        if self.ttl_seconds is not None and self.ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {self.ttl_seconds}")


def item_cache_policy() -> CachePolicy:
    """Signed items are immutable: bounded by size only."""
    return CachePolicy(max_entries=settings.item_cache_max_entries)


def profile_cache_policy() -> CachePolicy:
    """Profiles can be edited: short TTL, stale served while refreshing."""
    return CachePolicy(
        max_entries=settings.profile_cache_max_entries,
        ttl_seconds=settings.profile_cache_ttl_seconds,
        allow_stale=True,
    )
