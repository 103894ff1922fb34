"""
In-memory caching with LRU bounds, request coalescing, and stale-while-revalidate.
"""
from .core import CacheEntry, CacheSentinel, CacheSource, NOT_FOUND
from .policies import CachePolicy, item_cache_policy, profile_cache_policy
from .coalescer import RequestCoalescer
from .manager import KeyedCache

__all__ = [
    # Core types
    "CacheEntry",
    "CacheSentinel",
    "CacheSource",
    "NOT_FOUND",
    # Policies
    "CachePolicy",
    "item_cache_policy",
    "profile_cache_policy",
    # Coalescing
    "RequestCoalescer",
    # Cache
    "KeyedCache",
]
