"""
Keyed cache with LRU eviction, request coalescing, and stale-while-revalidate.
"""
import asyncio
import logging
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Hashable, Set

from .coalescer import RequestCoalescer
from .core import NOT_FOUND, CacheEntry, CacheSource
from .policies import CachePolicy

logger = logging.getLogger("cache.manager")


class KeyedCache:
    """
    In-memory cache that loads missing keys through one fetch method.

    - Fresh hits are served without touching the fetch method
    - Concurrent misses for one key share a single fetch (RequestCoalescer)
    - Capacity is bounded; least recently used entries are evicted
    - With a TTL and allow_stale, stale entries are served while one
      background task refreshes them
    - A fetch that raises or returns None is stored as NOT_FOUND, so reads
      never raise and missing keys are not refetched until they expire

    Values returned by ``fetch`` may be NOT_FOUND; callers unwrap it.
    """

    def __init__(
        self,
        name: str,
        fetch_method: Callable[[Hashable], Awaitable[Any]],
        policy: CachePolicy,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            name: Label used in logs and stats
            fetch_method: Coroutine function loading the value for a key
            policy: Capacity and TTL settings
            clock: Monotonic time source in seconds
        """
        self.name = name
        self._fetch_method = fetch_method
        self._policy = policy
        self._clock = clock
        self._entries: "OrderedDict[Hashable, CacheEntry]" = OrderedDict()
        self._coalescer = RequestCoalescer()

        # Background revalidation tasks, kept referenced until done
        self._revalidating: Set["asyncio.Task[Any]"] = set()

        self._stats = {
            "hits_fresh": 0,
            "hits_stale": 0,
            "misses": 0,
            "revalidations": 0,
            "evictions": 0,
            "failures": 0,
        }

    async def fetch(self, key: Hashable, force_refresh: bool = False) -> Any:
        """
        Get the value for key from cache, or load it.

        Args:
            key: Cache key, passed unchanged to the fetch method
            force_refresh: Ignore any stored entry and refetch

        Returns:
            The value, or NOT_FOUND
        """
        value, _ = await self.fetch_with_source(key, force_refresh=force_refresh)
        return value

    async def fetch_with_source(self, key: Hashable, force_refresh: bool = False):
        """Like fetch(), but also reports how the read was served."""
        if force_refresh:
            logger.info(f"FORCE REFRESH ({self.name}): {key}")
            self._stats["misses"] += 1
            return await self._load(key), CacheSource.UPSTREAM

        entry = self._entries.get(key)
        now = self._clock()

        if entry is None:
            logger.debug(f"CACHE MISS ({self.name}): {key}")
            self._stats["misses"] += 1
            return await self._load(key), CacheSource.UPSTREAM

        if entry.is_fresh(now):
            self._entries.move_to_end(key)
            self._stats["hits_fresh"] += 1
            return entry.data, CacheSource.FRESH

        if self._policy.allow_stale:
            logger.debug(
                f"CACHE HIT (stale, revalidating) ({self.name}): {key} "
                f"[age={entry.age_seconds(now):.1f}s]"
            )
            self._entries.move_to_end(key)
            self._stats["hits_stale"] += 1
            self._trigger_background_revalidate(key)
            return entry.data, CacheSource.STALE

        logger.debug(f"CACHE EXPIRED ({self.name}): {key}")
        self._stats["misses"] += 1
        return await self._load(key), CacheSource.UPSTREAM

    def _load(self, key: Hashable) -> Awaitable[Any]:
        return self._coalescer.get_or_fetch(key, lambda: self._fetch_and_store(key))

    async def _fetch_and_store(self, key: Hashable) -> Any:
        """Run the fetch method once. Never raises."""
        try:
            value = await self._fetch_method(key)
        except Exception:
            logger.exception(f"Fetch failed ({self.name}): {key}")
            self._stats["failures"] += 1
            value = NOT_FOUND
        if value is None:
            value = NOT_FOUND
        self._store(key, value)
        return value

    def _store(self, key: Hashable, value: Any) -> None:
        self._entries[key] = CacheEntry(
            data=value,
            fetched_at=self._clock(),
            ttl_seconds=self._policy.ttl_seconds,
        )
        self._entries.move_to_end(key)
        while len(self._entries) > self._policy.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            self._stats["evictions"] += 1
            logger.debug(f"Evicted ({self.name}): {evicted}")

    def _trigger_background_revalidate(self, key: Hashable) -> None:
        """Start a refresh without blocking. At most one per key."""
        if self._coalescer.is_in_flight(key):
            logger.debug(f"Already revalidating ({self.name}): {key}")
            return

        self._stats["revalidations"] += 1
        task = self._coalescer.begin(key, lambda: self._fetch_and_store(key))
        self._revalidating.add(task)
        task.add_done_callback(self._revalidating.discard)

    async def drain(self) -> None:
        """Wait for background refreshes to finish. Used on shutdown and in tests."""
        if self._revalidating:
            await asyncio.gather(*list(self._revalidating))

    def invalidate(self, key: Hashable) -> bool:
        """
        Drop a single entry.

        Returns:
            True if entry was found and removed
        """
        if self._entries.pop(key, None) is not None:
            logger.info(f"Invalidated ({self.name}): {key}")
            return True
        return False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total_hits = self._stats["hits_fresh"] + self._stats["hits_stale"]
        total_requests = total_hits + self._stats["misses"]
        hit_rate = (total_hits / total_requests * 100) if total_requests > 0 else 0

        return {
            "name": self.name,
            "entries": len(self._entries),
            "max_entries": self._policy.max_entries,
            "not_found_entries": sum(1 for e in self._entries.values() if e.is_not_found),
            **self._stats,
            "hit_rate_percent": round(hit_rate, 1),
            "coalescer": self._coalescer.get_stats(),
            "revalidating_count": len(self._revalidating),
        }

