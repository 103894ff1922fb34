"""
CacheClient: cached, enriched, paginated reads from a content source.

Wraps a ContentSource with two KeyedCaches:
- items, keyed by "<user_id>/<signature>" (immutable, LRU only)
- profiles, keyed by user id (TTL, served stale while refreshing)

and composes them into the page-level reads the web layer needs. No read
raises for missing data; callers get None. Malformed ids raise
InvalidIdError, which is the caller's to validate.
"""
import asyncio
import logging
from typing import Any, Dict, List, Optional

from app.cache import NOT_FOUND, KeyedCache, item_cache_policy, profile_cache_policy
from app.cache.policies import CachePolicy
from app.content.models import (
    Comment,
    DisplayName,
    EnrichedItem,
    ItemInfo,
    ItemListEntry,
    ItemType,
    ProfileInfo,
    ReplyTo,
    Signature,
    UserID,
)
from app.content.source import ContentSource, InMemoryContentSource
from app.utils.timing import timed
from config.settings import settings

from .enrichment import collect_page
from .pagination import PaginatedResults, PaginationIn, compute_cursor, normalize_window

logger = logging.getLogger("client.cache_client")


class CacheClient:
    """
    Wraps a ContentSource and provides caching and page-level helpers.

    The caches are private: every read goes through a method so the
    coalescing guarantees cannot be bypassed.
    """

    def __init__(
        self,
        source: ContentSource,
        item_policy: Optional[CachePolicy] = None,
        profile_policy: Optional[CachePolicy] = None,
        concurrency: Optional[int] = None,
        clock=None,
    ):
        self.inner = source
        self._concurrency = concurrency or settings.enrichment_concurrency
        clock_kwargs = {"clock": clock} if clock is not None else {}
        self._item_cache = KeyedCache(
            "items",
            self._fetch_item,
            item_policy or item_cache_policy(),
            **clock_kwargs,
        )
        self._profile_cache = KeyedCache(
            "profiles",
            self._fetch_profile,
            profile_policy or profile_cache_policy(),
            **clock_kwargs,
        )

    # ------------------------------------------------------------------
    # Fetch methods (called by the caches on a miss)
    # ------------------------------------------------------------------

    async def _fetch_item(self, key: str) -> Optional[ItemInfo]:
        user_part, _, sig_part = key.partition("/")
        user_id = UserID.from_string(user_part)
        signature = Signature.from_string(sig_part)
        item = await self.inner.get_item(user_id, signature)
        if item is None:
            return None
        return ItemInfo(item=item, user_id=user_id, signature=signature)

    async def _fetch_profile(self, key: str) -> Optional[ProfileInfo]:
        logger.info(f"Fetching profile: {key}")
        user_id = UserID.from_string(key)
        result = await self.inner.get_profile(user_id)
        if result is None:
            return None

        if result.item.item_type != ItemType.PROFILE:
            logger.error(
                f"Server returned non-profile item for user profile: {user_id} {result.signature}"
            )
            return None

        return ProfileInfo(
            item=result.item,
            profile=result.item.payload,
            user_id=user_id,
            signature=result.signature,
        )

    # ------------------------------------------------------------------
    # Single lookups
    # ------------------------------------------------------------------

    async def load_entry(self, entry: ItemListEntry) -> Optional[ItemInfo]:
        """Get an item from the cache, or fetch it, based on an ItemListEntry."""
        value = await self._item_cache.fetch(entry.cache_key)
        if value is NOT_FOUND:
            return None
        return value

    async def load_entry_plus(self, entry: ItemListEntry) -> Optional[EnrichedItem]:
        """load_entry(), plus the author's display name and reply target."""
        info, profile = await asyncio.gather(
            self.load_entry(entry),
            self.get_profile(entry.user_id),
        )
        if info is None:
            return None

        reply_to = None
        payload = info.item.payload
        if isinstance(payload, Comment):
            target = payload.reply_to
            target_profile = await self.get_profile(target.user_id)
            reply_to = ReplyTo(
                user_id=target.user_id,
                signature=target.signature,
                display_name=_profile_name(target_profile),
            )

        return EnrichedItem(
            item=info.item,
            user_id=info.user_id,
            signature=info.signature,
            display_name=_profile_name(profile),
            reply_to=reply_to,
        )

    async def get_item(self, user_id: UserID, signature: Signature) -> Optional[ItemInfo]:
        return await self.load_entry(ItemListEntry(user_id, signature, 0))

    async def get_item_plus(
        self, user_id: UserID, signature: Signature
    ) -> Optional[EnrichedItem]:
        return await self.load_entry_plus(ItemListEntry(user_id, signature, 0))

    async def get_profile(self, user_id: Optional[UserID]) -> Optional[ProfileInfo]:
        if user_id is None:
            return None
        value = await self._profile_cache.fetch(str(user_id))
        if value is NOT_FOUND:
            return None
        return value

    async def get_profile_uncached(self, user_id: UserID) -> Optional[ProfileInfo]:
        """
        Refetch a profile, replacing the cached copy.

        Used when the viewer is the profile's author and may have just
        edited it.
        """
        value = await self._profile_cache.fetch(str(user_id), force_refresh=True)
        if value is NOT_FOUND:
            return None
        return value

    async def get_display_name(self, user_id: UserID) -> DisplayName:
        profile = await self.get_profile(user_id)
        return DisplayName.resolve(user_id, _profile_name(profile))

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    async def load_home_page(self, window: Optional[PaginationIn] = None) -> PaginatedResults:
        window = normalize_window(window, settings.home_page_max_count)
        with timed("load_home_page", logger):
            stream = self.inner.get_homepage_items(before=window.before, after=window.after)
            items = await self._collect(stream, window.max_count)

        # "after" pages come back oldest first. The home page always reads
        # newest first; user feeds and posts keep the source order.
        if window.after is not None:
            items.reverse()

        return PaginatedResults(items=items, pagination=compute_cursor(items, window))

    async def load_user_feed(
        self, user_id: UserID, window: Optional[PaginationIn] = None
    ) -> PaginatedResults:
        window = normalize_window(window, settings.user_page_max_count)
        with timed(f"load_user_feed {user_id}", logger):
            stream = self.inner.get_user_feed_items(
                user_id, before=window.before, after=window.after
            )
            items = await self._collect(stream, window.max_count)
        return PaginatedResults(items=items, pagination=compute_cursor(items, window))

    async def load_user_posts(
        self, user_id: UserID, window: Optional[PaginationIn] = None
    ) -> PaginatedResults:
        window = normalize_window(window, settings.user_page_max_count)
        with timed(f"load_user_posts {user_id}", logger):
            stream = self.inner.get_user_items(user_id, before=window.before, after=window.after)
            items = await self._collect(stream, window.max_count)
        return PaginatedResults(items=items, pagination=compute_cursor(items, window))

    async def get_comments(
        self, user_id: UserID, signature: Signature, max_count: Optional[int] = None
    ) -> List[EnrichedItem]:
        """Comments on an item, oldest first."""
        with timed(f"get_comments {user_id}/{signature}", logger):
            stream = self.inner.get_reply_items(user_id, signature)
            return await self._collect(stream, max_count or settings.comments_max_count)

    async def _collect(self, stream, max_count: int) -> List[EnrichedItem]:
        return await collect_page(stream, self.load_entry_plus, max_count, self._concurrency)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def drain(self) -> None:
        """Wait for any background profile refreshes."""
        await self._item_cache.drain()
        await self._profile_cache.drain()

    def get_stats(self) -> Dict[str, Any]:
        return {
            "items": self._item_cache.get_stats(),
            "profiles": self._profile_cache.get_stats(),
        }


def _profile_name(profile: Optional[ProfileInfo]) -> Optional[str]:
    if profile is None:
        return None
    return profile.profile.display_name.strip() or None


# Global client instance
_cache_client: Optional[CacheClient] = None


def configure_cache_client(source: ContentSource) -> CacheClient:
    """Replace the global client with one reading from ``source``."""
    global _cache_client
    _cache_client = CacheClient(source)
    return _cache_client


def get_cache_client() -> CacheClient:
    """Get or create the global cache client."""
    global _cache_client
    if _cache_client is None:
        logger.warning("No content source configured; serving an empty in-memory store")
        _cache_client = CacheClient(InMemoryContentSource())
    return _cache_client
