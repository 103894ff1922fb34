"""
Content source interface and in-memory implementation.

The source pattern lets the aggregation layer run against the real Diskuto
API client or against an in-process store without changing the caching
and pagination code above it.
"""
import asyncio
from typing import AsyncIterator, Dict, Iterable, List, Optional, Protocol, Set, Tuple

from .models import (
    Comment,
    Item,
    ItemListEntry,
    ItemType,
    ProfileResult,
    Signature,
    UserID,
)


class ContentSource(Protocol):
    """
    Read operations of a Diskuto server.

    Streams are newest first. When ``after`` is given they instead start
    just after that timestamp and run oldest first. Callers stop consuming
    whenever they have enough.
    """

    async def get_item(self, user_id: UserID, signature: Signature) -> Optional[Item]:
        """Point lookup. None when the server has no such item."""
        ...

    async def get_profile(self, user_id: UserID) -> Optional[ProfileResult]:
        """Latest profile item for a user, or None."""
        ...

    def get_homepage_items(
        self, before: Optional[int] = None, after: Optional[int] = None
    ) -> AsyncIterator[ItemListEntry]:
        """Items from users the server hosts."""
        ...

    def get_user_feed_items(
        self, user_id: UserID, before: Optional[int] = None, after: Optional[int] = None
    ) -> AsyncIterator[ItemListEntry]:
        """Items from users that user_id follows."""
        ...

    def get_user_items(
        self, user_id: UserID, before: Optional[int] = None, after: Optional[int] = None
    ) -> AsyncIterator[ItemListEntry]:
        """Items authored by user_id."""
        ...

    def get_reply_items(
        self, user_id: UserID, signature: Signature
    ) -> AsyncIterator[ItemListEntry]:
        """Comments replying to an item, oldest first."""
        ...


class InMemoryContentSource:
    """
    ContentSource backed by dicts.

    Used for local development and tests. ``latency`` (seconds) is slept on
    every point lookup so concurrency behavior can be observed.
    """

    def __init__(self, latency: float = 0.0):
        self._items: Dict[Tuple[UserID, Signature], Item] = {}
        self._profiles: Dict[UserID, Tuple[Item, Signature]] = {}
        self._follows: Dict[UserID, Set[UserID]] = {}
        self._homepage_users: Set[UserID] = set()
        self.latency = latency
        self.item_latency: Dict[Signature, float] = {}
        self.calls: Dict[str, int] = {"get_item": 0, "get_profile": 0}

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def put_item(
        self,
        user_id: UserID,
        signature: Signature,
        item: Item,
        on_homepage: bool = True,
    ) -> ItemListEntry:
        """Store an item. Profile items also become the user's current profile."""
        self._items[(user_id, signature)] = item
        if item.item_type == ItemType.PROFILE:
            current = self._profiles.get(user_id)
            if current is None or current[0].timestamp_ms_utc <= item.timestamp_ms_utc:
                self._profiles[user_id] = (item, signature)
        if on_homepage:
            self._homepage_users.add(user_id)
        return ItemListEntry(user_id, signature, item.timestamp_ms_utc, item.item_type)

    def put_raw_profile(self, user_id: UserID, signature: Signature, item: Item) -> None:
        """Force the profile slot to hold ``item``, whatever its type."""
        self._profiles[user_id] = (item, signature)

    def follow(self, follower: UserID, *followed: UserID) -> None:
        self._follows.setdefault(follower, set()).update(followed)

    # ------------------------------------------------------------------
    # ContentSource
    # ------------------------------------------------------------------

    async def get_item(self, user_id: UserID, signature: Signature) -> Optional[Item]:
        self.calls["get_item"] += 1
        await self._sleep(self.item_latency.get(signature, self.latency))
        return self._items.get((user_id, signature))

    async def get_profile(self, user_id: UserID) -> Optional[ProfileResult]:
        self.calls["get_profile"] += 1
        await self._sleep(self.latency)
        found = self._profiles.get(user_id)
        if found is None:
            return None
        item, signature = found
        return ProfileResult(item=item, signature=signature)

    def get_homepage_items(
        self, before: Optional[int] = None, after: Optional[int] = None
    ) -> AsyncIterator[ItemListEntry]:
        return self._stream(
            lambda uid, item: uid in self._homepage_users,
            before,
            after,
        )

    def get_user_feed_items(
        self, user_id: UserID, before: Optional[int] = None, after: Optional[int] = None
    ) -> AsyncIterator[ItemListEntry]:
        followed = self._follows.get(user_id, set())
        return self._stream(lambda uid, item: uid in followed, before, after)

    def get_user_items(
        self, user_id: UserID, before: Optional[int] = None, after: Optional[int] = None
    ) -> AsyncIterator[ItemListEntry]:
        return self._stream(lambda uid, item: uid == user_id, before, after)

    async def get_reply_items(
        self, user_id: UserID, signature: Signature
    ) -> AsyncIterator[ItemListEntry]:
        target = (user_id, signature)
        replies = [
            self._entry(uid, sig, item)
            for (uid, sig), item in self._items.items()
            if isinstance(item.payload, Comment)
            and (item.payload.reply_to.user_id, item.payload.reply_to.signature) == target
        ]
        replies.sort(key=lambda e: e.timestamp_ms_utc)
        for entry in replies:
            yield entry

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _stream(self, include, before: Optional[int], after: Optional[int]):
        entries: List[ItemListEntry] = [
            self._entry(uid, sig, item)
            for (uid, sig), item in self._items.items()
            if item.item_type != ItemType.PROFILE and include(uid, item)
        ]
        if after is not None:
            selected: Iterable[ItemListEntry] = sorted(
                (e for e in entries if e.timestamp_ms_utc > after),
                key=lambda e: e.timestamp_ms_utc,
            )
        else:
            selected = sorted(
                (e for e in entries if before is None or e.timestamp_ms_utc < before),
                key=lambda e: e.timestamp_ms_utc,
                reverse=True,
            )
        for entry in selected:
            yield entry

    @staticmethod
    def _entry(user_id: UserID, signature: Signature, item: Item) -> ItemListEntry:
        return ItemListEntry(user_id, signature, item.timestamp_ms_utc, item.item_type)

    @staticmethod
    async def _sleep(seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)
