"""
Diskuto content: data models and the sources they are read from.
"""
from .models import (
    Comment,
    DisplayName,
    EnrichedItem,
    InvalidIdError,
    Item,
    ItemInfo,
    ItemListEntry,
    ItemRef,
    ItemType,
    Post,
    Profile,
    ProfileInfo,
    ProfileResult,
    ReplyTo,
    Signature,
    UserID,
)
from .source import ContentSource, InMemoryContentSource

__all__ = [
    # Ids
    "UserID",
    "Signature",
    "InvalidIdError",
    # Items
    "Item",
    "ItemType",
    "ItemRef",
    "ItemListEntry",
    "Post",
    "Comment",
    "Profile",
    "ProfileResult",
    # Records
    "ItemInfo",
    "ProfileInfo",
    "EnrichedItem",
    "ReplyTo",
    "DisplayName",
    # Sources
    "ContentSource",
    "InMemoryContentSource",
]
