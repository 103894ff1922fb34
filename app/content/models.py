"""
Data models for Diskuto content.

These dataclasses represent the canonical shape of signed items as handed
to us by a content source. All of them are frozen: a signed item never
changes once it exists, so neither do our copies of it.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


_BASE58_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]+$")


class InvalidIdError(ValueError):
    """Raised when a user id or signature string is not valid base58."""


def _check_base58(kind: str, text: str) -> str:
    if not isinstance(text, str) or not _BASE58_RE.match(text):
        raise InvalidIdError(f"Invalid {kind}: {text!r}")
    return text


@dataclass(frozen=True)
class UserID:
    """A user's public key, as base58 text."""
    base58: str

    @classmethod
    def from_string(cls, text: str) -> "UserID":
        return cls(_check_base58("user id", text))

    def __str__(self) -> str:
        return self.base58


@dataclass(frozen=True)
class Signature:
    """Signature of a single item, as base58 text."""
    base58: str

    @classmethod
    def from_string(cls, text: str) -> "Signature":
        return cls(_check_base58("signature", text))

    def __str__(self) -> str:
        return self.base58


class ItemType(Enum):
    """Discriminant of an item's payload."""
    POST = "post"
    COMMENT = "comment"
    PROFILE = "profile"


@dataclass(frozen=True)
class ItemRef:
    """Points at another item by author and signature."""
    user_id: UserID
    signature: Signature


@dataclass(frozen=True)
class Post:
    title: str = ""
    body: str = ""


@dataclass(frozen=True)
class Comment:
    text: str
    reply_to: ItemRef


@dataclass(frozen=True)
class Profile:
    display_name: str = ""
    about: str = ""
    servers: Tuple[str, ...] = ()
    follows: Tuple[UserID, ...] = ()


Payload = Union[Post, Comment, Profile]

_PAYLOAD_TYPES = {
    Post: ItemType.POST,
    Comment: ItemType.COMMENT,
    Profile: ItemType.PROFILE,
}


@dataclass(frozen=True)
class Item:
    """A deserialized signed item."""
    timestamp_ms_utc: int
    payload: Payload
    utc_offset_minutes: int = 0

    @property
    def item_type(self) -> ItemType:
        return _PAYLOAD_TYPES[type(self.payload)]


@dataclass(frozen=True)
class ItemListEntry:
    """One entry in an item stream: enough to look the item up."""
    user_id: UserID
    signature: Signature
    timestamp_ms_utc: int
    item_type: ItemType = ItemType.POST

    @property
    def cache_key(self) -> str:
        return f"{self.user_id}/{self.signature}"


@dataclass(frozen=True)
class ProfileResult:
    """What a content source returns for a profile lookup."""
    item: Item
    signature: Signature


# =============================================================================
# CACHED RECORDS
# =============================================================================

@dataclass(frozen=True)
class ItemInfo:
    """An item plus the key it was found under. Unit of the item cache."""
    item: Item
    user_id: UserID
    signature: Signature


@dataclass(frozen=True)
class ProfileInfo:
    """A user's latest profile. Unit of the profile cache."""
    item: Item
    profile: Profile
    user_id: UserID
    signature: Signature


# =============================================================================
# ENRICHED VIEWS
# =============================================================================

@dataclass(frozen=True)
class DisplayName:
    """
    Name to show for a user.

    is_id is True when the user has no usable display name and we fell
    back to their id, so renderers can style it differently.
    """
    display_name: str
    is_id: bool

    @classmethod
    def resolve(cls, user_id: UserID, display_name: Optional[str]) -> "DisplayName":
        name = (display_name or "").strip()
        if name:
            return cls(display_name=name, is_id=False)
        return cls(display_name=str(user_id), is_id=True)


@dataclass(frozen=True)
class ReplyTo:
    """The item a comment replies to, with its author's name."""
    user_id: UserID
    signature: Signature
    display_name: Optional[str] = None


@dataclass(frozen=True)
class EnrichedItem:
    """An ItemInfo with display data merged in. Built per page load, never cached."""
    item: Item
    user_id: UserID
    signature: Signature
    display_name: Optional[str] = None
    reply_to: Optional[ReplyTo] = None

    @property
    def timestamp_ms_utc(self) -> int:
        return self.item.timestamp_ms_utc

    @property
    def author_name(self) -> DisplayName:
        return DisplayName.resolve(self.user_id, self.display_name)

