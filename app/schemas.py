"""
Pydantic schemas for API responses.
Maps the client's dataclasses into the JSON shapes the UI consumes.
"""
from pydantic import BaseModel
from typing import Dict, List, Optional

from app.client.pagination import PaginationOut
from app.content.models import (
    Comment,
    DisplayName,
    EnrichedItem,
    Post,
    Profile,
    ProfileInfo,
)


# ===== USER SCHEMAS =====

class DisplayNameOut(BaseModel):
    """Name to render for a user"""
    display_name: str
    is_id: bool

    @classmethod
    def from_display_name(cls, name: DisplayName) -> "DisplayNameOut":
        return cls(display_name=name.display_name, is_id=name.is_id)


# ===== ITEM SCHEMAS =====

class ReplyToOut(BaseModel):
    """Target of a comment"""
    user_id: str
    signature: str
    display_name: Optional[str] = None


class ItemOut(BaseModel):
    """An enriched item, with only the fields of its own type filled in"""
    user_id: str
    signature: str
    item_type: str
    timestamp_ms_utc: int
    utc_offset_minutes: int
    author: DisplayNameOut
    title: Optional[str] = None
    body: Optional[str] = None
    text: Optional[str] = None
    about: Optional[str] = None
    reply_to: Optional[ReplyToOut] = None

    @classmethod
    def from_enriched(cls, enriched: EnrichedItem) -> "ItemOut":
        item = enriched.item
        payload = item.payload
        fields: Dict[str, Optional[str]] = {}
        if isinstance(payload, Post):
            fields = {"title": payload.title, "body": payload.body}
        elif isinstance(payload, Comment):
            fields = {"text": payload.text}
        elif isinstance(payload, Profile):
            fields = {"title": payload.display_name, "about": payload.about}

        reply_to = None
        if enriched.reply_to is not None:
            reply_to = ReplyToOut(
                user_id=str(enriched.reply_to.user_id),
                signature=str(enriched.reply_to.signature),
                display_name=enriched.reply_to.display_name,
            )

        return cls(
            user_id=str(enriched.user_id),
            signature=str(enriched.signature),
            item_type=item.item_type.value,
            timestamp_ms_utc=item.timestamp_ms_utc,
            utc_offset_minutes=item.utc_offset_minutes,
            author=DisplayNameOut.from_display_name(enriched.author_name),
            reply_to=reply_to,
            **fields,
        )


# ===== PAGE SCHEMAS =====

class PaginationSchema(BaseModel):
    """Cursors for the Newer/Older links; missing means no link"""
    before: Optional[int] = None
    after: Optional[int] = None

    @classmethod
    def from_cursor(cls, cursor: PaginationOut) -> "PaginationSchema":
        return cls(before=cursor.before, after=cursor.after)


class PageOut(BaseModel):
    """A paginated list of items"""
    title: str
    items: List[ItemOut]
    pagination: PaginationSchema
    end: bool = False  # Paged past the oldest item


class ItemPageOut(BaseModel):
    """A single item and its comments"""
    title: str
    item: ItemOut
    comments: List[ItemOut]


class ItemFragmentOut(BaseModel):
    """A single item, as requested by an in-page refresh"""
    item: ItemOut
    editable: bool = False


class ProfileOut(BaseModel):
    """A user's profile page"""
    title: str
    user_id: str
    signature: str
    display_name: str
    about: str
    servers: List[str]
    follows: List[str]
    editable: bool = False

    @classmethod
    def from_profile(cls, info: ProfileInfo, editable: bool) -> "ProfileOut":
        name = DisplayName.resolve(info.user_id, info.profile.display_name)
        return cls(
            title=f"{name.display_name}: Profile",
            user_id=str(info.user_id),
            signature=str(info.signature),
            display_name=name.display_name,
            about=info.profile.about,
            servers=list(info.profile.servers),
            follows=[str(u) for u in info.profile.follows],
            editable=editable,
        )
