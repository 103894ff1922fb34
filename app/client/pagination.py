"""
Cursor pagination over reverse-chronological item streams.

Stateless: the caller hands us a window (before/after timestamps and a
page size), we query the stream with it, and we hand back the cursors for
the neighbouring pages. Timestamps are milliseconds since the Unix epoch.
"""
from dataclasses import dataclass, field, replace
from typing import List, Optional, Sequence

from app.content.models import EnrichedItem


@dataclass(frozen=True)
class PaginationIn:
    """
    A requested page.

    Attributes:
        before: Only items strictly older than this
        after: Only items strictly newer than this
        max_count: Page size; None means the page type's default
    """
    before: Optional[int] = None
    after: Optional[int] = None
    max_count: Optional[int] = None


@dataclass(frozen=True)
class PaginationOut:
    """Cursors for neighbouring pages. None means there is no page that way."""
    before: Optional[int] = None
    after: Optional[int] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in (("before", self.before), ("after", self.after)) if v is not None}


@dataclass
class PaginatedResults:
    """One page of enriched items and the cursors around it."""
    items: List[EnrichedItem] = field(default_factory=list)
    pagination: PaginationOut = field(default_factory=PaginationOut)


def normalize_window(window: Optional[PaginationIn], default_max_count: int) -> PaginationIn:
    """
    Resolve defaults and conflicts in a requested window.

    When both bounds are given, ``before`` wins and ``after`` is dropped:
    a reverse-chronological page from an older point is the default view.
    """
    window = window or PaginationIn()
    if window.before is not None and window.after is not None:
        window = replace(window, after=None)
    if window.max_count is None:
        window = replace(window, max_count=default_max_count)
    if window.max_count < 1:
        raise ValueError(f"max_count must be positive, got {window.max_count}")
    return window


def compute_cursor(items: Sequence[EnrichedItem], window: PaginationIn) -> PaginationOut:
    """
    Compute cursors for the pages around ``items``.

    ``window`` must already be normalized. The oldest and newest timestamps
    on the page are used, so the result does not depend on whether the page
    is displayed newest-first or oldest-first.
    """
    before = window.before
    after = window.after

    if not items:
        if before is not None:
            # Nothing older than ``before``; point just past the boundary.
            return PaginationOut(after=before - 1)
        if after is not None:
            return PaginationOut(before=after + 1)
        return PaginationOut()

    timestamps = [i.timestamp_ms_utc for i in items]
    oldest = min(timestamps)
    newest = max(timestamps)
    truncated = len(items) >= window.max_count

    out_before = None
    if truncated or after is not None:
        out_before = oldest

    out_after = None
    if before is not None or (truncated and after is not None):
        out_after = newest

    return PaginationOut(before=out_before, after=out_after)
