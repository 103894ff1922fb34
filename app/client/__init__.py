"""
Cached, enriched, paginated reads over a Diskuto content source.
"""
from .pagination import (
    PaginatedResults,
    PaginationIn,
    PaginationOut,
    compute_cursor,
    normalize_window,
)
from .enrichment import bounded_gather, collect_page
from .cache_client import CacheClient, configure_cache_client, get_cache_client

__all__ = [
    # Pagination
    "PaginationIn",
    "PaginationOut",
    "PaginatedResults",
    "normalize_window",
    "compute_cursor",
    # Enrichment
    "bounded_gather",
    "collect_page",
    # Client
    "CacheClient",
    "configure_cache_client",
    "get_cache_client",
]
