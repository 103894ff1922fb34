"""
Diskuto View - Main FastAPI Application
Read-only JSON views of a Diskuto server, served from in-memory caches
"""
import logging
from typing import Optional

from fastapi import Cookie, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from app.client import CacheClient, PaginatedResults, PaginationIn, get_cache_client
from app.content.models import InvalidIdError, Signature, UserID
from app.schemas import (
    ItemFragmentOut,
    ItemOut,
    ItemPageOut,
    PageOut,
    PaginationSchema,
    ProfileOut,
)
from config.settings import settings

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger("main")

# Version tracking
APP_VERSION = "v0.3.0"
APP_NAME = "Diskuto View"

# Set by the login page; identifies (but does not authenticate) the viewer
VIEW_AS_COOKIE = "viewAs"

app = FastAPI(
    title=APP_NAME,
    description="Cached, paginated views of a Diskuto server",
    version=APP_VERSION,
)


@app.exception_handler(InvalidIdError)
async def invalid_id_handler(request: Request, exc: InvalidIdError):
    """Malformed ids in the URL are the client's fault."""
    return JSONResponse(status_code=400, content={"detail": str(exc)})


def _viewer(view_as: Optional[str]) -> Optional[UserID]:
    """Parse the viewAs cookie. A bad cookie is ignored, not an error."""
    if not view_as:
        return None
    try:
        return UserID.from_string(view_as)
    except InvalidIdError:
        logger.warning(f"Ignoring invalid {VIEW_AS_COOKIE} cookie: {view_as!r}")
        return None


def _page_response(request: Request, title: str, results: PaginatedResults, before, after):
    """
    Apply the empty-page policy shared by all paginated pages.

    - Nothing newer than ``after``: redirect to the unbounded page
    - Nothing older than ``before``: render the page flagged as the end
    """
    end = False
    if not results.items:
        if after is not None and before is None:
            # Tried to go "newer" past the previous page; just view this page.
            return RedirectResponse(request.url.path)
        if before is not None:
            end = True

    return PageOut(
        title=title,
        items=[ItemOut.from_enriched(i) for i in results.items],
        pagination=PaginationSchema.from_cursor(results.pagination),
        end=end,
    )


# =============================================================================
# SERVICE ENDPOINTS
# =============================================================================

@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "api_url": settings.api_url}


@app.get("/version")
def version_info():
    """Version information endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "full": f"{APP_NAME} {APP_VERSION}",
    }


@app.get("/cache/stats")
def cache_stats(client: CacheClient = Depends(get_cache_client)):
    """Get cache statistics."""
    return client.get_stats()


# =============================================================================
# PAGES
# =============================================================================

@app.get("/")
def home_redirect(view_as: Optional[str] = Cookie(None, alias=VIEW_AS_COOKIE)):
    """Send users to their own feed if they've set the cookie, otherwise /home."""
    viewer = _viewer(view_as)
    if viewer is not None:
        return RedirectResponse(f"/u/{viewer}/feed")
    return RedirectResponse("/home")


@app.get("/home")
async def home_page(
    request: Request,
    before: Optional[int] = Query(None),
    after: Optional[int] = Query(None),
    client: CacheClient = Depends(get_cache_client),
):
    results = await client.load_home_page(PaginationIn(before=before, after=after))
    return _page_response(request, "Home Page", results, before, after)


@app.get("/u/{uid}")
async def user_posts(
    request: Request,
    uid: str,
    before: Optional[int] = Query(None),
    after: Optional[int] = Query(None),
    client: CacheClient = Depends(get_cache_client),
):
    user_id = UserID.from_string(uid)
    window = PaginationIn(before=before, after=after)
    results = await client.load_user_posts(user_id, window)
    name = await client.get_display_name(user_id)
    return _page_response(request, f"{name.display_name}: Posts", results, before, after)


@app.get("/u/{uid}/feed")
async def user_feed(
    request: Request,
    uid: str,
    before: Optional[int] = Query(None),
    after: Optional[int] = Query(None),
    client: CacheClient = Depends(get_cache_client),
):
    user_id = UserID.from_string(uid)
    window = PaginationIn(before=before, after=after)
    results = await client.load_user_feed(user_id, window)
    name = await client.get_display_name(user_id)
    return _page_response(request, f"{name.display_name}: Feed", results, before, after)


@app.get("/u/{uid}/profile", response_model=ProfileOut)
async def user_profile(
    uid: str,
    view_as: Optional[str] = Cookie(None, alias=VIEW_AS_COOKIE),
    client: CacheClient = Depends(get_cache_client),
):
    user_id = UserID.from_string(uid)
    viewing_own_profile = _viewer(view_as) == user_id

    # Viewing our own profile skips the cache; we may have just edited it.
    if viewing_own_profile:
        profile = await client.get_profile_uncached(user_id)
    else:
        profile = await client.get_profile(user_id)

    if profile is None:
        raise HTTPException(status_code=404, detail=f"No profile exists for userID {uid}")

    return ProfileOut.from_profile(profile, editable=viewing_own_profile)


@app.get("/u/{uid}/i/{sig}", response_model=ItemPageOut)
async def view_item(
    uid: str,
    sig: str,
    client: CacheClient = Depends(get_cache_client),
):
    """View a single item and its comments. (Usually a post.)"""
    user_id = UserID.from_string(uid)
    signature = Signature.from_string(sig)

    post = await client.get_item_plus(user_id, signature)
    if post is None:
        raise HTTPException(status_code=404, detail=f"Item not found: {uid}/{sig}")

    comments = await client.get_comments(user_id, signature)
    return ItemPageOut(
        title=f"{post.author_name.display_name}: Post",
        item=ItemOut.from_enriched(post),
        comments=[ItemOut.from_enriched(c) for c in comments],
    )


@app.get("/x/item", response_model=ItemFragmentOut)
async def item_fragment(
    u: str = Query(...),
    s: str = Query(...),
    view_as: Optional[str] = Cookie(None, alias=VIEW_AS_COOKIE),
    client: CacheClient = Depends(get_cache_client),
):
    """A single item, for partial page updates."""
    user_id = UserID.from_string(u)
    signature = Signature.from_string(s)

    post = await client.get_item_plus(user_id, signature)
    if post is None:
        raise HTTPException(status_code=404, detail=f"Item not found: {u}/{s}")

    return ItemFragmentOut(
        item=ItemOut.from_enriched(post),
        editable=_viewer(view_as) == user_id,
    )
