"""
HTTP endpoint tests: page policies, redirects and error mapping.
"""
import pytest
from fastapi.testclient import TestClient

from app.client import get_cache_client
from app.main import VIEW_AS_COOKIE, app
from conftest import sig


@pytest.fixture
def api(client, seeded):
    """TestClient whose pages read from the seeded in-memory source."""
    app.dependency_overrides[get_cache_client] = lambda: client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health_endpoint_returns_ok(api):
    """Test that /health returns status: ok"""
    response = api.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_version_endpoint(api):
    response = api.get("/version")
    assert response.json()["name"] == "Diskuto View"


def test_root_redirects_to_home(api):
    response = api.get("/", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "/home"


def test_root_redirects_viewer_to_feed(api):
    api.cookies.set(VIEW_AS_COOKIE, "UserC")
    response = api.get("/", follow_redirects=False)
    assert response.headers["location"] == "/u/UserC/feed"


def test_home_page(api):
    """Test that /home returns the newest page with an Older cursor"""
    data = api.get("/home").json()
    assert data["title"] == "Home Page"
    assert len(data["items"]) == 10
    assert data["items"][0]["timestamp_ms_utc"] == 15000
    assert data["items"][0]["author"] == {"display_name": "Alice", "is_id": False}
    assert data["pagination"] == {"before": 6000, "after": None}
    assert data["end"] is False


def test_home_page_past_the_end(api):
    data = api.get("/home?before=1000").json()
    assert data["items"] == []
    assert data["end"] is True
    assert data["pagination"]["after"] == 999


def test_home_page_nothing_newer_redirects(api):
    """Paging newer past the newest item falls back to the unbounded page"""
    response = api.get("/home?after=15000", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "/home"


def test_user_posts(api):
    data = api.get("/u/UserA").json()
    assert data["title"] == "Alice: Posts"
    assert len(data["items"]) == 15


def test_user_feed_for_user_without_profile(api):
    data = api.get("/u/UserC/feed?before=3000").json()
    assert data["title"] == "UserC: Feed"
    assert [i["timestamp_ms_utc"] for i in data["items"]] == [2000, 1000]


def test_user_feed_nothing_newer_redirects(api):
    response = api.get("/u/UserC/feed?after=15000", follow_redirects=False)
    assert response.status_code == 307
    assert response.headers["location"] == "/u/UserC/feed"


def test_invalid_user_id_is_400(api):
    response = api.get("/u/Not0Valid")
    assert response.status_code == 400
    assert "Invalid user id" in response.json()["detail"]


def test_view_item_with_comments(api):
    data = api.get(f"/u/UserA/i/{sig(15000)}").json()
    assert data["title"] == "Alice: Post"
    assert data["item"]["title"] == "Post 15000"
    assert len(data["comments"]) == 1
    reply = data["comments"][0]
    assert reply["text"] == "Nice!"
    assert reply["reply_to"]["display_name"] == "Alice"


def test_view_missing_item_is_404(api):
    response = api.get(f"/u/UserA/i/{sig(123)}")
    assert response.status_code == 404


def test_item_fragment(api):
    data = api.get("/x/item", params={"u": "UserA", "s": str(sig(1000))}).json()
    assert data["item"]["timestamp_ms_utc"] == 1000
    assert data["editable"] is False


def test_item_fragment_editable_by_author(api):
    api.cookies.set(VIEW_AS_COOKIE, "UserA")
    data = api.get("/x/item", params={"u": "UserA", "s": str(sig(1000))}).json()
    assert data["editable"] is True


def test_profile(api):
    data = api.get("/u/UserA/profile").json()
    assert data["title"] == "Alice: Profile"
    assert data["about"] == "Hi"
    assert data["editable"] is False


def test_missing_profile_is_404(api):
    response = api.get("/u/UserC/profile")
    assert response.status_code == 404


def test_own_profile_skips_cache(api, seeded):
    from conftest import ALICE, profile

    api.get("/u/UserA/profile")
    seeded.put_item(ALICE, sig("pA2"), profile(2, "Alice L."), on_homepage=False)

    assert api.get("/u/UserA/profile").json()["display_name"] == "Alice"

    api.cookies.set(VIEW_AS_COOKIE, "UserA")
    data = api.get("/u/UserA/profile").json()
    assert data["display_name"] == "Alice L."
    assert data["editable"] is True


def test_cache_stats(api):
    api.get("/home")
    stats = api.get("/cache/stats").json()
    assert stats["items"]["entries"] == 10
    assert "profiles" in stats
