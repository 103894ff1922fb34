"""
Shared fixtures: an in-memory content source and a CacheClient over it.
"""
import pytest

from app.client import CacheClient
from app.content.models import (
    Comment,
    Item,
    ItemRef,
    Post,
    Profile,
    Signature,
    UserID,
)
from app.content.source import InMemoryContentSource


ALICE = UserID.from_string("UserA")
BOB = UserID.from_string("UserB")
CAROL = UserID.from_string("UserC")  # Never writes a profile


def sig(n) -> Signature:
    """Deterministic signature for test item n. ('0' is not base58.)"""
    return Signature.from_string("Sig" + str(n).replace("0", "z"))


def post(ts: int, title: str = "", body: str = "") -> Item:
    return Item(timestamp_ms_utc=ts, payload=Post(title=title or f"Post {ts}", body=body))


def comment(ts: int, text: str, user_id: UserID, signature: Signature) -> Item:
    return Item(timestamp_ms_utc=ts, payload=Comment(text=text, reply_to=ItemRef(user_id, signature)))


def profile(ts: int, display_name: str, about: str = "") -> Item:
    return Item(timestamp_ms_utc=ts, payload=Profile(display_name=display_name, about=about))


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def source():
    return InMemoryContentSource()


@pytest.fixture
def client(source):
    return CacheClient(source)


@pytest.fixture
def seeded(source):
    """
    Alice and Bob have profiles, Carol doesn't.

    Alice posts at 1000..15000 (every 1000ms). Bob comments on Alice's
    newest post. Carol follows Alice.
    """
    source.put_item(ALICE, sig("pA"), profile(1, "  Alice  ", about="Hi"), on_homepage=False)
    source.put_item(BOB, sig("pB"), profile(1, "Bob"), on_homepage=False)
    for ts in range(1000, 16000, 1000):
        source.put_item(ALICE, sig(ts), post(ts))
    source.put_item(BOB, sig("c1"), comment(20000, "Nice!", ALICE, sig(15000)), on_homepage=False)
    source.follow(CAROL, ALICE)
    return source
