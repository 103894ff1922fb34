"""
Unit tests for bounded, order-preserving enrichment.
"""
import asyncio

import pytest

from app.client.enrichment import bounded_gather, collect_page, take


class Tracker:
    """Enrichment function that records how many calls overlap."""

    def __init__(self, delays=None, missing=()):
        self.delays = delays or {}
        self.missing = set(missing)
        self.active = 0
        self.max_active = 0
        self.seen = []

    async def __call__(self, n):
        self.seen.append(n)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(n, 0.001))
        finally:
            self.active -= 1
        if n in self.missing:
            return None
        return f"item-{n}"


class CountingStream:
    """Async iterator over 0..n-1 that counts how far it was read."""

    def __init__(self, n):
        self.n = n
        self.pulled = 0
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self.pulled >= self.n:
            raise StopAsyncIteration
        self.pulled += 1
        return self.pulled - 1

    async def aclose(self):
        self.closed = True


class TestBoundedGather:
    async def test_output_order_matches_input_despite_latency(self):
        latencies_ms = [50, 10, 30, 5, 40]
        tracker = Tracker(delays={i: ms / 1000 for i, ms in enumerate(latencies_ms)})

        results = await bounded_gather(list(range(5)), tracker, concurrency=5)

        assert results == [f"item-{i}" for i in range(5)]
        assert tracker.max_active == 5

    async def test_never_exceeds_concurrency(self):
        tracker = Tracker()
        results = await bounded_gather(list(range(12)), tracker, concurrency=5)

        assert len(results) == 12
        assert tracker.max_active <= 5
        assert results == [f"item-{i}" for i in range(12)]

    async def test_empty_input(self):
        assert await bounded_gather([], Tracker(), concurrency=5) == []

    async def test_rejects_non_positive_concurrency(self):
        with pytest.raises(ValueError):
            await bounded_gather([1], Tracker(), concurrency=0)


class TestCollectPage:
    async def test_stops_at_max_count_without_overreading(self):
        stream = CountingStream(100)
        page = await collect_page(stream, Tracker(), max_count=7, concurrency=5)

        assert page == [f"item-{i}" for i in range(7)]
        assert stream.pulled == 7
        assert stream.closed

    async def test_holes_are_dropped_and_replaced(self):
        stream = CountingStream(100)
        tracker = Tracker(missing={1, 3})
        page = await collect_page(stream, tracker, max_count=5, concurrency=5)

        assert page == ["item-0", "item-2", "item-4", "item-5", "item-6"]

    async def test_short_stream(self):
        stream = CountingStream(3)
        page = await collect_page(stream, Tracker(), max_count=10, concurrency=5)

        assert page == ["item-0", "item-1", "item-2"]

    async def test_respects_concurrency(self):
        tracker = Tracker()
        await collect_page(CountingStream(30), tracker, max_count=30, concurrency=5)

        assert tracker.max_active <= 5
        assert tracker.seen == list(range(30))

    async def test_async_generator_stream(self):
        async def entries():
            for i in range(4):
                yield i

        page = await collect_page(entries(), Tracker(missing={0}), max_count=10, concurrency=2)
        assert page == ["item-1", "item-2", "item-3"]


async def test_take():
    stream = CountingStream(3)
    assert await take(stream, 2) == [0, 1]
    assert await take(stream, 2) == [2]
    assert await take(stream, 2) == []
