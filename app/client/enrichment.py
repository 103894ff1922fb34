"""
Bounded-concurrency, order-preserving fan-out for enrichment.
"""
import asyncio
import logging
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger("client.enrichment")

T = TypeVar("T")
R = TypeVar("R")


async def bounded_gather(
    items: Sequence[T],
    fn: Callable[[T], Awaitable[R]],
    concurrency: int,
) -> List[R]:
    """
    Apply ``fn`` to every item with at most ``concurrency`` calls in flight.

    A pool of workers pulls (index, item) pairs off a shared queue and
    writes each result into a pre-sized list at the item's index, so the
    output order matches the input order whatever order calls finish in.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be positive, got {concurrency}")

    results: List[Optional[R]] = [None] * len(items)
    pending = list(enumerate(items))
    pending.reverse()

    async def worker() -> None:
        while pending:
            index, item = pending.pop()
            results[index] = await fn(item)

    workers = min(concurrency, len(items))
    await asyncio.gather(*(worker() for _ in range(workers)))
    return results  # type: ignore[return-value]


async def take(stream: AsyncIterator[T], count: int) -> List[T]:
    """Pull up to ``count`` items off an async iterator."""
    taken: List[T] = []
    while len(taken) < count:
        try:
            taken.append(await stream.__anext__())
        except StopAsyncIteration:
            break
    return taken


async def collect_page(
    stream: AsyncIterator[T],
    enrich: Callable[[T], Awaitable[Optional[R]]],
    max_count: int,
    concurrency: int,
) -> List[R]:
    """
    Enrich entries from ``stream`` until ``max_count`` results or the end.

    Entries are pulled in batches no larger than ``concurrency`` and no
    larger than the number of results still needed. Entries that enrich to
    None are holes: dropped, and more entries are pulled to replace them.
    """
    page: List[R] = []
    holes = 0
    try:
        while len(page) < max_count:
            batch = await take(stream, min(concurrency, max_count - len(page)))
            if not batch:
                break
            for result in await bounded_gather(batch, enrich, concurrency):
                if result is None:
                    holes += 1
                else:
                    page.append(result)
    finally:
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            await aclose()

    if holes:
        logger.info(f"Skipped {holes} unresolved entries while collecting page")
    return page
