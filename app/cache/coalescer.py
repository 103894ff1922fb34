"""
Request coalescing to prevent duplicate upstream calls.

When multiple concurrent coroutines ask for the same key, only one
upstream call is made and all of them share the result.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Hashable

logger = logging.getLogger("cache.coalescer")


@dataclass
class InFlightRequest:
    """Tracks an in-progress upstream request."""
    task: "asyncio.Task[Any]"
    started_at: float = field(default_factory=time.monotonic)
    waiter_count: int = 0


class RequestCoalescer:
    """
    Ensures concurrent requests for the same key share one upstream call.

    Pattern:
    - First request for a key starts the fetch as a task
    - Later requests for the same key await that task
    - When the task completes, all waiters receive the same result
    - The key is registered before the first suspension point, so no other
      coroutine can observe a window where the key is fetched twice

    Waiters await the task through ``asyncio.shield``: a cancelled waiter
    never cancels the shared fetch.

    Usage:
        coalescer = RequestCoalescer()
        result = await coalescer.get_or_fetch(
            key="items:...",
            fetch_fn=lambda: source.get_item(user_id, signature),
        )
    """

    def __init__(self):
        self._in_flight: Dict[Hashable, InFlightRequest] = {}

    async def get_or_fetch(
        self,
        key: Hashable,
        fetch_fn: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Either join an existing in-flight request or start a new one.

        Args:
            key: Unique key for this request
            fetch_fn: Coroutine function to call if we need to fetch

        Returns:
            The fetched data (shared among all concurrent callers)

        Raises:
            Exception: Any error from fetch_fn is propagated to every waiter
        """
        return await asyncio.shield(self.begin(key, fetch_fn))

    def begin(
        self,
        key: Hashable,
        fetch_fn: Callable[[], Awaitable[Any]],
    ) -> "asyncio.Task[Any]":
        """
        Register interest in key and return the task fetching it.

        Runs without suspending, so check-and-register is atomic with
        respect to other coroutines.
        """
        in_flight = self._in_flight.get(key)
        if in_flight is not None:
            in_flight.waiter_count += 1
            logger.debug(
                f"Coalescing request for {key} (waiters: {in_flight.waiter_count})"
            )
            return in_flight.task

        logger.debug(f"Initiating fetch for {key}")
        task = asyncio.ensure_future(self._run(key, fetch_fn))
        self._in_flight[key] = InFlightRequest(task=task)
        return task

    async def _run(self, key: Hashable, fetch_fn: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await fetch_fn()
        finally:
            self._in_flight.pop(key, None)

    def is_in_flight(self, key: Hashable) -> bool:
        return key in self._in_flight

    @property
    def active_requests(self) -> int:
        """Number of currently in-flight requests."""
        return len(self._in_flight)

    def get_stats(self) -> Dict[str, Any]:
        """Get coalescer statistics."""
        return {
            "active_requests": len(self._in_flight),
            "active_keys": [str(k) for k in self._in_flight],
        }
