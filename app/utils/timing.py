"""
Scoped timing for slow operations.
"""
import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

_default_logger = logging.getLogger("timing")


@contextmanager
def timed(label: str, logger: Optional[logging.Logger] = None) -> Iterator[None]:
    """
    Log how long the body of a ``with`` block took, even if it raised.

    Usage:
        with timed("load_home_page", logger):
            ...
    """
    log = logger or _default_logger
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        log.debug(f"{label} took {elapsed_ms:.1f}ms")
