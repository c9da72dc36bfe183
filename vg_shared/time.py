"""
Time utilities for timestamps and performance measurement.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone


def now() -> float:
    """Get current timestamp in seconds (float)."""
    return time.time()


def format_timestamp(ts: float | None = None) -> str:
    """
    Format a timestamp as an ISO 8601 UTC string with milliseconds.

    Args:
        ts: Timestamp in seconds (default: now())

    Returns:
        ISO 8601 string (e.g., "2025-12-29T19:30:45.000Z")
    """
    if ts is None:
        ts = now()
    dt = datetime.fromtimestamp(ts, tz=timezone.utc)
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@contextmanager
def timer(label: str, logger: logging.Logger | None = None) -> Iterator[None]:
    """
    Context manager for timing operations.

    Usage:
        with timer("list /videos", logger):
            records = await catalog.list_display_records("/videos")
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        msg = f"{label} took {elapsed:.3f}s"
        if logger:
            logger.debug(msg)
        else:
            print(msg)
