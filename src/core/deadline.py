"""Deadlines for bounded I/O calls.

A deadline is an absolute point in time expressed in milliseconds of the
monotonic clock, the same clock asyncio's default event loop uses. ``NEVER``
means the caller is willing to wait indefinitely.
"""
import time
from typing import Optional

NEVER: float = -1.0


def now() -> float:
    """Current monotonic time in milliseconds."""
    return time.monotonic() * 1000.0


def after(milliseconds: float) -> float:
    """Deadline ``milliseconds`` from now."""
    return now() + milliseconds


def is_never(deadline: float) -> bool:
    return deadline == NEVER


def remaining(deadline: float) -> Optional[float]:
    """Seconds left before ``deadline``, or None when it never expires.

    An expired deadline yields 0.0 rather than a negative value.
    """
    if is_never(deadline):
        return None
    return max(deadline - now(), 0.0) / 1000.0


def has_expired(deadline: float) -> bool:
    return not is_never(deadline) and now() >= deadline
