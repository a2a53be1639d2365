"""Clock helpers deciding when the next draw is due."""

from __future__ import annotations

import time


def epoch_seconds() -> int:
    """Return the current UTC time as whole epoch seconds."""
    return int(time.time())


def interval_elapsed(last_timestamp: int, now: int, interval: int) -> bool:
    """Return ``True`` when at least ``interval`` seconds passed since ``last_timestamp``."""
    return now - last_timestamp >= interval


def next_draw_at(last_timestamp: int, interval: int) -> int:
    """Return the earliest epoch second at which a draw may start."""
    return last_timestamp + interval


__all__ = ["epoch_seconds", "interval_elapsed", "next_draw_at"]
