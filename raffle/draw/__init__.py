"""Draw state machine and its building blocks."""

from .engine import DrawEngine
from .events import DrawEvent, DrawEventListener
from .interval import epoch_seconds, interval_elapsed, next_draw_at
from .ledger import EntryLedger
from .selection import winner_index

__all__ = [
    "DrawEngine",
    "DrawEvent",
    "DrawEventListener",
    "EntryLedger",
    "epoch_seconds",
    "interval_elapsed",
    "next_draw_at",
    "winner_index",
]
