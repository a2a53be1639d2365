"""Notifications emitted by the draw state machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from ..models.event import DRAW_REQUESTED, ENTERED, WINNER_PICKED


@dataclass(frozen=True)
class DrawEvent:
    """Point-in-time notification of a state change.

    Attributes
    ----------
    name : str
        One of ``"raffle_enter"``, ``"requested_raffle_winner"`` or
        ``"winner_picked"``.
    raffle_id : int
        Raffle that changed state.
    emitted_at : int
        Epoch seconds according to the engine clock.
    payload : dict[str, Any]
        Event fields (``participant``, ``request_id`` or ``winner``/``prize``).
    """

    name: str
    raffle_id: int
    emitted_at: int
    payload: dict[str, Any] = field(default_factory=dict)


DrawEventListener = Callable[[DrawEvent], None]

__all__ = [
    "DRAW_REQUESTED",
    "DrawEvent",
    "DrawEventListener",
    "ENTERED",
    "WINNER_PICKED",
]
