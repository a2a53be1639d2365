from .base import Base

# import models so Alembic/autoloaders can discover mappers
from .raffle import Raffle, RaffleState  # noqa: F401
from .entry import RaffleEntry  # noqa: F401
from .event import (  # noqa: F401
    DRAW_EVENT_NAMES,
    DRAW_REQUESTED,
    DrawEventRecord,
    ENTERED,
    WINNER_PICKED,
)

__all__ = [
    "Base",
    "Raffle",
    "RaffleState",
    "RaffleEntry",
    "DrawEventRecord",
    "DRAW_EVENT_NAMES",
    "DRAW_REQUESTED",
    "ENTERED",
    "WINNER_PICKED",
]
