from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .column_types import TIMESTAMP_TYPE

if TYPE_CHECKING:
    from .raffle import Raffle


ENTERED = "raffle_enter"
DRAW_REQUESTED = "requested_raffle_winner"
WINNER_PICKED = "winner_picked"
DRAW_EVENT_NAMES = (ENTERED, DRAW_REQUESTED, WINNER_PICKED)


class DrawEventRecord(Base):
    """Stored copy of an event emitted by the draw state machine."""

    __tablename__ = "draw_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    raffle_id: Mapped[int] = mapped_column(
        ForeignKey("raffles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    payload: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    emitted_at: Mapped[int] = mapped_column(TIMESTAMP_TYPE, nullable=False)

    raffle: Mapped["Raffle"] = relationship(back_populates="events")

    __table_args__ = (
        CheckConstraint(
            "name IN ('raffle_enter','requested_raffle_winner','winner_picked')",
            name="name_enum",
        ),
    )

    def __init__(
        self,
        *,
        raffle_id: int,
        name: str,
        emitted_at: int,
        payload: Optional[dict[str, Any]] = None,
    ) -> None:
        if name not in DRAW_EVENT_NAMES:
            raise ValueError(f"Unknown draw event '{name}'")
        self.raffle_id = raffle_id
        self.name = name
        self.payload = payload
        self.emitted_at = emitted_at
