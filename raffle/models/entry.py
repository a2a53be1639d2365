"""Database model for a single raffle entry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base
from .column_types import AMOUNT_TYPE, TIMESTAMP_TYPE

if TYPE_CHECKING:
    from .raffle import Raffle


class RaffleEntry(Base):
    """A participant's registration in the active round of a raffle."""

    __tablename__ = "raffle_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    raffle_id: Mapped[int] = mapped_column(
        ForeignKey("raffles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False)
    """Zero-based index of the entry within its round."""

    participant: Mapped[str] = mapped_column(String(255), nullable=False)
    """Identifier of the entrant; receives the prize when drawn."""

    value: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False)
    """Value contributed to the pooled balance."""

    entered_at: Mapped[int] = mapped_column(TIMESTAMP_TYPE, nullable=False)

    raffle: Mapped["Raffle"] = relationship(back_populates="entries")

    __table_args__ = (
        UniqueConstraint("raffle_id", "position", name="uq_raffle_entry_position"),
        CheckConstraint("position >= 0", name="position_non_negative"),
        CheckConstraint("value > 0", name="value_positive"),
    )

    def __init__(
        self,
        *,
        participant: str,
        value: int,
        position: int,
        entered_at: int,
    ) -> None:
        self.participant = participant
        self.value = value
        self.position = position
        self.entered_at = entered_at

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return f"<RaffleEntry(raffle_id={self.raffle_id}, position={self.position}, participant={self.participant})>"


__all__ = ["RaffleEntry"]
