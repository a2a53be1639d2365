"""Database model holding the configuration and current round of a raffle."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Integer,
    String,
    UniqueConstraint,
    select,
)
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship, validates

from .base import Base
from .column_types import AMOUNT_TYPE, TIMESTAMP_TYPE

if TYPE_CHECKING:
    from .entry import RaffleEntry
    from .event import DrawEventRecord


DEFAULT_REQUEST_CONFIRMATIONS = 3
DEFAULT_NUM_WORDS = 1

_POSITIVE_INT_FIELDS = (
    "entrance_fee",
    "interval_seconds",
    "callback_gas_limit",
    "request_confirmations",
    "num_words",
)
_OPAQUE_STRING_FIELDS = ("key_hash", "subscription_id")


class RaffleState(str, enum.Enum):
    """Lifecycle state of the active round."""

    OPEN = "open"
    CALCULATING = "calculating"


class Raffle(Base):
    """A single autonomous raffle and the state of its current round.

    Configuration columns are fixed once assigned. The round columns
    (``state``, ``last_timestamp``, ``pool_balance``, ``pending_request_id``
    and ``recent_winner``) are mutated only by
    :class:`~raffle.draw.engine.DrawEngine`.
    """

    __tablename__ = "raffles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    """Primary key."""

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    """Unique, human readable identifier of the deployment."""

    entrance_fee: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False)
    """Minimum value required to enter, in the smallest currency unit."""

    interval_seconds: Mapped[int] = mapped_column(Integer, nullable=False)
    """Minimum number of seconds between two draws."""

    key_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    """Randomness-provider routing key, passed through untouched."""

    subscription_id: Mapped[str] = mapped_column(String(100), nullable=False)
    """Randomness-provider subscription, passed through untouched."""

    callback_gas_limit: Mapped[int] = mapped_column(Integer, nullable=False)
    """Resource budget granted to the provider's fulfillment callback."""

    request_confirmations: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_REQUEST_CONFIRMATIONS
    )
    num_words: Mapped[int] = mapped_column(
        Integer, nullable=False, default=DEFAULT_NUM_WORDS
    )

    state: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RaffleState.OPEN.value
    )
    """Round state; one of :class:`RaffleState` values."""

    last_timestamp: Mapped[int] = mapped_column(TIMESTAMP_TYPE, nullable=False)
    """Epoch seconds of construction or of the last settled draw."""

    pool_balance: Mapped[int] = mapped_column(AMOUNT_TYPE, nullable=False, default=0)
    """Sum of the entry values of the active round."""

    pending_request_id: Mapped[Optional[str]] = mapped_column(
        String(80), nullable=True
    )
    """Outstanding randomness request id while a draw is in flight."""

    recent_winner: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    """Participant that won the most recent draw."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    entries: Mapped[list["RaffleEntry"]] = relationship(
        back_populates="raffle",
        cascade="all, delete-orphan",
        order_by="RaffleEntry.position",
    )
    """Entries of the active round, in insertion order."""

    events: Mapped[list["DrawEventRecord"]] = relationship(
        back_populates="raffle",
        cascade="all, delete-orphan",
        order_by="DrawEventRecord.id",
    )

    __table_args__ = (
        UniqueConstraint("name", name="raffles_name_key"),
        CheckConstraint("state IN ('open','calculating')", name="state_enum"),
        CheckConstraint("entrance_fee > 0", name="entrance_fee_positive"),
        CheckConstraint("interval_seconds > 0", name="interval_positive"),
        CheckConstraint("pool_balance >= 0", name="pool_balance_non_negative"),
    )

    def __init__(
        self,
        *,
        name: str,
        entrance_fee: int,
        interval_seconds: int,
        key_hash: str,
        subscription_id: str,
        callback_gas_limit: int,
        last_timestamp: int,
        request_confirmations: int = DEFAULT_REQUEST_CONFIRMATIONS,
        num_words: int = DEFAULT_NUM_WORDS,
        created_at: Optional[datetime] = None,
    ) -> None:
        self.name = name
        self.entrance_fee = entrance_fee
        self.interval_seconds = interval_seconds
        self.key_hash = key_hash
        self.subscription_id = subscription_id
        self.callback_gas_limit = callback_gas_limit
        self.request_confirmations = request_confirmations
        self.num_words = num_words
        self.state = RaffleState.OPEN.value
        self.last_timestamp = last_timestamp
        self.pool_balance = 0
        self.pending_request_id = None
        self.recent_winner = None
        if created_at is not None:
            self.created_at = created_at

    @validates(*_POSITIVE_INT_FIELDS, *_OPAQUE_STRING_FIELDS)
    def _validate_configuration(self, key: str, value: Any) -> Any:
        if key in _POSITIVE_INT_FIELDS:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError(f"{key} must be an integer")
            if value <= 0:
                raise ValueError(f"{key} must be positive")
        else:
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{key} must be a non-empty string")

        current = getattr(self, key)
        if current is not None and current != value:
            raise ValueError(f"{key} is immutable once the raffle is configured")
        return value

    @property
    def raffle_state(self) -> RaffleState:
        return RaffleState(self.state)

    @classmethod
    def get_by_name(cls, session: Session, name: str) -> Optional["Raffle"]:
        """Return the raffle called ``name`` if it exists."""

        return session.scalar(select(cls).where(cls.name == name))

    def __repr__(self) -> str:  # pragma: no cover - repr is trivial
        return "<Raffle(id={id}, name={name}, state={state}, pool_balance={balance})>".format(
            id=self.id,
            name=self.name,
            state=self.state,
            balance=self.pool_balance,
        )


__all__ = ["Raffle", "RaffleState"]
