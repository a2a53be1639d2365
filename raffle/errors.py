"""Errors raised by the raffle draw state machine.

Every error carries the values that explain it as attributes, so callers such
as the upkeep keeper can branch on the reason instead of parsing messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models.raffle import RaffleState


class RaffleError(Exception):
    """Base class for raffle errors."""


class InsufficientValue(RaffleError):
    """An entry was attempted with less than the entrance fee."""

    def __init__(self, value: int, entrance_fee: int) -> None:
        self.value = value
        self.entrance_fee = entrance_fee
        super().__init__(
            f"Entry value {value} is below the entrance fee {entrance_fee}"
        )


class NotOpen(RaffleError):
    """An entry was attempted while a draw is in flight."""

    def __init__(self, state: "RaffleState") -> None:
        self.state = state
        super().__init__(f"Raffle is not open for entries (state={state.value})")


class NotCalculating(RaffleError):
    """A fulfillment arrived while no draw is in flight."""

    def __init__(self, state: "RaffleState") -> None:
        self.state = state
        super().__init__(f"Raffle is not calculating a winner (state={state.value})")


class UpkeepNotNeeded(RaffleError):
    """A draw was triggered while the readiness predicate is false.

    Attributes
    ----------
    balance : int
        Pooled balance of the active round.
    num_players : int
        Number of entries in the active round.
    state : RaffleState
        State of the raffle when the draw was attempted.
    """

    def __init__(self, balance: int, num_players: int, state: "RaffleState") -> None:
        self.balance = balance
        self.num_players = num_players
        self.state = state
        super().__init__(
            f"Upkeep not needed (balance={balance}, players={num_players}, "
            f"state={state.value})"
        )


class UnknownRequest(RaffleError):
    """A fulfillment does not match the outstanding randomness request."""

    def __init__(self, request_id: int, pending_request_id: Optional[str]) -> None:
        self.request_id = request_id
        self.pending_request_id = pending_request_id
        super().__init__(
            f"Randomness request {request_id} is not outstanding "
            f"(pending={pending_request_id})"
        )


class IndexOutOfRange(RaffleError, IndexError):
    """An entry index outside ``[0, count)`` was requested."""

    def __init__(self, index: int, count: int) -> None:
        self.index = index
        self.count = count
        super().__init__(f"Entry index {index} is out of range for {count} entries")


class SettlementTransferFailed(RaffleError):
    """The winner rejected the prize transfer."""

    def __init__(self, recipient: str, amount: int) -> None:
        self.recipient = recipient
        self.amount = amount
        super().__init__(f"Transfer of {amount} to {recipient} failed")


__all__ = [
    "IndexOutOfRange",
    "InsufficientValue",
    "NotCalculating",
    "NotOpen",
    "RaffleError",
    "SettlementTransferFailed",
    "UnknownRequest",
    "UpkeepNotNeeded",
]
