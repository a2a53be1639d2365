"""Draw state machine for a single raffle."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import (
    InsufficientValue,
    NotCalculating,
    NotOpen,
    SettlementTransferFailed,
    UnknownRequest,
    UpkeepNotNeeded,
)
from ..models import DrawEventRecord, Raffle, RaffleEntry, RaffleState
from ..models.event import DRAW_REQUESTED, ENTERED, WINNER_PICKED
from ..randomness.coordinator import RandomnessCoordinator, RandomnessRequestConfig
from ..settlement import PayoutGateway
from .events import DrawEvent, DrawEventListener
from .interval import epoch_seconds, interval_elapsed
from .ledger import EntryLedger
from .selection import winner_index

logger = logging.getLogger(__name__)


class DrawEngine:
    """Run the OPEN → CALCULATING → OPEN cycle of a persisted :class:`Raffle`.

    Every mutating call (:meth:`enter`, :meth:`perform_upkeep`,
    :meth:`fulfill_random_words`) runs to completion inside a SAVEPOINT of
    the bound session while holding the raffle row lock. A failure at any
    point, including a rejected prize transfer, rolls back every change made
    by that call.
    """

    def __init__(
        self,
        session: Session,
        raffle: Raffle,
        *,
        coordinator: Optional[RandomnessCoordinator] = None,
        payout: Optional[PayoutGateway] = None,
        clock: Optional[Callable[[], int]] = None,
        listeners: Optional[Iterable[DrawEventListener]] = None,
    ) -> None:
        """Bind the engine to ``raffle`` within ``session``.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session. The caller owns the outer transaction.
        raffle : Raffle
            Persisted raffle whose round is driven by this engine.
        coordinator : Optional[RandomnessCoordinator], default: None
            Randomness oracle used by :meth:`perform_upkeep`.
        payout : Optional[PayoutGateway], default: None
            Settlement gateway used by :meth:`fulfill_random_words`.
        clock : Optional[Callable[[], int]], default: None
            Source of epoch seconds; defaults to the system clock.
        listeners : Optional[Iterable[DrawEventListener]], default: None
            Callables notified after each committed state change.
        """

        if raffle.id is None:
            raise ValueError("Raffle must be persisted before running draws")

        self._session = session
        self._raffle = raffle
        self._raffle_id = raffle.id
        self._coordinator = coordinator
        self._payout = payout
        self._clock = clock or epoch_seconds
        self._listeners: list[DrawEventListener] = list(listeners or [])
        self._lock = threading.RLock()
        self._staged_events: list[DrawEvent] = []

    def add_listener(self, listener: DrawEventListener) -> None:
        self._listeners.append(listener)

    # -------- queries --------
    @property
    def raffle(self) -> Raffle:
        return self._raffle

    @property
    def state(self) -> RaffleState:
        return self._raffle.raffle_state

    @property
    def entrance_fee(self) -> int:
        return self._raffle.entrance_fee

    @property
    def interval(self) -> int:
        return self._raffle.interval_seconds

    @property
    def last_timestamp(self) -> int:
        return self._raffle.last_timestamp

    @property
    def recent_winner(self) -> Optional[str]:
        return self._raffle.recent_winner

    @property
    def pool_balance(self) -> int:
        return self._raffle.pool_balance

    @property
    def number_of_players(self) -> int:
        return self._ledger(self._raffle).count()

    @property
    def request_confirmations(self) -> int:
        return self._raffle.request_confirmations

    @property
    def num_words(self) -> int:
        return self._raffle.num_words

    def get_player(self, index: int) -> str:
        """Return the participant at ``index`` of the active round."""
        return self._ledger(self._raffle).get(index).participant

    # -------- readiness --------
    def check_ready(self) -> bool:
        """Return whether a draw may start now.

        All four conditions must hold: the interval has elapsed, the raffle
        is OPEN, the pooled balance is positive and there is at least one
        entry.
        """
        return self._upkeep_needed(self._raffle, self._clock())

    def check_upkeep(self, check_data: bytes = b"") -> tuple[bool, bytes]:
        """Readiness query in the upkeep trigger's calling convention.

        ``check_data`` is ignored and the returned perform data is always
        empty.
        """
        return self.check_ready(), b""

    # -------- transitions --------
    def enter(self, participant: str, value: int) -> RaffleEntry:
        """Register ``participant`` in the active round with ``value``.

        Raises
        ------
        InsufficientValue
            If ``value`` is below the entrance fee.
        NotOpen
            If a draw is in flight.
        """
        if not participant:
            raise ValueError("participant must not be empty")

        with self._transition() as raffle:
            if value < raffle.entrance_fee:
                raise InsufficientValue(value=value, entrance_fee=raffle.entrance_fee)
            if raffle.state != RaffleState.OPEN.value:
                raise NotOpen(raffle.raffle_state)

            now = self._clock()
            entry = self._ledger(raffle).append(participant, value, entered_at=now)
            raffle.pool_balance += value
            self._emit(raffle, ENTERED, now, participant=participant)

        logger.debug(f"{participant} entered raffle {self._raffle_id} with {value}")
        return entry

    def perform_upkeep(self, perform_data: bytes = b"") -> int:
        """Lock the round and request a random value.

        The state is flushed as CALCULATING before the coordinator is called,
        so nothing can enter or trigger another draw while the request is
        outstanding.

        Returns
        -------
        int
            Identifier of the randomness request.

        Raises
        ------
        UpkeepNotNeeded
            If the readiness predicate is false; carries balance, number of
            players and state.
        """
        coordinator = self._require(self._coordinator, "randomness coordinator")

        with self._transition() as raffle:
            now = self._clock()
            if not self._upkeep_needed(raffle, now):
                raise UpkeepNotNeeded(
                    balance=raffle.pool_balance,
                    num_players=self._ledger(raffle).count(),
                    state=raffle.raffle_state,
                )

            raffle.state = RaffleState.CALCULATING.value
            self._session.flush()

            request_id = coordinator.request_random_words(self._request_config(raffle))
            raffle.pending_request_id = str(request_id)
            self._emit(raffle, DRAW_REQUESTED, now, request_id=str(request_id))

        logger.info(f"Raffle {self._raffle_id} requested winner (request {request_id})")
        return request_id

    def fulfill_random_words(self, request_id: int, random_words: Sequence[int]) -> str:
        """Select and pay the winner for the outstanding request.

        Effects happen before the interaction: the winner is recorded, the
        raffle reopens, the ledger is cleared and the timestamp reset, and
        only then is the prize transferred.

        Returns
        -------
        str
            The winning participant.

        Raises
        ------
        UnknownRequest
            If ``request_id`` is not the outstanding request.
        NotCalculating
            If no draw is in flight.
        SettlementTransferFailed
            If the winner rejects the transfer. The whole fulfillment is
            rolled back and the round stays CALCULATING.
        """
        payout = self._require(self._payout, "payout gateway")

        with self._transition() as raffle:
            pending = raffle.pending_request_id
            if pending is None or pending != str(request_id):
                raise UnknownRequest(request_id=request_id, pending_request_id=pending)
            if raffle.state != RaffleState.CALCULATING.value:
                raise NotCalculating(raffle.raffle_state)
            if not random_words:
                raise ValueError("random_words must contain at least one value")

            ledger = self._ledger(raffle)
            index = winner_index(int(random_words[0]), ledger.count())
            winner = ledger.get(index).participant
            prize = raffle.pool_balance
            now = self._clock()

            raffle.recent_winner = winner
            raffle.state = RaffleState.OPEN.value
            raffle.pending_request_id = None
            ledger.clear()
            raffle.pool_balance = 0
            raffle.last_timestamp = now
            self._emit(raffle, WINNER_PICKED, now, winner=winner, prize=prize)
            self._session.flush()

            if not payout.transfer(winner, prize):
                raise SettlementTransferFailed(recipient=winner, amount=prize)

        logger.info(f"Raffle {self._raffle_id} picked {winner} (index {index}, prize {prize})")
        return winner

    # -------- internals --------
    @contextmanager
    def _transition(self) -> Iterator[Raffle]:
        with self._lock:
            outer_events = self._staged_events
            self._staged_events = []
            try:
                with self._session.begin_nested():
                    yield self._lock_raffle()
                staged = self._staged_events
            finally:
                self._staged_events = outer_events

        for event in staged:
            self._dispatch(event)

    def _lock_raffle(self) -> Raffle:
        raffle = self._session.scalar(
            select(Raffle)
            .where(Raffle.id == self._raffle_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        if raffle is None:
            raise LookupError(f"Raffle {self._raffle_id} no longer exists")
        self._raffle = raffle
        return raffle

    def _ledger(self, raffle: Raffle) -> EntryLedger:
        return EntryLedger(self._session, raffle)

    def _upkeep_needed(self, raffle: Raffle, now: int) -> bool:
        time_passed = interval_elapsed(raffle.last_timestamp, now, raffle.interval_seconds)
        is_open = raffle.state == RaffleState.OPEN.value
        has_balance = raffle.pool_balance > 0
        has_players = self._ledger(raffle).count() > 0
        return time_passed and is_open and has_balance and has_players

    @staticmethod
    def _request_config(raffle: Raffle) -> RandomnessRequestConfig:
        return RandomnessRequestConfig(
            key_hash=raffle.key_hash,
            subscription_id=raffle.subscription_id,
            request_confirmations=raffle.request_confirmations,
            callback_gas_limit=raffle.callback_gas_limit,
            num_words=raffle.num_words,
        )

    @staticmethod
    def _require(collaborator: Any, description: str) -> Any:
        if collaborator is None:
            raise RuntimeError(f"No {description} is configured for this engine")
        return collaborator

    def _emit(self, raffle: Raffle, name: str, emitted_at: int, **payload: Any) -> None:
        # Stored inside the SAVEPOINT so a rolled-back call leaves no record.
        self._session.add(
            DrawEventRecord(
                raffle_id=raffle.id,
                name=name,
                payload=dict(payload),
                emitted_at=emitted_at,
            )
        )
        self._staged_events.append(
            DrawEvent(
                name=name,
                raffle_id=raffle.id,
                emitted_at=emitted_at,
                payload=dict(payload),
            )
        )

    def _dispatch(self, event: DrawEvent) -> None:
        logger.debug(f"Raffle {event.raffle_id} emitted {event.name} {event.payload}")
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                # Delivery is best effort; the state change is already applied.
                logger.exception(f"Draw event listener {listener!r} failed on {event.name}")


__all__ = ["DrawEngine"]
