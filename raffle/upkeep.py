"""Periodic caller that starts draws and delivers their fulfillments."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from sqlalchemy.orm import Session, sessionmaker

from .draw.engine import DrawEngine
from .errors import SettlementTransferFailed, UpkeepNotNeeded
from .models import Raffle, RaffleState
from .randomness.coordinator import RandomnessCoordinator, RandomnessSource
from .settlement import PayoutGateway


class UpkeepKeeper:
    """Poll a raffle's readiness and trigger its draw.

    Each poll runs in its own committed transaction. The draw engine itself
    is passive: it never polls, it only answers and reacts to these calls.

    When ``randomness_source`` and ``payout`` are given, the keeper also
    looks up the outstanding request of a CALCULATING raffle and, once the
    provider has answered, settles the round with those words.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        raffle_id: int,
        coordinator: RandomnessCoordinator,
        *,
        randomness_source: Optional[RandomnessSource] = None,
        payout: Optional[PayoutGateway] = None,
        poll_interval: float = 5.0,
        clock: Optional[Callable[[], int]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if (randomness_source is None) != (payout is None):
            raise ValueError("randomness_source and payout must be given together")
        self._session_factory = session_factory
        self._raffle_id = raffle_id
        self._coordinator = coordinator
        self._randomness_source = randomness_source
        self._payout = payout
        self._poll_interval = poll_interval
        self._clock = clock
        self._logger = logger or logging.getLogger(__name__)

    @property
    def delivers_fulfillments(self) -> bool:
        return self._randomness_source is not None

    def poll_once(self) -> Optional[int]:
        """Check readiness once and start a draw if due.

        Returns
        -------
        Optional[int]
            The randomness request id when a draw was started, otherwise
            ``None``.
        """
        with self._session_factory.begin() as session:
            raffle = self._load_raffle(session)
            engine = DrawEngine(
                session, raffle, coordinator=self._coordinator, clock=self._clock
            )
            ready, perform_data = engine.check_upkeep()
            if not ready:
                self._logger.debug(
                    f"Raffle {self._raffle_id} not ready (state={engine.state.value}, "
                    f"players={engine.number_of_players}, balance={engine.pool_balance})"
                )
                return None
            return engine.perform_upkeep(perform_data)

    def poll_fulfillment(self) -> Optional[str]:
        """Settle the draw in flight if the provider has answered.

        Returns
        -------
        Optional[str]
            The winning participant when the round was settled, otherwise
            ``None``.

        Raises
        ------
        RuntimeError
            If the keeper was built without a randomness source and payout.
        SettlementTransferFailed
            If the winner rejected the prize; the round stays CALCULATING
            and is retried on the next poll.
        """
        if self._randomness_source is None or self._payout is None:
            raise RuntimeError("No randomness source and payout are configured")

        with self._session_factory.begin() as session:
            raffle = self._load_raffle(session)
            if (
                raffle.raffle_state != RaffleState.CALCULATING
                or raffle.pending_request_id is None
            ):
                return None

            request_id = int(raffle.pending_request_id)
            random_words = self._randomness_source.fetch_random_words(request_id)
            if random_words is None:
                self._logger.debug(
                    f"Raffle {self._raffle_id} awaiting randomness for request {request_id}"
                )
                return None

            engine = DrawEngine(session, raffle, payout=self._payout, clock=self._clock)
            return engine.fulfill_random_words(request_id, random_words)

    def run_forever(self, stop_event: Optional[threading.Event] = None) -> None:
        """Poll until ``stop_event`` is set, logging failed iterations."""
        stop = stop_event or threading.Event()
        self._logger.info(
            f"Upkeep keeper started for raffle {self._raffle_id}; "
            f"poll interval={self._poll_interval}"
        )
        while not stop.is_set():
            if self.delivers_fulfillments:
                self._fulfillment_step()
            self._upkeep_step()
            stop.wait(self._poll_interval)
        self._logger.info(f"Upkeep keeper stopped for raffle {self._raffle_id}")

    # -------- internals --------
    def _load_raffle(self, session: Session) -> Raffle:
        raffle = session.get(Raffle, self._raffle_id)
        if raffle is None:
            raise LookupError(f"Raffle {self._raffle_id} does not exist")
        return raffle

    def _upkeep_step(self) -> None:
        try:
            request_id = self.poll_once()
            if request_id is not None:
                self._logger.info(
                    f"Draw started for raffle {self._raffle_id} (request {request_id})"
                )
        except UpkeepNotNeeded as exc:
            self._logger.info(f"Draw skipped: {exc}")
        except Exception as exc:
            self._logger.exception(f"Upkeep iteration failed: {exc}")

    def _fulfillment_step(self) -> None:
        try:
            winner = self.poll_fulfillment()
            if winner is not None:
                self._logger.info(f"Raffle {self._raffle_id} settled; winner {winner}")
        except SettlementTransferFailed as exc:
            self._logger.warning(f"Settlement will be retried: {exc}")
        except Exception as exc:
            self._logger.exception(f"Fulfillment iteration failed: {exc}")


__all__ = ["UpkeepKeeper"]
