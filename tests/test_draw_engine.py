from __future__ import annotations

import unittest

from sqlalchemy import select

from raffle.config import RaffleSettings
from raffle.db.engine import get_sessionmaker, make_engine
from raffle.draw import DrawEngine, DrawEvent
from raffle.errors import (
    IndexOutOfRange,
    InsufficientValue,
    NotCalculating,
    NotOpen,
    SettlementTransferFailed,
    UnknownRequest,
    UpkeepNotNeeded,
)
from raffle.models import Base, DrawEventRecord, RaffleState
from raffle.randomness import LocalRandomnessCoordinator
from raffle.workflows import create_raffle


class FakeClock:
    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class RecordingPayout:
    def __init__(self, accept: bool = True) -> None:
        self.accept = accept
        self.transfers: list[tuple[str, int]] = []

    def transfer(self, recipient: str, amount: int) -> bool:
        self.transfers.append((recipient, amount))
        return self.accept


class FailingCoordinator:
    def request_random_words(self, config):
        raise RuntimeError("provider unavailable")


FEE = 100
INTERVAL = 3600


class DrawEngineTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = make_engine("sqlite+pysqlite:///:memory:")
        Base.metadata.create_all(self.engine)
        self.Session = get_sessionmaker(self.engine)
        self.clock = FakeClock(0)
        self.coordinator = LocalRandomnessCoordinator()
        self.payout = RecordingPayout()

    def tearDown(self) -> None:
        self.engine.dispose()

    def _draw_engine(self, session, **kwargs) -> DrawEngine:
        raffle = create_raffle(
            session,
            RaffleSettings(name="weekly", entrance_fee=FEE, interval_seconds=INTERVAL),
            now=self.clock.now,
        )
        kwargs.setdefault("coordinator", self.coordinator)
        kwargs.setdefault("payout", self.payout)
        return DrawEngine(session, raffle, clock=self.clock, **kwargs)

    def _start_round(self, engine: DrawEngine, players: list[str]) -> int:
        for player in players:
            engine.enter(player, FEE)
        self.clock.advance(INTERVAL)
        return engine.perform_upkeep()

    def _event_names(self, session) -> list[str]:
        records = session.scalars(
            select(DrawEventRecord).order_by(DrawEventRecord.id)
        ).all()
        return [record.name for record in records]


class EnterTests(DrawEngineTestCase):
    def test_value_below_fee_is_rejected_without_changes(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            for value in (0, 1, FEE - 1):
                with self.assertRaises(InsufficientValue) as ctx:
                    engine.enter("alice", value)
                self.assertEqual(ctx.exception.value, value)
                self.assertEqual(ctx.exception.entrance_fee, FEE)

            self.assertEqual(engine.number_of_players, 0)
            self.assertEqual(engine.pool_balance, 0)
            self.assertEqual(self._event_names(session), [])

    def test_entries_keep_insertion_order_and_pool_value(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            engine.enter("alice", FEE)
            engine.enter("bob", FEE + 50)
            engine.enter("alice", FEE)

            self.assertEqual(engine.number_of_players, 3)
            self.assertEqual(engine.get_player(0), "alice")
            self.assertEqual(engine.get_player(1), "bob")
            self.assertEqual(engine.get_player(2), "alice")
            self.assertEqual(engine.pool_balance, 3 * FEE + 50)
            self.assertEqual(engine.state, RaffleState.OPEN)

    def test_enter_while_calculating_is_rejected(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            self._start_round(engine, ["alice"])

            with self.assertRaises(NotOpen) as ctx:
                engine.enter("bob", FEE)
            self.assertEqual(ctx.exception.state, RaffleState.CALCULATING)
            self.assertEqual(engine.number_of_players, 1)
            self.assertEqual(engine.pool_balance, FEE)

    def test_empty_participant_is_rejected(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            with self.assertRaises(ValueError):
                engine.enter("", FEE)

    def test_get_player_out_of_range(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            engine.enter("alice", FEE)
            with self.assertRaises(IndexOutOfRange):
                engine.get_player(1)
            with self.assertRaises(IndexError):
                engine.get_player(-1)


class ReadinessTests(DrawEngineTestCase):
    def test_ready_only_when_all_conditions_hold(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)

            self.clock.advance(INTERVAL)
            self.assertFalse(engine.check_ready())  # no players, no balance

            engine.enter("alice", FEE)
            self.assertTrue(engine.check_ready())
            self.assertEqual(engine.check_upkeep(b"ignored"), (True, b""))

            self.clock.now = engine.last_timestamp + INTERVAL - 1
            self.assertFalse(engine.check_ready())

            self.clock.now = engine.last_timestamp + INTERVAL
            engine.raffle.pool_balance = 0
            self.assertFalse(engine.check_ready())
            engine.raffle.pool_balance = FEE

            engine.perform_upkeep()
            self.assertFalse(engine.check_ready())

    def test_no_players_at_interval_raises_upkeep_not_needed(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            self.clock.advance(INTERVAL)

            self.assertEqual(engine.check_upkeep(), (False, b""))
            with self.assertRaises(UpkeepNotNeeded) as ctx:
                engine.perform_upkeep()

            self.assertEqual(ctx.exception.balance, 0)
            self.assertEqual(ctx.exception.num_players, 0)
            self.assertEqual(ctx.exception.state, RaffleState.OPEN)
            self.assertEqual(engine.state, RaffleState.OPEN)
            self.assertEqual(self.coordinator.pending_requests, {})

    def test_perform_upkeep_before_interval_is_rejected(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            engine.enter("alice", FEE)
            with self.assertRaises(UpkeepNotNeeded) as ctx:
                engine.perform_upkeep()
            self.assertEqual(ctx.exception.balance, FEE)
            self.assertEqual(ctx.exception.num_players, 1)


class PerformUpkeepTests(DrawEngineTestCase):
    def test_perform_upkeep_locks_round_and_requests_once(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            request_id = self._start_round(engine, ["alice", "bob"])

            self.assertEqual(request_id, 1)
            self.assertEqual(engine.state, RaffleState.CALCULATING)
            self.assertEqual(engine.raffle.pending_request_id, "1")
            self.assertEqual(list(self.coordinator.pending_requests), [1])

            config = self.coordinator.pending_requests[1]
            self.assertEqual(config.num_words, 1)
            self.assertEqual(config.request_confirmations, 3)

            with self.assertRaises(UpkeepNotNeeded) as ctx:
                engine.perform_upkeep()
            self.assertEqual(ctx.exception.state, RaffleState.CALCULATING)
            self.assertEqual(list(self.coordinator.pending_requests), [1])

    def test_failed_request_leaves_raffle_open(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session, coordinator=FailingCoordinator())
            engine.enter("alice", FEE)
            self.clock.advance(INTERVAL)

            with self.assertRaises(RuntimeError):
                engine.perform_upkeep()

            self.assertEqual(engine.state, RaffleState.OPEN)
            self.assertIsNone(engine.raffle.pending_request_id)
            self.assertEqual(engine.number_of_players, 1)

    def test_missing_coordinator_is_reported(self) -> None:
        with self.Session.begin() as session:
            raffle = self._draw_engine(session).raffle
            engine = DrawEngine(session, raffle, clock=self.clock)
            engine.enter("alice", FEE)
            self.clock.advance(INTERVAL)
            with self.assertRaises(RuntimeError):
                engine.perform_upkeep()


class FulfillTests(DrawEngineTestCase):
    def test_three_player_round_pays_second_enterer(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            for player in ("alice", "bob", "carol"):
                engine.enter(player, FEE)

            self.clock.now = INTERVAL
            self.assertTrue(engine.check_ready())
            request_id = engine.perform_upkeep()
            self.assertEqual(engine.state, RaffleState.CALCULATING)

            winner = self.coordinator.fulfill_random_words(request_id, engine, [7])

            self.assertEqual(winner, "bob")
            self.assertEqual(self.payout.transfers, [("bob", 300)])
            self.assertEqual(engine.state, RaffleState.OPEN)
            self.assertEqual(engine.number_of_players, 0)
            self.assertEqual(engine.pool_balance, 0)
            self.assertEqual(engine.last_timestamp, INTERVAL)
            self.assertEqual(engine.recent_winner, "bob")
            self.assertIsNone(engine.raffle.pending_request_id)
            self.assertEqual(self.coordinator.pending_requests, {})

    def test_winner_is_random_word_modulo_entry_count(self) -> None:
        words = [0, 1, 5, 12345, 2**256 - 1]
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            for count in range(1, 5):
                for word in words:
                    players = [f"p{count}-{word % 97}-{i}" for i in range(count)]
                    request_id = self._start_round(engine, players)
                    winner = engine.fulfill_random_words(request_id, [word, 99])
                    self.assertEqual(winner, players[word % count])
                    self.assertEqual(engine.recent_winner, winner)

    def test_replayed_fulfillment_is_rejected(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            request_id = self._start_round(engine, ["alice", "bob"])
            engine.fulfill_random_words(request_id, [3])
            last_timestamp = engine.last_timestamp

            self.clock.advance(10)
            with self.assertRaises(UnknownRequest) as ctx:
                engine.fulfill_random_words(request_id, [4])
            self.assertEqual(ctx.exception.request_id, request_id)
            self.assertIsNone(ctx.exception.pending_request_id)

            self.assertEqual(engine.state, RaffleState.OPEN)
            self.assertEqual(engine.recent_winner, "bob")
            self.assertEqual(engine.last_timestamp, last_timestamp)
            self.assertEqual(len(self.payout.transfers), 1)

    def test_mismatched_request_id_is_rejected(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            request_id = self._start_round(engine, ["alice"])

            with self.assertRaises(UnknownRequest):
                engine.fulfill_random_words(request_id + 1, [1])
            self.assertEqual(engine.state, RaffleState.CALCULATING)
            self.assertEqual(engine.number_of_players, 1)
            self.assertEqual(self.payout.transfers, [])

    def test_fulfillment_while_open_is_rejected(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            engine.enter("alice", FEE)
            engine.raffle.pending_request_id = "5"
            session.flush()

            with self.assertRaises(NotCalculating) as ctx:
                engine.fulfill_random_words(5, [1])
            self.assertEqual(ctx.exception.state, RaffleState.OPEN)
            self.assertEqual(engine.number_of_players, 1)

    def test_empty_random_words_are_rejected(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            request_id = self._start_round(engine, ["alice"])
            with self.assertRaises(ValueError):
                engine.fulfill_random_words(request_id, [])
            self.assertEqual(engine.state, RaffleState.CALCULATING)

    def test_rejected_transfer_rolls_back_whole_fulfillment(self) -> None:
        with self.Session.begin() as session:
            self.payout.accept = False
            engine = self._draw_engine(session)
            request_id = self._start_round(engine, ["alice", "bob", "carol"])
            started_at = engine.last_timestamp

            with self.assertRaises(SettlementTransferFailed) as ctx:
                self.coordinator.fulfill_random_words(request_id, engine, [7])
            self.assertEqual(ctx.exception.recipient, "bob")
            self.assertEqual(ctx.exception.amount, 3 * FEE)

            self.assertEqual(engine.state, RaffleState.CALCULATING)
            self.assertEqual(engine.number_of_players, 3)
            self.assertEqual(engine.get_player(1), "bob")
            self.assertEqual(engine.pool_balance, 3 * FEE)
            self.assertEqual(engine.raffle.pending_request_id, str(request_id))
            self.assertEqual(engine.last_timestamp, started_at)
            self.assertIsNone(engine.recent_winner)
            self.assertNotIn("winner_picked", self._event_names(session))
            self.assertIn(request_id, self.coordinator.pending_requests)

            self.payout.accept = True
            winner = self.coordinator.fulfill_random_words(request_id, engine, [7])
            self.assertEqual(winner, "bob")
            self.assertEqual(engine.state, RaffleState.OPEN)
            self.assertEqual(self.payout.transfers[-1], ("bob", 3 * FEE))

    def test_next_round_reuses_positions(self) -> None:
        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            request_id = self._start_round(engine, ["alice", "bob"])
            engine.fulfill_random_words(request_id, [0])

            engine.enter("dave", FEE)
            self.assertEqual(engine.get_player(0), "dave")
            self.assertEqual(engine.number_of_players, 1)
            self.assertEqual(engine.pool_balance, FEE)


class EventTests(DrawEngineTestCase):
    def test_events_are_stored_and_dispatched_in_order(self) -> None:
        received: list[DrawEvent] = []
        with self.Session.begin() as session:
            engine = self._draw_engine(session, listeners=[received.append])
            request_id = self._start_round(engine, ["alice", "bob"])
            engine.fulfill_random_words(request_id, [1])

            expected = [
                "raffle_enter",
                "raffle_enter",
                "requested_raffle_winner",
                "winner_picked",
            ]
            self.assertEqual([event.name for event in received], expected)
            self.assertEqual(self._event_names(session), expected)
            self.assertEqual(received[0].payload, {"participant": "alice"})
            self.assertEqual(received[2].payload, {"request_id": str(request_id)})
            self.assertEqual(received[3].payload, {"winner": "bob", "prize": 2 * FEE})

    def test_failed_transition_dispatches_nothing(self) -> None:
        received: list[DrawEvent] = []
        with self.Session.begin() as session:
            engine = self._draw_engine(session, listeners=[received.append])
            with self.assertRaises(InsufficientValue):
                engine.enter("alice", 1)
            self.assertEqual(received, [])

    def test_listener_errors_are_logged_not_raised(self) -> None:
        def broken_listener(event: DrawEvent) -> None:
            raise RuntimeError("listener down")

        with self.Session.begin() as session:
            engine = self._draw_engine(session)
            engine.add_listener(broken_listener)
            with self.assertLogs("raffle.draw.engine", level="ERROR"):
                engine.enter("alice", FEE)
            self.assertEqual(engine.number_of_players, 1)


if __name__ == "__main__":
    unittest.main()
