from __future__ import annotations

import logging
import os
import signal
import threading

from raffle.blockchain.api import ChainClient
from raffle.config import RaffleSettings
from raffle.db.engine import get_sessionmaker, make_engine
from raffle.randomness.chain import ChainRandomnessCoordinator
from raffle.settlement import ChainPayoutGateway
from raffle.upkeep import UpkeepKeeper
from raffle.workflows import ensure_raffle


def main() -> None:
    """Start and settle draws for the configured raffle until interrupted."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    settings = RaffleSettings.from_env()
    engine = make_engine()
    Session = get_sessionmaker(engine)
    with Session.begin() as session:
        raffle_id = ensure_raffle(session, settings).id

    client = ChainClient()
    coordinator = ChainRandomnessCoordinator(client, consumer=settings.name)
    keeper = UpkeepKeeper(
        Session,
        raffle_id,
        coordinator,
        randomness_source=coordinator,
        payout=ChainPayoutGateway(client),
        poll_interval=settings.keeper_poll_seconds,
    )

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())
    keeper.run_forever(stop)
    engine.dispose()


if __name__ == "__main__":
    main()
