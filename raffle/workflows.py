from typing import Any, Callable, Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from .config import RaffleSettings
from .draw.engine import DrawEngine
from .draw.events import DrawEventListener
from .draw.interval import epoch_seconds, next_draw_at
from .models import Raffle, RaffleEntry
from .randomness.coordinator import RandomnessCoordinator
from .settlement import PayoutGateway


def create_raffle(
    session: Session,
    settings: RaffleSettings,
    *,
    now: Optional[int] = None,
) -> Raffle:
    """Persist a new raffle whose first round opens at ``now``.

    Parameters
    ----------
    session : Session
        Active SQLAlchemy session.
    settings : RaffleSettings
        Construction parameters; they cannot be changed afterwards.
    now : Optional[int], default: None
        Epoch seconds used as the round start. Defaults to the current time.

    Returns
    -------
    Raffle
        The flushed raffle in OPEN state with an empty ledger.

    Raises
    ------
    ValueError
        If a raffle with the same name already exists.
    """

    if Raffle.get_by_name(session, settings.name) is not None:
        raise ValueError(f"Raffle '{settings.name}' already exists")

    raffle = Raffle(
        name=settings.name,
        entrance_fee=settings.entrance_fee,
        interval_seconds=settings.interval_seconds,
        key_hash=settings.key_hash,
        subscription_id=settings.subscription_id,
        callback_gas_limit=settings.callback_gas_limit,
        request_confirmations=settings.request_confirmations,
        num_words=settings.num_words,
        last_timestamp=now if now is not None else epoch_seconds(),
    )
    session.add(raffle)
    session.flush()
    return raffle


def ensure_raffle(
    session: Session,
    settings: RaffleSettings,
    *,
    now: Optional[int] = None,
) -> Raffle:
    """Return the raffle named in ``settings``, creating it when missing.

    An existing raffle must have been created with the same parameters,
    since configuration is immutable.
    """

    existing = Raffle.get_by_name(session, settings.name)
    if existing is None:
        return create_raffle(session, settings, now=now)

    mismatched = [
        field_name
        for field_name in (
            "entrance_fee",
            "interval_seconds",
            "key_hash",
            "subscription_id",
            "callback_gas_limit",
            "request_confirmations",
            "num_words",
        )
        if getattr(existing, field_name) != getattr(settings, field_name)
    ]
    if mismatched:
        raise ValueError(
            f"Raffle '{settings.name}' exists with different settings: "
            + ", ".join(mismatched)
        )
    return existing


def enter_raffle(
    session: Session,
    raffle: Raffle,
    participant: str,
    value: int,
    *,
    clock: Optional[Callable[[], int]] = None,
    listeners: Optional[Iterable[DrawEventListener]] = None,
) -> RaffleEntry:
    """Enter ``participant`` into the active round of ``raffle``.

    This function wraps :meth:`DrawEngine.enter`.
    """

    engine = DrawEngine(session, raffle, clock=clock, listeners=listeners)
    return engine.enter(participant, value)


def check_upkeep(
    session: Session,
    raffle: Raffle,
    *,
    clock: Optional[Callable[[], int]] = None,
) -> tuple[bool, bytes]:
    """Return ``(ready, perform_data)`` for ``raffle``."""

    return DrawEngine(session, raffle, clock=clock).check_upkeep()


def perform_upkeep(
    session: Session,
    raffle: Raffle,
    coordinator: RandomnessCoordinator,
    *,
    perform_data: bytes = b"",
    clock: Optional[Callable[[], int]] = None,
    listeners: Optional[Iterable[DrawEventListener]] = None,
) -> int:
    """Start a draw for ``raffle`` and return the randomness request id.

    Raises
    ------
    UpkeepNotNeeded
        If the raffle is not ready to draw.
    """

    engine = DrawEngine(
        session, raffle, coordinator=coordinator, clock=clock, listeners=listeners
    )
    return engine.perform_upkeep(perform_data)


def fulfill_random_words(
    session: Session,
    raffle: Raffle,
    request_id: int,
    random_words: Sequence[int],
    payout: PayoutGateway,
    *,
    clock: Optional[Callable[[], int]] = None,
    listeners: Optional[Iterable[DrawEventListener]] = None,
) -> str:
    """Deliver the oracle's answer for ``request_id`` and settle the round.

    Host applications call this from whatever receives the provider's
    fulfillment callback.

    Returns
    -------
    str
        The winning participant.
    """

    engine = DrawEngine(
        session, raffle, payout=payout, clock=clock, listeners=listeners
    )
    return engine.fulfill_random_words(request_id, random_words)


def raffle_summary(session: Session, raffle: Raffle) -> dict[str, Any]:
    """Return a JSON-serializable view of the raffle's public state."""

    engine = DrawEngine(session, raffle)
    return {
        "id": raffle.id,
        "name": raffle.name,
        "state": engine.state.value,
        "entrance_fee": engine.entrance_fee,
        "interval": engine.interval,
        "number_of_players": engine.number_of_players,
        "players": [entry.participant for entry in raffle.entries],
        "pool_balance": engine.pool_balance,
        "last_timestamp": engine.last_timestamp,
        "next_draw_at": next_draw_at(engine.last_timestamp, engine.interval),
        "recent_winner": engine.recent_winner,
        "pending_request_id": raffle.pending_request_id,
        "request_confirmations": engine.request_confirmations,
        "num_words": engine.num_words,
    }
