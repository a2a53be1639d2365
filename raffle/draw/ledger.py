"""Ordered entry ledger of the active round."""

from __future__ import annotations

from sqlalchemy.orm import Session

from ..errors import IndexOutOfRange
from ..models import Raffle, RaffleEntry


class EntryLedger:
    """Append-only (per round) sequence of entries for ``raffle``.

    Entries are addressed by their zero-based position, which stays stable
    until :meth:`clear` resets the round.
    """

    def __init__(self, session: Session, raffle: Raffle) -> None:
        self._session = session
        self._raffle = raffle

    def append(self, participant: str, value: int, *, entered_at: int) -> RaffleEntry:
        entry = RaffleEntry(
            participant=participant,
            value=value,
            position=len(self._raffle.entries),
            entered_at=entered_at,
        )
        self._raffle.entries.append(entry)
        self._session.flush()
        return entry

    def get(self, index: int) -> RaffleEntry:
        entries = self._raffle.entries
        if index < 0 or index >= len(entries):
            raise IndexOutOfRange(index, len(entries))
        return entries[index]

    def count(self) -> int:
        return len(self._raffle.entries)

    def clear(self) -> None:
        # Flush the deletes now so the next round can reuse positions.
        self._raffle.entries.clear()
        self._session.flush()

    def __len__(self) -> int:
        return self.count()


__all__ = ["EntryLedger"]
