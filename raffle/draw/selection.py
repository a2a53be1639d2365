"""Winner selection from a verifiable random value."""

from __future__ import annotations


def winner_index(random_word: int, entry_count: int) -> int:
    """Map ``random_word`` onto an entry index in ``[0, entry_count)``.

    Parameters
    ----------
    random_word : int
        First value delivered by the randomness oracle; a large unsigned
        integer.
    entry_count : int
        Number of entries in the round.

    Returns
    -------
    int
        ``random_word % entry_count``.

    Notes
    -----
    The reduction is only approximately uniform when ``entry_count`` does not
    divide the range of ``random_word``. With 256-bit words the bias is
    negligible and is kept as is.
    """

    if entry_count <= 0:
        raise ValueError("entry_count must be positive to select a winner")
    if random_word < 0:
        raise ValueError("random_word must be a non-negative integer")
    return random_word % entry_count


__all__ = ["winner_index"]
