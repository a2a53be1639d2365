"""Contract between the draw engine and a verifiable randomness oracle.

The engine issues a request through :class:`RandomnessCoordinator` and, at
some later point, the oracle calls back
:meth:`RandomnessConsumer.fulfill_random_words` exactly once with a non-empty
sequence of large unsigned integers. Only the first value is consumed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence


@dataclass(frozen=True)
class RandomnessRequestConfig:
    """Provider routing parameters forwarded with each request.

    The values are opaque to the draw engine and passed through unchanged.
    """

    key_hash: str
    subscription_id: str
    request_confirmations: int
    callback_gas_limit: int
    num_words: int


class RandomnessCoordinator(Protocol):
    def request_random_words(self, config: RandomnessRequestConfig) -> int:
        """Submit a randomness request and return its identifier."""
        ...


class RandomnessConsumer(Protocol):
    def fulfill_random_words(
        self, request_id: int, random_words: Sequence[int]
    ) -> Any:
        """Receive the random values for ``request_id``."""
        ...


class RandomnessSource(Protocol):
    def fetch_random_words(self, request_id: int) -> Optional[list[int]]:
        """Return the values delivered for ``request_id``, or ``None`` while pending."""
        ...


__all__ = [
    "RandomnessConsumer",
    "RandomnessCoordinator",
    "RandomnessRequestConfig",
    "RandomnessSource",
]
