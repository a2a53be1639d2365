"""In-process randomness coordinator for local runs and tests."""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Optional, Sequence

from .coordinator import RandomnessConsumer, RandomnessRequestConfig

logger = logging.getLogger(__name__)


def derive_random_words(seed: bytes, request_id: int, num_words: int) -> list[int]:
    """Return ``num_words`` 256-bit integers derived from ``seed`` and ``request_id``."""
    words: list[int] = []
    for i in range(num_words):
        digest = hashlib.sha256(
            seed + request_id.to_bytes(32, "big") + i.to_bytes(32, "big")
        ).digest()
        words.append(int.from_bytes(digest, "big"))
    return words


class LocalRandomnessCoordinator:
    """Coordinator that keeps requests in memory and fulfills them on demand.

    Request identifiers are sequential, starting at 1. A request stays
    pending until a consumer accepts its fulfillment, so a fulfillment that
    raises can be delivered again.
    """

    def __init__(self, *, seed: bytes = b"") -> None:
        self._seed = seed
        self._next_request_id = 1
        self._pending: dict[int, RandomnessRequestConfig] = {}

    def request_random_words(self, config: RandomnessRequestConfig) -> int:
        if config.num_words <= 0:
            raise ValueError("num_words must be positive")
        request_id = self._next_request_id
        self._next_request_id += 1
        self._pending[request_id] = config
        logger.debug(
            f"Queued randomness request {request_id} for {config.num_words} word(s)"
        )
        return request_id

    @property
    def pending_requests(self) -> dict[int, RandomnessRequestConfig]:
        """Return a copy of the outstanding requests keyed by identifier."""
        return dict(self._pending)

    def fulfill_random_words(
        self,
        request_id: int,
        consumer: RandomnessConsumer,
        random_words: Optional[Sequence[int]] = None,
    ) -> Any:
        """Deliver random words for ``request_id`` to ``consumer``.

        Parameters
        ----------
        request_id : int
            Identifier returned by :meth:`request_random_words`.
        consumer : RandomnessConsumer
            Receiver of the callback, typically a ``DrawEngine``.
        random_words : Optional[Sequence[int]], default: None
            Values to deliver instead of the derived ones.

        Returns
        -------
        Any
            Whatever the consumer's callback returns.

        Raises
        ------
        ValueError
            If the request is unknown or already fulfilled, or if
            ``random_words`` is empty.
        """
        config = self._pending.get(request_id)
        if config is None:
            raise ValueError(f"Randomness request {request_id} is not pending")

        if random_words is None:
            words = derive_random_words(self._seed, request_id, config.num_words)
        else:
            words = [int(word) for word in random_words]
        if not words:
            raise ValueError("random_words must contain at least one value")

        result = consumer.fulfill_random_words(request_id, words)
        del self._pending[request_id]
        logger.debug(f"Fulfilled randomness request {request_id}")
        return result


__all__ = ["LocalRandomnessCoordinator", "derive_random_words"]
