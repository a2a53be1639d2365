"""Randomness coordinator backed by the chain gateway."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from .coordinator import RandomnessRequestConfig

if TYPE_CHECKING:
    from ..blockchain.api import ChainClient

logger = logging.getLogger(__name__)


class ChainRandomnessCoordinator:
    """Submit randomness requests for ``consumer`` through a :class:`ChainClient`.

    The gateway records the provider's answer against the request;
    :meth:`fetch_random_words` reads it back so the keeper can deliver the
    fulfillment to the draw engine.
    """

    def __init__(self, client: "ChainClient", consumer: str) -> None:
        if not consumer:
            raise ValueError("consumer must identify the raffle on the provider")
        self._client = client
        self._consumer = consumer

    def request_random_words(self, config: RandomnessRequestConfig) -> int:
        response = self._client.request_random_words(
            consumer=self._consumer,
            key_hash=config.key_hash,
            subscription_id=config.subscription_id,
            request_confirmations=config.request_confirmations,
            callback_gas_limit=config.callback_gas_limit,
            num_words=config.num_words,
        )
        if not isinstance(response, dict) or response.get("request_id") is None:
            raise RuntimeError(f"Unexpected randomness request response: {response!r}")

        request_id = int(response["request_id"])
        logger.info(f"Randomness request {request_id} submitted for {self._consumer}")
        return request_id

    def fetch_random_words(self, request_id: int) -> Optional[list[int]]:
        """Return the provider's random words for ``request_id``.

        Returns ``None`` while the provider has not answered yet.

        Raises
        ------
        RuntimeError
            If the gateway response is not a JSON object.
        """
        response = self._client.get_randomness_request(request_id)
        if not isinstance(response, dict):
            raise RuntimeError(f"Unexpected randomness request response: {response!r}")

        words = response.get("random_words")
        if not words:
            logger.debug(f"Randomness request {request_id} is still pending")
            return None
        return [int(word) for word in words]


__all__ = ["ChainRandomnessCoordinator"]
