"""Settlement of a round's pooled balance to its winner."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from .blockchain.api import ChainClient

logger = logging.getLogger(__name__)


class PayoutGateway(Protocol):
    def transfer(self, recipient: str, amount: int) -> bool:
        """Send ``amount`` to ``recipient``; return ``False`` if it was rejected."""
        ...


class ChainPayoutGateway:
    """Pay winners through the chain gateway's wallet transfer endpoint."""

    def __init__(self, client: "ChainClient", *, memo: Optional[str] = "raffle prize") -> None:
        self._client = client
        self._memo = memo

    def transfer(self, recipient: str, amount: int) -> bool:
        response = self._client.transfer(
            recipient=recipient, amount=amount, memo=self._memo
        )
        if not isinstance(response, dict):
            raise RuntimeError(f"Unexpected transfer response: {response!r}")

        if response.get("status") == "success":
            logger.info(f"Transferred {amount} to {recipient}")
            return True

        message = response.get("message")
        logger.warning(
            f"Transfer of {amount} to {recipient} was rejected"
            + (f": {message}" if message else "")
        )
        return False


__all__ = ["ChainPayoutGateway", "PayoutGateway"]
