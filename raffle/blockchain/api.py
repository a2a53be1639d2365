import os
from typing import Any, Mapping, Optional
from urllib.parse import urljoin

from dotenv import load_dotenv

from .utils import open_session


class ChainClient:
    """HTTP client for the chain gateway that hosts randomness and payouts."""

    def __init__(
        self,
        base_fqdn: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: int = 45,
    ):
        load_dotenv()
        fqdn = base_fqdn or os.getenv("CHAIN_GATEWAY_FQDN")
        if not fqdn:
            raise ValueError("Environment variable 'CHAIN_GATEWAY_FQDN' is not set")
        key = api_key or os.getenv("CHAIN_GATEWAY_API_KEY")
        if not key:
            raise ValueError("Environment variable 'CHAIN_GATEWAY_API_KEY' is not set")

        self.base_url = f"https://{fqdn}".rstrip("/")
        self.timeout = timeout
        self.session = open_session(self.base_url, key, timeout=timeout)

    @property
    def json_headers(self) -> Mapping[str, str]:
        return {"Content-Type": "application/json"}

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=self.json_headers if json is not None else None,
            params=params,
            json=json,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    # -------- API callers --------
    def request_random_words(
        self,
        *,
        consumer: str,
        key_hash: str,
        subscription_id: str,
        request_confirmations: int,
        callback_gas_limit: int,
        num_words: int,
    ) -> dict:
        """Ask the verifiable randomness provider for ``num_words`` values.

        The response carries the provider's ``request_id``; the random words
        become available through :meth:`get_randomness_request` once the
        provider answers.
        """
        return self._request(
            "POST",
            "/api/v1/vrf/requests",
            json={
                "consumer": consumer,
                "key_hash": key_hash,
                "subscription_id": subscription_id,
                "request_confirmations": request_confirmations,
                "callback_gas_limit": callback_gas_limit,
                "num_words": num_words,
            },
        )

    def get_randomness_request(self, request_id: int) -> dict:
        return self._request("GET", f"/api/v1/vrf/requests/{request_id}")

    def transfer(
        self, *, recipient: str, amount: int, memo: Optional[str] = None
    ) -> dict:
        """Transfer ``amount`` from the raffle wallet to ``recipient``."""
        payload: dict[str, Any] = {"recipient": recipient, "amount": str(amount)}
        if memo is not None:
            payload["memo"] = memo
        return self._request("POST", "/api/v1/wallet/transfer", json=payload)
