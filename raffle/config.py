"""Environment-driven settings for a raffle deployment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

# 0.01 of a currency unit with 18 decimals.
DEFAULT_ENTRANCE_FEE = 10**16
DEFAULT_INTERVAL_SECONDS = 30
DEFAULT_CALLBACK_GAS_LIMIT = 500_000
DEFAULT_REQUEST_CONFIRMATIONS = 3
DEFAULT_NUM_WORDS = 1
DEFAULT_KEY_HASH = "0x" + "00" * 32
DEFAULT_KEEPER_POLL_SECONDS = 5.0


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip(), 0)
    except ValueError as exc:
        raise ValueError(f"Environment variable '{name}' must be an integer, got {raw!r}") from exc


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable '{name}' must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class RaffleSettings:
    """Construction parameters of a raffle.

    Attributes
    ----------
    name : str
        Unique name of the raffle row.
    entrance_fee : int
        Minimum entry value in the smallest currency unit.
    interval_seconds : int
        Minimum seconds between draws.
    key_hash : str
        Randomness-provider routing key.
    subscription_id : str
        Randomness-provider subscription.
    callback_gas_limit : int
        Budget for the provider's fulfillment callback.
    request_confirmations : int
        Confirmations the provider waits for before answering.
    num_words : int
        Number of random values requested per draw; only the first is used.
    keeper_poll_seconds : float
        Cadence of the upkeep keeper loop.
    """

    name: str = "default"
    entrance_fee: int = DEFAULT_ENTRANCE_FEE
    interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    key_hash: str = DEFAULT_KEY_HASH
    subscription_id: str = "local"
    callback_gas_limit: int = DEFAULT_CALLBACK_GAS_LIMIT
    request_confirmations: int = DEFAULT_REQUEST_CONFIRMATIONS
    num_words: int = DEFAULT_NUM_WORDS
    keeper_poll_seconds: float = DEFAULT_KEEPER_POLL_SECONDS

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name must not be empty")
        for field_name in (
            "entrance_fee",
            "interval_seconds",
            "callback_gas_limit",
            "request_confirmations",
            "num_words",
        ):
            if getattr(self, field_name) <= 0:
                raise ValueError(f"{field_name} must be positive")
        if not self.key_hash or not self.subscription_id:
            raise ValueError("key_hash and subscription_id must not be empty")
        if self.keeper_poll_seconds <= 0:
            raise ValueError("keeper_poll_seconds must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RaffleSettings":
        """Build settings from ``environ``, or from ``os.environ`` after loading ``.env``."""
        if environ is None:
            load_dotenv()
            environ = os.environ

        return cls(
            name=environ.get("RAFFLE_NAME") or "default",
            entrance_fee=_env_int(environ, "RAFFLE_ENTRANCE_FEE", DEFAULT_ENTRANCE_FEE),
            interval_seconds=_env_int(
                environ, "RAFFLE_INTERVAL_SECONDS", DEFAULT_INTERVAL_SECONDS
            ),
            key_hash=environ.get("VRF_KEY_HASH") or DEFAULT_KEY_HASH,
            subscription_id=environ.get("VRF_SUBSCRIPTION_ID") or "local",
            callback_gas_limit=_env_int(
                environ, "VRF_CALLBACK_GAS_LIMIT", DEFAULT_CALLBACK_GAS_LIMIT
            ),
            request_confirmations=_env_int(
                environ, "VRF_REQUEST_CONFIRMATIONS", DEFAULT_REQUEST_CONFIRMATIONS
            ),
            num_words=_env_int(environ, "VRF_NUM_WORDS", DEFAULT_NUM_WORDS),
            keeper_poll_seconds=_env_float(
                environ, "KEEPER_POLL_SECONDS", DEFAULT_KEEPER_POLL_SECONDS
            ),
        )


__all__ = ["RaffleSettings"]
