"""Boundary to the verifiable randomness oracle."""

from .chain import ChainRandomnessCoordinator
from .coordinator import (
    RandomnessConsumer,
    RandomnessCoordinator,
    RandomnessRequestConfig,
    RandomnessSource,
)
from .local import LocalRandomnessCoordinator, derive_random_words

__all__ = [
    "ChainRandomnessCoordinator",
    "LocalRandomnessCoordinator",
    "RandomnessConsumer",
    "RandomnessCoordinator",
    "RandomnessRequestConfig",
    "RandomnessSource",
    "derive_random_words",
]
