"""Provably-fair autonomous raffle draws."""

__version__ = "0.1.0"
