from decimal import Decimal
from typing import Optional


class MooMinesError(Exception):
    """Base class for game and economy errors."""


class NoFunds(MooMinesError):
    """Raised when a round is started with an empty balance."""

    def __init__(self, balance: Decimal, time_until_claim_ms: Optional[int] = None):
        self.balance = balance
        self.time_until_claim_ms = time_until_claim_ms
        super().__init__(f"Cannot start a round with balance {balance}")


class InsufficientFunds(MooMinesError):
    def __init__(self, requested: Decimal, available: Decimal):
        self.requested = requested
        self.available = available
        super().__init__(f"Cannot deduct {requested}: only {available} available")


class InvalidAmount(MooMinesError, ValueError):
    """Raised for negative, non-finite, or non-numeric point amounts."""
