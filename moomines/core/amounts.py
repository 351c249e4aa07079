"""
Point amounts are fixed-point decimals with two places.
Every balance, wager and payout goes through `to_points`.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from moomines.core.exceptions import InvalidAmount

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def parse_amount(value) -> Decimal:
    """
    Convert an int, float, str or Decimal to a finite Decimal, unrounded.

    Floats are converted through their shortest repr so 0.1 stays 0.1
    instead of picking up binary noise.
    """
    if isinstance(value, bool):
        raise InvalidAmount(f"Not an amount: {value!r}")
    if isinstance(value, float):
        value = repr(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmount(f"Not an amount: {value!r}")
    if not amount.is_finite():
        raise InvalidAmount(f"Amount must be finite: {value!r}")
    return amount


def to_points(value) -> Decimal:
    """Convert to a 2-place Decimal (half-up)."""
    amount = parse_amount(value)
    try:
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # More digits than the decimal context holds
        raise InvalidAmount(f"Amount too large: {value!r}")


def multiply(amount: Decimal, factor: Decimal) -> Decimal:
    """Multiply and round back to points."""
    return (amount * factor).quantize(CENT, rounding=ROUND_HALF_UP)
