from __future__ import annotations

from decimal import Decimal


def from_base_units(value: int, decimals: int) -> Decimal:
    """Convert an integer amount in base units to a token amount.

    Args:
        value: Integer amount expressed with ``decimals`` decimal places.
        decimals: Decimal precision of the token.

    Returns:
        The human-readable amount as a Decimal, with no float rounding.
    """
    if decimals < 0:
        raise ValueError(f"decimals must be non-negative, got {decimals}")
    return Decimal(value).scaleb(-decimals)


def to_decimal(value: float | int | Decimal) -> Decimal:
    """Lift a float into Decimal through its shortest repr, so 0.3 stays 0.3."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))
