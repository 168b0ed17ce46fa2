"""Conversion between raw token units and decimal amounts."""
from __future__ import annotations

from decimal import ROUND_DOWN, Decimal


def to_wei(amount: Decimal | str | int, decimals: int = 18) -> int:
    """Decimal amount → raw units, truncating dust below one unit."""
    scaled = Decimal(amount) * (Decimal(10) ** decimals)
    return int(scaled.to_integral_value(rounding=ROUND_DOWN))


def from_wei(value: int, decimals: int = 18) -> Decimal:
    return Decimal(int(value)) / (Decimal(10) ** decimals)
