"""Data models for positions, wallets, decoded events and outcome records."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class Position:
    """One open loan as reported by the lending protocol.

    ``loan_id`` is not guaranteed stable across chain reorganisations.
    Amounts are raw token units (wei).
    """

    loan_id: str
    loan_token: str
    max_liquidatable: int
    collateral_token: str = ""
    principal: int = 0
    collateral: int = 0
    current_margin: int = 0
    maintenance_margin: int = 0
    max_seizable: int = 0
    raw: tuple[Any, ...] = ()

    @property
    def is_liquidatable(self) -> bool:
        return self.max_liquidatable > 0


@dataclass
class Wallet:
    """A funded operational account scoped to a purpose."""

    address: str
    purpose: str
    private_key: str = field(default="", repr=False)
    label: str = ""
    balances: dict[str, int] = field(default_factory=dict)
    busy: set[tuple[str, str]] = field(default_factory=set)

    def balance_of(self, currency: str) -> int:
        return self.balances.get(currency.lower(), 0)

    @property
    def is_busy(self) -> bool:
        return bool(self.busy)


@dataclass(frozen=True)
class QuotePair:
    """AMM and oracle quotes for converting the same notional amount."""

    amm: Decimal
    oracle: Decimal

    @property
    def is_valid(self) -> bool:
        return self.amm > 0 and self.oracle > 0


@dataclass(frozen=True)
class DecodedEvent:
    """A receipt log decoded into a named event with plain arguments."""

    name: str
    args: dict[str, Any]
    address: str = ""


def find_event(events: Iterable[DecodedEvent], name: str) -> DecodedEvent | None:
    """Return the first decoded event called ``name``."""
    for event in events:
        if event.name == name:
            return event
    return None


@dataclass(frozen=True)
class LiquidationRecord:
    liquidator: str
    liquidated: str
    amount: int
    side: str
    loan_id: str
    profit: Decimal
    tx_hash: str


@dataclass(frozen=True)
class ArbitrageRecord:
    trader: str
    from_token: str
    to_token: str
    from_amount: Decimal
    to_amount: Decimal
    profit: Decimal
    trade: str
