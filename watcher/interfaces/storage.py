"""Stats store protocol — persistence of liquidation and arbitrage outcomes."""
from typing import Protocol

from ..models import ArbitrageRecord, LiquidationRecord


class StatsStore(Protocol):
    """Abstract interface for recording outcome statistics."""

    async def add_liquidate(self, record: LiquidationRecord) -> None: ...

    async def add_arbitrage(self, record: ArbitrageRecord) -> None: ...
