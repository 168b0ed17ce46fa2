"""Shared position state between the scanner and the liquidator."""
from __future__ import annotations

import logging
from collections.abc import Iterable

from ..models import Position

logger = logging.getLogger(__name__)


class PositionBook:
    """Open positions and liquidation candidates keyed by loan id.

    The scanner is the only writer of ``positions`` and the only producer of
    ``liquidations``; the liquidator drains ``liquidations`` one candidate at
    a time through :meth:`take`. Every method runs without awaiting, so each
    call is atomic with respect to the other tasks on the event loop.
    """

    def __init__(self) -> None:
        self.positions: dict[str, Position] = {}
        self.liquidations: dict[str, Position] = {}

    def add_page(self, loans: Iterable[Position]) -> int:
        """Merge one scan page. Returns the number of newly seen positions.

        Positions are insert-only within a cycle. Liquidatable entries are
        inserted or refreshed in ``liquidations``.
        """
        added = 0
        for loan in loans:
            if not loan.loan_id:
                continue
            if loan.loan_id not in self.positions:
                self.positions[loan.loan_id] = loan
                added += 1
            if loan.is_liquidatable:
                self.liquidations[loan.loan_id] = loan
        return added

    def clear_positions(self) -> None:
        """Forget all open positions; liquidation candidates are kept."""
        self.positions.clear()

    def pending(self) -> list[Position]:
        """Snapshot of the current liquidation candidates."""
        return list(self.liquidations.values())

    def take(self, loan_id: str) -> Position | None:
        """Remove a candidate at dispatch time, whatever the outcome will be."""
        return self.liquidations.pop(loan_id, None)

    def __len__(self) -> int:
        return len(self.positions)
