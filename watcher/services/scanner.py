"""Position scanner — pages through the protocol's active loans forever."""
from __future__ import annotations

import asyncio
import logging

from ..config import ScannerConfig
from ..interfaces.ledger import LedgerClient
from ..models import Position
from .book import PositionBook

logger = logging.getLogger(__name__)


class PositionScanner:
    """Keeps a :class:`PositionBook` in step with the protocol's open loans.

    Each cycle walks the active-loan set page by page from index 0, because
    loan positions inside the set move as loans open and close. When a page
    comes back empty the cycle is over: ``positions`` is cleared and the walk
    starts again after ``wait_between_rounds``. Liquidation candidates are
    left for the liquidator to consume.

    A failed page query is indistinguishable from the end of the set and
    also ends the cycle. Loan ids can change after a reorganisation, so
    stale or duplicate entries are possible and tolerated.
    """

    def __init__(
        self, ledger: LedgerClient, book: PositionBook, config: ScannerConfig
    ) -> None:
        self._ledger = ledger
        self._book = book
        self._config = config
        self._from = 0
        self._to = config.page_size

    @property
    def window(self) -> tuple[int, int]:
        return self._from, self._to

    def _reset_window(self) -> None:
        self._from = 0
        self._to = self._config.page_size

    async def load_active_positions(self, start: int, end: int) -> list[Position]:
        """Active loans in ``[start, end)``; an empty list on any failure."""
        try:
            return await self._ledger.get_active_loans(start, end - start)
        except Exception as e:
            logger.error("Error loading active loans %d-%d: %s", start, end, e)
            return []

    async def scan_page(self) -> bool:
        """Process one page. Returns True when the page ended the cycle."""
        loans = await self.load_active_positions(self._from, self._to)

        if loans:
            added = self._book.add_page(loans)
            logger.debug(
                "Loans %d-%d: %d returned, %d new", self._from, self._to, len(loans), added
            )
            self._from = self._to
            self._to = self._from + self._config.page_size
            await asyncio.sleep(self._config.page_pause)
            return False

        logger.info(
            "%d active positions found, %d waiting for liquidation",
            len(self._book),
            len(self._book.liquidations),
        )
        await asyncio.sleep(self._config.wait_between_rounds)
        self._reset_window()
        self._book.clear_positions()
        return True

    async def run(self) -> None:
        """Scan forever."""
        logger.info("Start processing active positions (page size %d)", self._config.page_size)
        while True:
            try:
                await self.scan_page()
            except Exception as e:
                logger.error("Error in position scanner: %s", e)
                await asyncio.sleep(self._config.page_pause)
