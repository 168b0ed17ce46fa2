"""Watcher orchestration — wires the ledger, the book and the service loops."""
from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from ..chains.evm import EvmLedgerClient, ReceiptDecoder
from ..config import ARBITRAGE, LIQUIDATOR, AppConfig
from ..interfaces.event_decoder import EventDecoder
from ..interfaces.ledger import LedgerClient
from ..interfaces.notifier import Notifier
from ..interfaces.storage import StatsStore
from ..models import QuotePair
from ..notifications import TelegramNotifier
from ..storage import SqliteStatsStore
from .arbitrage import ArbitrageEngine
from .book import PositionBook
from .liquidator import Liquidator
from .scanner import PositionScanner
from .wallets import WalletAllocator

logger = logging.getLogger(__name__)


class Watcher:
    """Builds every service from one :class:`AppConfig` and runs them together.

    Collaborators can be injected for testing; anything left out is built
    from the configuration. With ``record_stats`` off and no store given, no
    statistics database is opened.
    """

    def __init__(
        self,
        config: AppConfig,
        ledger: LedgerClient | None = None,
        decoder: EventDecoder | None = None,
        store: StatsStore | None = None,
        notifiers: list[Notifier] | None = None,
        record_stats: bool = True,
    ) -> None:
        self._config = config

        self._ledger: LedgerClient = ledger or EvmLedgerClient(config.ledger, config.contracts)
        self._decoder: EventDecoder = decoder or ReceiptDecoder()
        if store is None and record_stats:
            store = SqliteStatsStore(config.storage.db_path)
        self._store: StatsStore | None = store

        if notifiers is None:
            notifiers = []
            if config.notifications.telegram.enabled:
                notifiers.append(TelegramNotifier(config.notifications.telegram))
        self._notifiers = notifiers

        self.book = PositionBook()
        self.allocator = WalletAllocator.from_config(config.wallets)
        self.scanner = PositionScanner(self._ledger, self.book, config.scanner)
        self.liquidator = Liquidator(
            self._ledger, self.allocator, self.book, self._decoder,
            self._store, config, self._notifiers,
        )

        self.arbitrage: ArbitrageEngine | None = None
        arbitrage_wallets = self.allocator.wallets(ARBITRAGE)
        if arbitrage_wallets:
            self.arbitrage = ArbitrageEngine(
                self._ledger, arbitrage_wallets[0], self._decoder,
                self._store, config, self._notifiers,
            )

    async def run(
        self, scan: bool = True, liquidate: bool = True, arbitrage: bool = True
    ) -> None:
        """Run the selected loops until cancelled."""
        loops = []
        if scan:
            loops.append(self.scanner.run())
        if liquidate and self._config.liquidator.enabled:
            if self.allocator.wallets(LIQUIDATOR):
                loops.append(self.liquidator.run())
            else:
                logger.warning("No liquidator wallets configured, liquidator not started")
        if arbitrage and self._config.arbitrage.enabled:
            if self.arbitrage is not None:
                loops.append(self.arbitrage.run())
            else:
                logger.warning("No arbitrage wallet configured, arbitrage not started")

        if not loops:
            logger.warning("Nothing to run")
            return

        logger.info("Starting %d loops on %snet", len(loops), self._config.network)
        await asyncio.gather(*loops)

    async def check_prices(self) -> tuple[QuotePair, Decimal | None]:
        """One AMM/oracle comparison without trading.

        Returns the quote pair and the price delta in percent, or ``None``
        when either quote is unavailable.
        """
        if self.arbitrage is None:
            raise RuntimeError("An arbitrage wallet is required to check prices")

        prices = await self.arbitrage.get_prices()
        if not prices.is_valid:
            logger.warning("Price check incomplete: %s", prices)
            return prices, None

        delta = abs(prices.amm - prices.oracle) / min(prices.amm, prices.oracle) * 100
        logger.info("Price delta: %s%%", delta)
        return prices, delta
