"""Arbitrage engine — trades the gap between the AMM and the price oracle.

Each round prices a fixed amount of the base currency (the wrapped native
token) in the quote token twice: once along the AMM's conversion path and
once through the oracle. When the two quotes differ by at least the
threshold percentage, the side that is cheap on the AMM is bought:

* AMM quote below oracle: the base currency is cheap on the AMM, so the AMM
  quote's worth of quote token is converted into the base currency.
* Oracle quote below AMM: the base currency is dear on the AMM, so the fixed
  base amount is sold into the quote token.

Realised profit is read back from the swap's ``Conversion`` event and
measured against the oracle rate.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable
from decimal import Decimal

from ..config import AppConfig
from ..interfaces.event_decoder import EventDecoder
from ..interfaces.ledger import LedgerClient
from ..interfaces.notifier import Notifier
from ..interfaces.storage import StatsStore
from ..models import ArbitrageRecord, QuotePair, Wallet, find_event
from ..units import from_wei, to_wei
from .base import NotifyingService

logger = logging.getLogger(__name__)

EXPECTED_PATH_LENGTH = 3


def calc_arbitrage(p1: Decimal, p2: Decimal, threshold: Decimal | float) -> Decimal | None:
    """Return ``min(p1, p2)`` if the two prices differ by ``threshold`` percent or more.

    The difference is measured relative to the smaller price:
    ``|p1 - p2| / min(p1, p2) * 100``.
    """
    smaller = min(p1, p2)
    if smaller <= 0:
        return None
    arbitrage = abs(p1 - p2) / smaller * 100
    if arbitrage >= Decimal(str(threshold)):
        logger.info("Arbitrage (%%): %s", arbitrage)
        return smaller
    logger.info("%s %% price difference is too small for arbitrage", arbitrage)
    return None


def reconcile_profit(
    from_amount: Decimal, to_amount: Decimal, rate: Decimal, selling_base: bool
) -> Decimal:
    """Output received minus what the oracle rate would have paid.

    ``rate`` is quote-token per base unit. Selling the base currency is
    worth ``from_amount * rate``; buying it is worth ``from_amount / rate``.
    """
    expected = from_amount * rate if selling_base else from_amount / rate
    return to_amount - expected


class ArbitrageEngine(NotifyingService):
    """Checks AMM against oracle prices every round and trades the gap."""

    def __init__(
        self,
        ledger: LedgerClient,
        wallet: Wallet,
        decoder: EventDecoder,
        store: StatsStore | None,
        config: AppConfig,
        notifiers: Iterable[Notifier] = (),
    ) -> None:
        super().__init__(notifiers)
        self._ledger = ledger
        self._wallet = wallet
        self._decoder = decoder
        self._store = store
        self._config = config.arbitrage
        self._network = config.network
        self._base = config.tokens.wrapped_native
        self._quote = config.tokens.quote
        self._symbol = config.tokens.native_symbol.lower()
        self._decimals = config.tokens.decimals
        self.amount = Decimal(config.arbitrage.amount)
        self.threshold = Decimal(str(config.arbitrage.threshold))

    # ------------------------------------------------------------------
    # Price queries
    # ------------------------------------------------------------------

    async def get_price_from_amm(self, source_token: str, dest_token: str, amount: int) -> int:
        """AMM return for ``amount`` of ``source_token``; 0 on any failure."""
        try:
            path = await self._ledger.conversion_path(source_token, dest_token)
            return await self._ledger.rate_by_path(path, amount)
        except Exception as e:
            logger.error(
                "Error loading AMM price for src %s, dest %s and amount %d: %s",
                source_token, dest_token, amount, e,
            )
            return 0

    async def get_price_from_price_feed(
        self, source_token: str, dest_token: str, amount: int
    ) -> int:
        """Oracle return for ``amount`` of ``source_token``; 0 on any failure."""
        try:
            return await self._ledger.query_return(source_token, dest_token, amount)
        except Exception as e:
            logger.error(
                "Error loading oracle price for src %s, dest %s and amount %d: %s",
                source_token, dest_token, amount, e,
            )
            return 0

    async def get_prices(self) -> QuotePair:
        amount = to_wei(self.amount, self._decimals)
        amm = from_wei(
            await self.get_price_from_amm(self._base, self._quote, amount), self._decimals
        )
        oracle = from_wei(
            await self.get_price_from_price_feed(self._base, self._quote, amount),
            self._decimals,
        )
        logger.info("%s price amm: %s, price feed: %s", self._symbol, amm, oracle)
        return QuotePair(amm=amm, oracle=oracle)

    # ------------------------------------------------------------------
    # Trading
    # ------------------------------------------------------------------

    async def send_liquidity(self, amount: int, sell_base: bool) -> str | None:
        """Swap ``amount`` raw units into the AMM. Returns the tx hash or None.

        ``sell_base`` swaps base → quote, otherwise quote → base. A missing
        or malformed conversion path aborts the trade quietly.
        """
        source, dest = (self._base, self._quote) if sell_base else (self._quote, self._base)
        logger.info("Send %d of %s to the AMM", amount, source)

        try:
            path = await self._ledger.conversion_path(source, dest)
        except Exception as e:
            logger.error("Error loading conversion path %s -> %s: %s", source, dest, e)
            return None
        if not path or len(path) != EXPECTED_PATH_LENGTH:
            logger.error("Unexpected conversion path %s -> %s: %s", source, dest, path)
            return None

        value = amount if sell_base else 0
        try:
            tx_hash = await self._ledger.convert_by_path(
                self._wallet,
                path,
                amount,
                min_return=self._config.min_return,
                beneficiary=self._wallet.address,
                value=value,
            )
        except Exception as e:
            logger.error("Error on arbitrage tx: %s", e)
            return None

        logger.info("Arbitrage tx successful: %s", tx_hash)
        return tx_hash

    async def calculate_profit(self, tx_hash: str, oracle_quote: Decimal) -> ArbitrageRecord | None:
        """Decode the swap's Conversion event, store and return the trade record."""
        try:
            receipt = await self._ledger.get_transaction_receipt(tx_hash)
            event = find_event(self._decoder.decode_logs(receipt), "Conversion")
            if event is None:
                logger.warning("No Conversion event in %s", tx_hash)
                return None

            args = event.args
            from_token = str(args["fromToken"])
            to_token = str(args["toToken"])
            from_amount = from_wei(int(args["fromAmount"]), self._decimals)
            to_amount = from_wei(int(args["toAmount"]), self._decimals)
            selling_base = from_token.lower() == self._base.lower()
            rate = oracle_quote / self.amount

            record = ArbitrageRecord(
                trader=str(args.get("trader", self._wallet.address)),
                from_token=from_token,
                to_token=to_token,
                from_amount=from_amount,
                to_amount=to_amount,
                profit=reconcile_profit(from_amount, to_amount, rate, selling_base),
                trade=f"sell {self._symbol}" if selling_base else f"buy {self._symbol}",
            )
            logger.info(
                "Arbitrage %s: %s -> %s, profit %s", record.trade,
                record.from_amount, record.to_amount, record.profit,
            )
            if self._store is not None:
                await self._store.add_arbitrage(record)
            return record
        except Exception as e:
            logger.error("Error when calculating arbitrage profit: %s", e)
            return None

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    async def check_once(self) -> ArbitrageRecord | None:
        """One price comparison and, if warranted, one trade."""
        prices = await self.get_prices()
        if not prices.is_valid:
            return None

        smaller = calc_arbitrage(prices.amm, prices.oracle, self.threshold)
        if smaller is None:
            return None

        if smaller == prices.amm:
            logger.info("Buy %s on the AMM", self._symbol)
            tx_hash = await self.send_liquidity(to_wei(prices.amm, self._decimals), sell_base=False)
        else:
            logger.info("Sell %s on the AMM", self._symbol)
            tx_hash = await self.send_liquidity(to_wei(self.amount, self._decimals), sell_base=True)

        if not tx_hash:
            return None

        record = await self.calculate_profit(tx_hash, prices.oracle)
        if record is not None:
            await self._send_log(
                f"{self._network}net-arbitrage {record.trade}: {record.from_amount} -> "
                f"{record.to_amount}, profit {record.profit}\n{tx_hash}"
            )
        return record

    async def run(self) -> None:
        """Check prices forever."""
        logger.info(
            "Started arbitrage checks (amount %s, threshold %s%%)", self.amount, self.threshold
        )
        while True:
            try:
                await self.check_once()
                logger.info("Completed checking prices")
            except Exception as e:
                logger.error("Error in arbitrage round: %s", e)
            await asyncio.sleep(self._config.scan_interval)
