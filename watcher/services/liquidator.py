"""Liquidator — drains liquidation candidates and submits liquidations."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from ..config import LIQUIDATOR, AppConfig
from ..interfaces.event_decoder import EventDecoder
from ..interfaces.ledger import LedgerClient
from ..interfaces.notifier import Notifier
from ..interfaces.storage import StatsStore
from ..models import LiquidationRecord, Position, Wallet, find_event
from ..units import from_wei
from .base import NotifyingService
from .book import PositionBook
from .wallets import WalletAllocator

logger = logging.getLogger(__name__)

EXPECTED_PATH_LENGTH = 3


class Liquidator(NotifyingService):
    """Liquidates every candidate in the book, one wallet per loan.

    A candidate leaves the book the moment its liquidation is dispatched,
    whether or not the transaction later succeeds. A failed loan comes back
    only if the scanner finds it still liquidatable in a later cycle.
    """

    def __init__(
        self,
        ledger: LedgerClient,
        allocator: WalletAllocator,
        book: PositionBook,
        decoder: EventDecoder,
        store: StatsStore | None,
        config: AppConfig,
        notifiers: Iterable[Notifier] = (),
    ) -> None:
        super().__init__(notifiers)
        self._ledger = ledger
        self._allocator = allocator
        self._book = book
        self._decoder = decoder
        self._store = store
        self._config = config.liquidator
        self._network = config.network
        self._tokens = config.tokens
        self._spender = config.contracts.swaps_impl or config.contracts.swap_network
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Currency helpers
    # ------------------------------------------------------------------

    def _is_native(self, token: str) -> bool:
        return bool(token) and token.lower() == self._tokens.wrapped_native.lower()

    def currency_of(self, position: Position) -> str:
        """Wallet currency a liquidation of ``position`` pays in."""
        if self._is_native(position.loan_token):
            return self._tokens.native_symbol.lower()
        return position.loan_token.lower()

    def _balance_sources(self, positions: Iterable[Position]) -> dict[str, str | None]:
        sources: dict[str, str | None] = {}
        for position in positions:
            currency = self.currency_of(position)
            sources[currency] = None if self._is_native(position.loan_token) else position.loan_token
        return sources

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    async def process_round(self) -> int:
        """Dispatch a liquidation for every candidate. Returns the dispatch count."""
        candidates = self._book.pending()
        logger.info("%d positions need to be liquidated", len(candidates))
        if not candidates:
            return 0

        await self._allocator.refresh_balances(
            self._ledger, LIQUIDATOR, self._balance_sources(candidates)
        )

        dispatched = 0
        for position in candidates:
            loan_id = position.loan_id
            if self._allocator.check_if_busy(LIQUIDATOR, loan_id):
                continue

            wallet = await self._allocator.acquire(
                LIQUIDATOR, position.max_liquidatable, self.currency_of(position), loan_id
            )
            if wallet is None:
                if not self._allocator.check_if_busy(LIQUIDATOR, loan_id):
                    await self.handle_no_wallet_error(loan_id)
                continue

            try:
                nonce = await self._ledger.get_transaction_count(wallet.address)
            except Exception as e:
                logger.error("Could not fetch nonce for %s: %s", wallet.address, e)
                await self._allocator.remove_from_queue(LIQUIDATOR, wallet.address, loan_id)
                continue

            self._dispatch(position, wallet, nonce)
            dispatched += 1
            await asyncio.sleep(self._config.dispatch_pause)

        return dispatched

    def _dispatch(self, position: Position, wallet: Wallet, nonce: int) -> None:
        self._book.take(position.loan_id)
        task = asyncio.create_task(self.liquidate(position, wallet, nonce))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def wait_pending(self) -> None:
        """Wait for every in-flight liquidation to settle."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def run(self) -> None:
        """Run liquidation rounds forever."""
        logger.info("Started liquidator")
        while True:
            try:
                await self.process_round()
                logger.info("Completed liquidation round")
            except Exception as e:
                logger.error("Error in liquidation round: %s", e)
            await asyncio.sleep(self._config.scan_interval)

    # ------------------------------------------------------------------
    # Single liquidation
    # ------------------------------------------------------------------

    async def liquidate(self, position: Position, wallet: Wallet, nonce: int) -> bool:
        """Liquidate ``position`` from ``wallet``, which also receives the collateral.

        The wallet must already be marked busy for the loan.
        """
        loan_id = position.loan_id
        amount = position.max_liquidatable
        value = amount if self._is_native(position.loan_token) else 0
        logger.info(
            "Trying to liquidate loan %s from wallet %s, amount %d, value %d, nonce %d",
            loan_id, wallet.address, amount, value, nonce,
        )

        try:
            tx_hash = await self._ledger.liquidate(wallet, loan_id, amount, nonce, value=value)
        except Exception as e:
            logger.error("Error on liquidating loan %s: %s", loan_id, e)
            await self.handle_liq_error(wallet, loan_id)
            return False

        logger.info("Loan %s liquidated: %s", loan_id, tx_hash)
        # The swap-back sends from the same wallet, so it stays busy until done.
        try:
            await self.handle_liq_success(wallet, loan_id, tx_hash)
            await self.record_liquidation(wallet, tx_hash)
        finally:
            await self._allocator.remove_from_queue(LIQUIDATOR, wallet.address, loan_id)
        return True

    async def handle_liq_success(self, wallet: Wallet, loan_id: str, tx_hash: str) -> None:
        await self._send_log(
            f"{self._network}net-liquidation of loan {loan_id} successful.\n{tx_hash}"
        )

    async def handle_liq_error(self, wallet: Wallet, loan_id: str) -> None:
        """Escalate a failed liquidation only when the loan is still liquidatable.

        Otherwise someone else got there first or the price moved back.
        """
        await self._allocator.remove_from_queue(LIQUIDATOR, wallet.address, loan_id)
        try:
            updated = await self._ledger.get_loan(loan_id)
        except Exception as e:
            logger.error("Could not re-check loan %s: %s", loan_id, e)
            await self._send_alert(
                f"{self._network}net-liquidation of loan {loan_id} failed and its "
                f"status could not be checked. Please check manually.",
                subject="Liquidation failed",
            )
            return

        if updated.max_liquidatable > 0:
            logger.warning("Loan %s should still be liquidated. Please check manually", loan_id)
            await self._send_alert(
                f"{self._network}net-liquidation of loan {loan_id} failed.",
                subject="Liquidation failed",
            )

    async def handle_no_wallet_error(self, loan_id: str) -> None:
        logger.error(
            "Liquidation of loan %s failed because no wallet with enough funds was available",
            loan_id,
        )
        await self._send_alert(
            f"{self._network}net-liquidation of loan {loan_id} failed because no wallet "
            f"with enough funds was found.",
            subject="No funded wallet",
        )

    # ------------------------------------------------------------------
    # Swap-back and statistics
    # ------------------------------------------------------------------

    async def record_liquidation(self, wallet: Wallet, tx_hash: str) -> LiquidationRecord | None:
        """Swap the seized collateral back to the loan token and store the result.

        Profit is the loan-token balance gained by the swap. Any failure is
        logged and leaves the collateral where it is.
        """
        try:
            receipt = await self._ledger.get_transaction_receipt(tx_hash)
            event = find_event(self._decoder.decode_logs(receipt), "Liquidate")
            if event is None:
                logger.warning("No Liquidate event in %s", tx_hash)
                return None

            args = event.args
            user = args.get("user")
            liquidator = args.get("liquidator")
            loan_id = args.get("loanId")
            if not (user and liquidator and loan_id):
                logger.warning("Incomplete Liquidate event in %s", tx_hash)
                return None

            loan_token = args["loanToken"]
            collateral_token = args["collateralToken"]
            seized = int(args["collateralWithdrawAmount"])

            path = await self._ledger.conversion_path(collateral_token, loan_token)
            if not path or len(path) != EXPECTED_PATH_LENGTH:
                logger.warning(
                    "No usable conversion path %s -> %s", collateral_token, loan_token
                )
                return None

            balance_before = await self._ledger.get_balance(liquidator, loan_token)
            await self._ledger.approve(wallet, collateral_token, self._spender, seized)
            await self._ledger.convert_by_path(
                wallet, path, seized, min_return=1, beneficiary=liquidator
            )
            balance_after = await self._ledger.get_balance(liquidator, loan_token)

            record = LiquidationRecord(
                liquidator=liquidator,
                liquidated=user,
                amount=seized,
                side="long" if self._is_native(loan_token) else "short",
                loan_id=str(loan_id),
                profit=from_wei(balance_after - balance_before, self._tokens.decimals),
                tx_hash=tx_hash,
            )
            if self._store is not None:
                await self._store.add_liquidate(record)
            return record
        except Exception as e:
            logger.error("Error recording liquidation %s: %s", tx_hash, e)
            return None
