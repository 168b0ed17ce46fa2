"""Funded wallet pool with a busy queue per (purpose, target)."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping

from ..config import WalletConfig
from ..interfaces.ledger import LedgerClient
from ..models import Wallet

logger = logging.getLogger(__name__)


class WalletAllocator:
    """Hands out wallets with enough funds that are not already in flight.

    Selection and busy-queue changes share one lock, so two concurrent
    requests can never receive the same wallet and one target can never be
    worked on by two wallets at once. Balances are a snapshot refreshed by
    :meth:`refresh_balances` and may lag the ledger.
    """

    def __init__(self, wallets: Iterable[Wallet]) -> None:
        self._wallets: dict[str, list[Wallet]] = {}
        for wallet in wallets:
            self._wallets.setdefault(wallet.purpose, []).append(wallet)
        self._lock = asyncio.Lock()

    @classmethod
    def from_config(cls, configs: Iterable[WalletConfig]) -> "WalletAllocator":
        return cls(
            Wallet(
                address=c.address,
                purpose=c.purpose,
                private_key=c.private_key,
                label=c.label,
            )
            for c in configs
        )

    def wallets(self, purpose: str) -> list[Wallet]:
        return list(self._wallets.get(purpose, []))

    def _find(self, purpose: str, address: str) -> Wallet | None:
        for wallet in self._wallets.get(purpose, []):
            if wallet.address.lower() == address.lower():
                return wallet
        return None

    def _select(self, purpose: str, min_amount: int, currency: str) -> Wallet | None:
        for wallet in self._wallets.get(purpose, []):
            if wallet.is_busy:
                continue
            if wallet.balance_of(currency) >= min_amount:
                return wallet
        return None

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    async def get_wallet(self, purpose: str, min_amount: int, currency: str) -> Wallet | None:
        """Return an idle wallet holding at least ``min_amount`` of ``currency``."""
        async with self._lock:
            return self._select(purpose, min_amount, currency)

    async def acquire(
        self, purpose: str, min_amount: int, currency: str, target_id: str
    ) -> Wallet | None:
        """Select a wallet and mark it busy for ``target_id`` in one step."""
        async with self._lock:
            if self._is_busy(purpose, target_id):
                return None
            wallet = self._select(purpose, min_amount, currency)
            if wallet is not None:
                wallet.busy.add((purpose, target_id))
            return wallet

    # ------------------------------------------------------------------
    # Busy queue
    # ------------------------------------------------------------------

    def _is_busy(self, purpose: str, target_id: str) -> bool:
        return any(
            (purpose, target_id) in wallet.busy
            for wallet in self._wallets.get(purpose, [])
        )

    def check_if_busy(self, purpose: str, target_id: str) -> bool:
        """True when some wallet is already working on ``target_id``."""
        return self._is_busy(purpose, target_id)

    async def add_to_queue(self, purpose: str, wallet_address: str, target_id: str) -> None:
        async with self._lock:
            wallet = self._find(purpose, wallet_address)
            if wallet is None:
                raise KeyError(f"Unknown {purpose} wallet {wallet_address}")
            wallet.busy.add((purpose, target_id))

    async def remove_from_queue(self, purpose: str, wallet_address: str, target_id: str) -> None:
        async with self._lock:
            wallet = self._find(purpose, wallet_address)
            if wallet is not None:
                wallet.busy.discard((purpose, target_id))

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    async def refresh_balances(
        self,
        ledger: LedgerClient,
        purpose: str,
        currencies: Mapping[str, str | None],
    ) -> None:
        """Update the balance snapshot of every ``purpose`` wallet.

        ``currencies`` maps a currency label to its token address, or to
        ``None`` for the native currency. A failed query keeps the previous
        value.
        """
        for wallet in self._wallets.get(purpose, []):
            for currency, token in currencies.items():
                try:
                    balance = await ledger.get_balance(wallet.address, token)
                except Exception as e:
                    logger.warning(
                        "Balance of %s in %s unavailable: %s", wallet.address, currency, e
                    )
                    continue
                wallet.balances[currency.lower()] = balance
