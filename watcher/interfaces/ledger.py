"""Ledger client protocol — contract calls and transaction submission."""
from typing import Any, Protocol

from ..models import Position, Wallet


class LedgerClient(Protocol):
    """Abstract interface for the remote ledger.

    Amounts are raw token units. Transaction methods return the transaction
    hash once mined and raise when the transaction fails or reverts.
    """

    async def get_active_loans(self, start: int, count: int) -> list[Position]: ...

    async def get_loan(self, loan_id: str) -> Position: ...

    async def liquidate(
        self, wallet: Wallet, loan_id: str, amount: int, nonce: int, value: int = 0
    ) -> str: ...

    async def conversion_path(self, source_token: str, dest_token: str) -> list[str]: ...

    async def rate_by_path(self, path: list[str], amount: int) -> int: ...

    async def query_return(self, source_token: str, dest_token: str, amount: int) -> int: ...

    async def convert_by_path(
        self,
        wallet: Wallet,
        path: list[str],
        amount: int,
        min_return: int = 1,
        beneficiary: str | None = None,
        value: int = 0,
    ) -> str: ...

    async def approve(self, wallet: Wallet, token: str, spender: str, amount: int) -> str: ...

    async def get_transaction_count(self, address: str) -> int: ...

    async def get_transaction_receipt(self, tx_hash: str) -> Any: ...

    async def get_balance(self, address: str, token: str | None = None) -> int: ...
