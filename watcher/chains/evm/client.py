"""EVM ledger client over web3.py with endpoint fallback."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp
from web3 import AsyncWeb3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from ...config import ZERO_ADDRESS, ContractsConfig, LedgerConfig
from ...models import Position, Wallet
from . import abis
from .parser import parse_active_loans, parse_loan, to_hex

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CONTRACT_ABIS: dict[str, list[dict[str, Any]]] = {
    "protocol": abis.PROTOCOL_ABI,
    "swap_network": abis.SWAP_NETWORK_ABI,
    "native_wrapper": abis.NATIVE_WRAPPER_ABI,
    "price_feed": abis.PRICE_FEED_ABI,
}

# Failures that justify moving to the next endpoint.
_TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)


class LedgerError(RuntimeError):
    """A remote ledger call or transaction failed."""


class EvmLedgerClient:
    """Ledger client for the lending protocol and its swap network."""

    def __init__(self, ledger: LedgerConfig, contracts: ContractsConfig) -> None:
        if not ledger.rpc_endpoints:
            raise ValueError("EvmLedgerClient needs at least one RPC endpoint")
        self.endpoints = list(ledger.rpc_endpoints)
        self.timeout = ledger.rpc_timeout
        self.chain_id = ledger.chain_id
        self.gas_limit = ledger.gas_limit
        self.receipt_timeout = ledger.receipt_timeout
        self.current_rpc_index = 0
        self._addresses = {
            "protocol": contracts.protocol,
            "swap_network": contracts.swap_network,
            "native_wrapper": contracts.native_wrapper,
            "price_feed": contracts.price_feed,
        }
        self._contracts: dict[str, Any] = {}
        self._nonce_lock = asyncio.Lock()
        self.w3 = self._connect(self.endpoints[0])

    # ------------------------------------------------------------------
    # Connection handling
    # ------------------------------------------------------------------

    def _connect(self, url: str) -> AsyncWeb3:
        self._contracts = {}
        return AsyncWeb3(
            AsyncWeb3.AsyncHTTPProvider(
                url, request_kwargs={"timeout": aiohttp.ClientTimeout(total=self.timeout)}
            )
        )

    def _switch_endpoint(self, index: int) -> None:
        self.current_rpc_index = index
        self.w3 = self._connect(self.endpoints[index])
        logger.info("Switched to RPC endpoint: %s", self.endpoints[index])

    def _contract(self, name: str) -> Any:
        if name not in self._contracts:
            address = self._addresses.get(name, "")
            if not address:
                raise LedgerError(f"No address configured for contract '{name}'")
            self._contracts[name] = self.w3.eth.contract(
                address=AsyncWeb3.to_checksum_address(address),
                abi=_CONTRACT_ABIS[name],
            )
        return self._contracts[name]

    def _token(self, address: str) -> Any:
        return self.w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(address), abi=abis.ERC20_ABI
        )

    async def _read(self, label: str, call: Callable[[], Awaitable[T]]) -> T:
        """Run a read-only call, falling back through endpoints on transport errors."""
        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            if attempt:
                self._switch_endpoint((self.current_rpc_index + 1) % len(self.endpoints))
            try:
                return await call()
            except _TRANSPORT_ERRORS as e:
                last_error = e
                logger.warning(
                    "RPC endpoint %s failed on %s: %s",
                    self.endpoints[self.current_rpc_index], label, e,
                )
            except (ContractLogicError, Web3Exception, ValueError) as e:
                raise LedgerError(f"{label} failed: {e}") from e

        raise LedgerError(f"All RPC endpoints failed on {label}. Last error: {last_error}")

    async def _transact(
        self,
        label: str,
        wallet: Wallet,
        fn: Any,
        nonce: int | None = None,
        value: int = 0,
    ) -> str:
        """Sign, broadcast and wait for a contract transaction.

        Raises LedgerError when the transaction cannot be sent or reverts.
        """
        try:
            async with self._nonce_lock:
                if nonce is None:
                    nonce = await self.w3.eth.get_transaction_count(
                        AsyncWeb3.to_checksum_address(wallet.address), "pending"
                    )
                params: dict[str, Any] = {
                    "from": AsyncWeb3.to_checksum_address(wallet.address),
                    "nonce": nonce,
                    "gas": self.gas_limit,
                    "gasPrice": await self.w3.eth.gas_price,
                    "value": value,
                }
                if self.chain_id is not None:
                    params["chainId"] = self.chain_id
                tx = await fn.build_transaction(params)
                signed = self.w3.eth.account.sign_transaction(tx, wallet.private_key)
                tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)

            logger.info("%s sent from %s: %s", label, wallet.address, to_hex(tx_hash))
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout
            )
        except (ContractLogicError, TimeExhausted, Web3Exception, ValueError) as e:
            raise LedgerError(f"{label} failed: {e}") from e
        except _TRANSPORT_ERRORS as e:
            raise LedgerError(f"{label} failed on transport: {e}") from e

        if receipt["status"] != 1:
            raise LedgerError(f"{label} reverted: {to_hex(tx_hash)}")
        return to_hex(tx_hash)

    # ------------------------------------------------------------------
    # Protocol queries
    # ------------------------------------------------------------------

    async def get_active_loans(self, start: int, count: int) -> list[Position]:
        """Active loans in ``[start, start + count)``, unsafe-only filter off."""
        raw = await self._read(
            "getActiveLoans",
            lambda: self._contract("protocol").functions.getActiveLoans(start, count, False).call(),
        )
        return parse_active_loans(raw)

    async def get_loan(self, loan_id: str) -> Position:
        raw = await self._read(
            "getLoan",
            lambda: self._contract("protocol").functions.getLoan(loan_id).call(),
        )
        position = parse_loan(raw)
        if position is None:
            raise LedgerError(f"Loan {loan_id} not found")
        return position

    async def liquidate(
        self, wallet: Wallet, loan_id: str, amount: int, nonce: int, value: int = 0
    ) -> str:
        fn = self._contract("protocol").functions.liquidate(
            loan_id, AsyncWeb3.to_checksum_address(wallet.address), amount
        )
        return await self._transact(f"liquidate {loan_id}", wallet, fn, nonce=nonce, value=value)

    # ------------------------------------------------------------------
    # Swap network and price feed
    # ------------------------------------------------------------------

    async def conversion_path(self, source_token: str, dest_token: str) -> list[str]:
        path = await self._read(
            "conversionPath",
            lambda: self._contract("swap_network").functions.conversionPath(
                AsyncWeb3.to_checksum_address(source_token),
                AsyncWeb3.to_checksum_address(dest_token),
            ).call(),
        )
        return list(path or [])

    async def rate_by_path(self, path: list[str], amount: int) -> int:
        return int(
            await self._read(
                "rateByPath",
                lambda: self._contract("swap_network").functions.rateByPath(path, amount).call(),
            )
        )

    async def query_return(self, source_token: str, dest_token: str, amount: int) -> int:
        return int(
            await self._read(
                "queryReturn",
                lambda: self._contract("price_feed").functions.queryReturn(
                    AsyncWeb3.to_checksum_address(source_token),
                    AsyncWeb3.to_checksum_address(dest_token),
                    amount,
                ).call(),
            )
        )

    async def convert_by_path(
        self,
        wallet: Wallet,
        path: list[str],
        amount: int,
        min_return: int = 1,
        beneficiary: str | None = None,
        value: int = 0,
    ) -> str:
        """Swap along ``path``.

        Native-currency sources go through the wrapper contract, which takes
        the value and credits the sender. Token sources use the swap network
        directly with an explicit beneficiary and no affiliate.
        """
        if value > 0:
            fn = self._contract("native_wrapper").functions.convertByPath(path, amount, min_return)
        else:
            fn = self._contract("swap_network").functions.convertByPath(
                path,
                amount,
                min_return,
                AsyncWeb3.to_checksum_address(beneficiary or wallet.address),
                ZERO_ADDRESS,
                0,
            )
        return await self._transact("convertByPath", wallet, fn, value=value)

    # ------------------------------------------------------------------
    # Accounts and receipts
    # ------------------------------------------------------------------

    async def approve(self, wallet: Wallet, token: str, spender: str, amount: int) -> str:
        """Approve ``spender`` for ``amount`` unless the allowance already covers it."""
        owner = AsyncWeb3.to_checksum_address(wallet.address)
        spender = AsyncWeb3.to_checksum_address(spender)
        allowance = await self._read(
            "allowance", lambda: self._token(token).functions.allowance(owner, spender).call()
        )
        if int(allowance) >= amount:
            return ""
        return await self._transact(
            f"approve {token}", wallet, self._token(token).functions.approve(spender, amount)
        )

    async def get_transaction_count(self, address: str) -> int:
        return await self._read(
            "getTransactionCount",
            lambda: self.w3.eth.get_transaction_count(
                AsyncWeb3.to_checksum_address(address), "pending"
            ),
        )

    async def get_transaction_receipt(self, tx_hash: str) -> Any:
        return await self._read(
            "getTransactionReceipt", lambda: self.w3.eth.get_transaction_receipt(tx_hash)
        )

    async def get_balance(self, address: str, token: str | None = None) -> int:
        """Native balance when ``token`` is None, ERC-20 balance otherwise."""
        owner = AsyncWeb3.to_checksum_address(address)
        if token is None:
            return int(await self._read("getBalance", lambda: self.w3.eth.get_balance(owner)))
        return int(
            await self._read(
                "balanceOf", lambda: self._token(token).functions.balanceOf(owner).call()
            )
        )
