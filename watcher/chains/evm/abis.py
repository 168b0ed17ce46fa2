"""Minimal ABIs for the contracts the watcher calls."""
from __future__ import annotations

from typing import Any


def _io(name: str, type_: str, **extra: Any) -> dict[str, Any]:
    return {"name": name, "type": type_, **extra}


LOAN_RETURN_DATA = [
    _io("loanId", "bytes32"),
    _io("loanToken", "address"),
    _io("collateralToken", "address"),
    _io("principal", "uint256"),
    _io("collateral", "uint256"),
    _io("interestOwedPerDay", "uint256"),
    _io("interestDepositRemaining", "uint256"),
    _io("startRate", "uint256"),
    _io("startMargin", "uint256"),
    _io("maintenanceMargin", "uint256"),
    _io("currentMargin", "uint256"),
    _io("maxLoanTerm", "uint256"),
    _io("endTimestamp", "uint256"),
    _io("maxLiquidatable", "uint256"),
    _io("maxSeizable", "uint256"),
]

PROTOCOL_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "getActiveLoans",
        "stateMutability": "view",
        "inputs": [
            _io("start", "uint256"),
            _io("count", "uint256"),
            _io("unsafeOnly", "bool"),
        ],
        "outputs": [_io("loansData", "tuple[]", components=LOAN_RETURN_DATA)],
    },
    {
        "type": "function",
        "name": "getLoan",
        "stateMutability": "view",
        "inputs": [_io("loanId", "bytes32")],
        "outputs": [_io("loanData", "tuple", components=LOAN_RETURN_DATA)],
    },
    {
        "type": "function",
        "name": "liquidate",
        "stateMutability": "payable",
        "inputs": [
            _io("loanId", "bytes32"),
            _io("receiver", "address"),
            _io("closeAmount", "uint256"),
        ],
        "outputs": [
            _io("loanCloseAmount", "uint256"),
            _io("seizedAmount", "uint256"),
            _io("seizedToken", "address"),
        ],
    },
    {
        "type": "event",
        "name": "Liquidate",
        "anonymous": False,
        "inputs": [
            _io("user", "address", indexed=True),
            _io("liquidator", "address", indexed=True),
            _io("loanId", "bytes32", indexed=True),
            _io("lender", "address", indexed=False),
            _io("loanToken", "address", indexed=False),
            _io("collateralToken", "address", indexed=False),
            _io("repayAmount", "uint256", indexed=False),
            _io("collateralWithdrawAmount", "uint256", indexed=False),
            _io("collateralToLoanRate", "uint256", indexed=False),
            _io("currentMargin", "uint256", indexed=False),
        ],
    },
]

SWAP_NETWORK_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "conversionPath",
        "stateMutability": "view",
        "inputs": [_io("_sourceToken", "address"), _io("_targetToken", "address")],
        "outputs": [_io("", "address[]")],
    },
    {
        "type": "function",
        "name": "rateByPath",
        "stateMutability": "view",
        "inputs": [_io("_path", "address[]"), _io("_amount", "uint256")],
        "outputs": [_io("", "uint256")],
    },
    {
        "type": "function",
        "name": "convertByPath",
        "stateMutability": "payable",
        "inputs": [
            _io("_path", "address[]"),
            _io("_amount", "uint256"),
            _io("_minReturn", "uint256"),
            _io("_beneficiary", "address"),
            _io("_affiliateAccount", "address"),
            _io("_affiliateFee", "uint256"),
        ],
        "outputs": [_io("", "uint256")],
    },
    {
        "type": "event",
        "name": "Conversion",
        "anonymous": False,
        "inputs": [
            _io("_smartToken", "address", indexed=True),
            _io("_fromToken", "address", indexed=True),
            _io("_toToken", "address", indexed=True),
            _io("_fromAmount", "uint256", indexed=False),
            _io("_toAmount", "uint256", indexed=False),
            _io("_trader", "address", indexed=False),
        ],
    },
]

NATIVE_WRAPPER_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "convertByPath",
        "stateMutability": "payable",
        "inputs": [
            _io("_path", "address[]"),
            _io("_amount", "uint256"),
            _io("_minReturn", "uint256"),
        ],
        "outputs": [_io("", "uint256")],
    },
]

PRICE_FEED_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "queryReturn",
        "stateMutability": "view",
        "inputs": [
            _io("_sourceToken", "address"),
            _io("_destToken", "address"),
            _io("_sourceAmount", "uint256"),
        ],
        "outputs": [_io("", "uint256")],
    },
]

ERC20_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [_io("account", "address")],
        "outputs": [_io("", "uint256")],
    },
    {
        "type": "function",
        "name": "allowance",
        "stateMutability": "view",
        "inputs": [_io("owner", "address"), _io("spender", "address")],
        "outputs": [_io("", "uint256")],
    },
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [_io("spender", "address"), _io("amount", "uint256")],
        "outputs": [_io("", "bool")],
    },
]
