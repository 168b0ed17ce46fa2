"""Pure parsing functions for raw protocol return data — no I/O."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ...models import Position

# Field order of the protocol's LoanReturnData struct.
LOAN_FIELDS = (
    "loanId",
    "loanToken",
    "collateralToken",
    "principal",
    "collateral",
    "interestOwedPerDay",
    "interestDepositRemaining",
    "startRate",
    "startMargin",
    "maintenanceMargin",
    "currentMargin",
    "maxLoanTerm",
    "endTimestamp",
    "maxLiquidatable",
    "maxSeizable",
)

_EMPTY_ID = "0x" + "00" * 32


def to_hex(value: Any) -> str:
    """Normalise a bytes32 value to a ``0x``-prefixed lowercase hex string.

    Examples:
        b"\\x01\\x02" → "0x0102"
        "0xABCD" → "0xabcd"
    """
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    text = str(value or "")
    if not text:
        return ""
    return text.lower() if text.startswith("0x") else "0x" + text.lower()


def loan_to_dict(raw: Sequence[Any] | Mapping[str, Any]) -> dict[str, Any]:
    """Map a LoanReturnData tuple (or already-named mapping) to field names."""
    if isinstance(raw, Mapping):
        return dict(raw)
    return dict(zip(LOAN_FIELDS, raw))


def parse_loan(raw: Sequence[Any] | Mapping[str, Any]) -> Position | None:
    """Parse one LoanReturnData entry into a Position.

    Returns ``None`` for entries without a usable loan id.
    """
    fields = loan_to_dict(raw)
    loan_id = to_hex(fields.get("loanId"))
    if not loan_id or loan_id == _EMPTY_ID:
        return None

    return Position(
        loan_id=loan_id,
        loan_token=str(fields.get("loanToken", "")),
        collateral_token=str(fields.get("collateralToken", "")),
        max_liquidatable=int(fields.get("maxLiquidatable", 0) or 0),
        principal=int(fields.get("principal", 0) or 0),
        collateral=int(fields.get("collateral", 0) or 0),
        current_margin=int(fields.get("currentMargin", 0) or 0),
        maintenance_margin=int(fields.get("maintenanceMargin", 0) or 0),
        max_seizable=int(fields.get("maxSeizable", 0) or 0),
        raw=tuple(raw.values()) if isinstance(raw, Mapping) else tuple(raw),
    )


def parse_active_loans(raw_loans: Sequence[Any]) -> list[Position]:
    """Parse a page of active loans, dropping entries without a loan id."""
    positions: list[Position] = []
    for raw in raw_loans or ():
        position = parse_loan(raw)
        if position is not None:
            positions.append(position)
    return positions


def event_param_name(name: str) -> str:
    """Strip the leading underscore the swap contracts use on event params."""
    return name[1:] if name.startswith("_") else name
