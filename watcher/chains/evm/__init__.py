"""EVM ledger client and receipt decoding."""
from .client import EvmLedgerClient, LedgerError
from .events import ReceiptDecoder

__all__ = ["EvmLedgerClient", "LedgerError", "ReceiptDecoder"]
