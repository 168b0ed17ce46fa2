"""Protocol interfaces for the liquidation watcher."""
from .event_decoder import EventDecoder
from .ledger import LedgerClient
from .notifier import Notifier
from .storage import StatsStore

__all__ = ["EventDecoder", "LedgerClient", "Notifier", "StatsStore"]
