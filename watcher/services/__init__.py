"""Service modules"""
from .arbitrage import ArbitrageEngine
from .book import PositionBook
from .liquidator import Liquidator
from .scanner import PositionScanner
from .wallets import WalletAllocator
from .watcher import Watcher

__all__ = [
    "ArbitrageEngine",
    "Liquidator",
    "PositionBook",
    "PositionScanner",
    "WalletAllocator",
    "Watcher",
]
