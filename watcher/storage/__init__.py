"""Outcome record storage."""
from .sqlite import SqliteStatsStore

__all__ = ["SqliteStatsStore"]
