"""SQLite store for liquidation and arbitrage outcome records."""
from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from ..models import ArbitrageRecord, LiquidationRecord

logger = logging.getLogger(__name__)

DB_TIMEOUT = 10.0  # seconds

_SCHEMA = """
CREATE TABLE IF NOT EXISTS liquidations (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    liquidator_adr TEXT NOT NULL,
    liquidated_adr TEXT NOT NULL,
    amount TEXT NOT NULL,
    pos TEXT NOT NULL,
    loan_id TEXT NOT NULL,
    profit TEXT NOT NULL,
    tx_hash TEXT NOT NULL,
    date_added TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS arbitrages (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    adr TEXT NOT NULL,
    from_token TEXT NOT NULL,
    to_token TEXT NOT NULL,
    from_amount TEXT NOT NULL,
    to_amount TEXT NOT NULL,
    profit TEXT NOT NULL,
    trade TEXT NOT NULL,
    date_added TEXT NOT NULL
);
"""


class SqliteStatsStore:
    """Append-only statistics tables.

    Amounts are stored as decimal strings. Writes run in a worker thread so
    the event loop never blocks on disk.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=DB_TIMEOUT)

    def _init_db(self) -> None:
        conn = self._connect()
        try:
            conn.executescript(_SCHEMA)
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def _insert(self, sql: str, params: tuple) -> None:
        conn = self._connect()
        try:
            conn.execute(sql, params)
            conn.commit()
        finally:
            conn.close()

    async def add_liquidate(self, record: LiquidationRecord) -> None:
        await asyncio.to_thread(
            self._insert,
            "INSERT INTO liquidations (liquidator_adr, liquidated_adr, amount, pos, "
            "loan_id, profit, tx_hash, date_added) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.liquidator,
                record.liquidated,
                str(record.amount),
                record.side,
                record.loan_id,
                str(record.profit),
                record.tx_hash,
                self._now(),
            ),
        )
        logger.info("Stored liquidation of loan %s", record.loan_id)

    async def add_arbitrage(self, record: ArbitrageRecord) -> None:
        await asyncio.to_thread(
            self._insert,
            "INSERT INTO arbitrages (adr, from_token, to_token, from_amount, "
            "to_amount, profit, trade, date_added) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                record.trader,
                record.from_token,
                record.to_token,
                str(record.from_amount),
                str(record.to_amount),
                str(record.profit),
                record.trade,
                self._now(),
            ),
        )
        logger.info("Stored arbitrage trade (%s)", record.trade)

    def count(self, table: str) -> int:
        """Row count of ``liquidations`` or ``arbitrages``."""
        if table not in ("liquidations", "arbitrages"):
            raise ValueError(f"Unknown table '{table}'")
        conn = self._connect()
        try:
            return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
        finally:
            conn.close()
