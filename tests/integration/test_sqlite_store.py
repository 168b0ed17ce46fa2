"""Integration tests for the SQLite statistics store."""
from __future__ import annotations

import sqlite3
from decimal import Decimal
from pathlib import Path

import pytest

from watcher.models import ArbitrageRecord, LiquidationRecord
from watcher.storage import SqliteStatsStore


@pytest.fixture()
def store(tmp_path: Path) -> SqliteStatsStore:
    return SqliteStatsStore(tmp_path / "nested" / "stats.db")


class TestSqliteStatsStore:
    def test_creates_parent_directory(self, store: SqliteStatsStore) -> None:
        assert store.db_path.exists()
        assert store.count("liquidations") == 0
        assert store.count("arbitrages") == 0

    @pytest.mark.asyncio
    async def test_add_liquidate(self, store: SqliteStatsStore) -> None:
        await store.add_liquidate(
            LiquidationRecord(
                liquidator="0xliq",
                liquidated="0xuser",
                amount=10**17,
                side="long",
                loan_id="0x01",
                profit=Decimal("0.0123"),
                tx_hash="0xtx",
            )
        )

        assert store.count("liquidations") == 1
        conn = sqlite3.connect(store.db_path)
        try:
            row = conn.execute(
                "SELECT amount, pos, loan_id, profit, tx_hash FROM liquidations"
            ).fetchone()
        finally:
            conn.close()
        assert row == (str(10**17), "long", "0x01", "0.0123", "0xtx")

    @pytest.mark.asyncio
    async def test_add_arbitrage(self, store: SqliteStatsStore) -> None:
        await store.add_arbitrage(
            ArbitrageRecord(
                trader="0xarb",
                from_token="0xwrbtc",
                to_token="0xdoc",
                from_amount=Decimal(1),
                to_amount=Decimal(102),
                profit=Decimal(2),
                trade="sell rbtc",
            )
        )
        await store.add_arbitrage(
            ArbitrageRecord(
                trader="0xarb",
                from_token="0xdoc",
                to_token="0xwrbtc",
                from_amount=Decimal(98),
                to_amount=Decimal(1),
                profit=Decimal("0.02"),
                trade="buy rbtc",
            )
        )

        assert store.count("arbitrages") == 2

    def test_unknown_table(self, store: SqliteStatsStore) -> None:
        with pytest.raises(ValueError, match="Unknown table"):
            store.count("users")

    def test_reopen_existing_database(self, tmp_path: Path) -> None:
        path = tmp_path / "stats.db"
        SqliteStatsStore(path)
        assert SqliteStatsStore(path).count("liquidations") == 0
