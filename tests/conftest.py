"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from watcher.config import (
    ARBITRAGE,
    LIQUIDATOR,
    AppConfig,
    ArbitrageConfig,
    ContractsConfig,
    LedgerConfig,
    LiquidatorConfig,
    NotificationsConfig,
    ScannerConfig,
    StorageConfig,
    TelegramConfig,
    TokensConfig,
    WalletConfig,
)
from watcher.models import Position, Wallet

WRBTC = "0x" + "aa" * 20
DOC = "0x" + "bb" * 20
SWAP_NETWORK = "0x" + "cc" * 20
LIQUIDATOR_ADDRESS = "0x" + "11" * 20
ARBITRAGE_ADDRESS = "0x" + "22" * 20
BORROWER = "0x" + "33" * 20


def make_loan_id(n: int) -> str:
    return "0x" + f"{n:064x}"


def make_position(
    n: int, max_liquidatable: int = 0, loan_token: str = DOC, collateral_token: str = WRBTC
) -> Position:
    return Position(
        loan_id=make_loan_id(n),
        loan_token=loan_token,
        collateral_token=collateral_token,
        max_liquidatable=max_liquidatable,
    )


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        network="test",
        ledger=LedgerConfig(
            rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
            rpc_timeout=10,
            chain_id=31,
        ),
        contracts=ContractsConfig(
            protocol="0x" + "01" * 20,
            swap_network=SWAP_NETWORK,
            native_wrapper="0x" + "02" * 20,
            price_feed="0x" + "03" * 20,
        ),
        tokens=TokensConfig(wrapped_native=WRBTC, quote=DOC, native_symbol="RBTC"),
        scanner=ScannerConfig(page_size=2, page_pause=0, wait_between_rounds=0),
        liquidator=LiquidatorConfig(scan_interval=0, dispatch_pause=0),
        arbitrage=ArbitrageConfig(amount="1", threshold=2.0, scan_interval=0),
        wallets=(
            WalletConfig(
                label="liq-1",
                purpose=LIQUIDATOR,
                address=LIQUIDATOR_ADDRESS,
                private_key="0x" + "44" * 32,
            ),
            WalletConfig(
                label="arb-1",
                purpose=ARBITRAGE,
                address=ARBITRAGE_ADDRESS,
                private_key="0x" + "55" * 32,
            ),
        ),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
        storage=StorageConfig(db_path=str(tmp_path / "stats.db")),
    )


# ---------------------------------------------------------------------------
# Model fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def liquidator_wallet() -> Wallet:
    return Wallet(
        address=LIQUIDATOR_ADDRESS,
        purpose=LIQUIDATOR,
        private_key="0x" + "44" * 32,
        label="liq-1",
    )


@pytest.fixture()
def arbitrage_wallet() -> Wallet:
    return Wallet(
        address=ARBITRAGE_ADDRESS,
        purpose=ARBITRAGE,
        private_key="0x" + "55" * 32,
        label="arb-1",
    )


@pytest.fixture()
def position_factory():
    """Build a Position from a small integer id."""
    return make_position


@pytest.fixture()
def loan_id_factory():
    return make_loan_id


@pytest.fixture()
def liquidatable_position() -> Position:
    return make_position(1, max_liquidatable=10**18)


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_ledger() -> AsyncMock:
    return AsyncMock()


@pytest.fixture()
def mock_notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture()
def mock_store() -> AsyncMock:
    return AsyncMock()


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    network: test
    ledger:
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
      chain_id: 31
    contracts:
      protocol: "0xprotocol"
      swap_network: "0xswap"
      native_wrapper: "0xwrapper"
      price_feed: "0xfeed"
    tokens:
      wrapped_native: "0xwrbtc"
      quote: "0xdoc"
    scanner:
      page_size: 25
      page_pause: 0.5
      wait_between_rounds: 30
    arbitrage:
      amount: "0.05"
      threshold: 1.5
    wallets:
      - label: liq-1
        purpose: liquidator
        address: "0xLIQ"
        private_key: "0xKEY1"
      - label: arb-1
        purpose: arbitrage
        address: "0xARB"
        private_key: "0xKEY2"
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: "999"
    storage:
      db_path: "data/test.db"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
