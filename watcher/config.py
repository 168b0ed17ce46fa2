"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

LIQUIDATOR = "liquidator"
ARBITRAGE = "arbitrage"
PURPOSES = (LIQUIDATOR, ARBITRAGE)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30
    chain_id: int | None = None
    gas_limit: int = 2_500_000
    receipt_timeout: int = 120


@dataclass(frozen=True)
class ContractsConfig:
    protocol: str = ""
    swap_network: str = ""
    swaps_impl: str = ""
    native_wrapper: str = ""
    price_feed: str = ""


@dataclass(frozen=True)
class TokensConfig:
    wrapped_native: str = ""
    quote: str = ""
    native_symbol: str = "RBTC"
    decimals: int = 18


@dataclass(frozen=True)
class ScannerConfig:
    page_size: int = 50
    page_pause: float = 1.0
    wait_between_rounds: float = 60.0


@dataclass(frozen=True)
class LiquidatorConfig:
    enabled: bool = True
    scan_interval: float = 30.0
    dispatch_pause: float = 1.0


@dataclass(frozen=True)
class ArbitrageConfig:
    enabled: bool = True
    amount: str = "0.01"
    threshold: float = 2.0
    scan_interval: float = 60.0
    min_return: int = 1


@dataclass(frozen=True)
class WalletConfig:
    label: str = ""
    purpose: str = LIQUIDATOR
    address: str = ""
    private_key: str = field(default="", repr=False)


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class StorageConfig:
    db_path: str = "data/stats.db"


@dataclass(frozen=True)
class AppConfig:
    network: str = "test"
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    contracts: ContractsConfig = field(default_factory=ContractsConfig)
    tokens: TokensConfig = field(default_factory=TokensConfig)
    scanner: ScannerConfig = field(default_factory=ScannerConfig)
    liquidator: LiquidatorConfig = field(default_factory=LiquidatorConfig)
    arbitrage: ArbitrageConfig = field(default_factory=ArbitrageConfig)
    wallets: tuple[WalletConfig, ...] = ()
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    def wallets_for(self, purpose: str) -> tuple[WalletConfig, ...]:
        return tuple(w for w in self.wallets if w.purpose == purpose)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_ledger(raw: dict[str, Any]) -> LedgerConfig:
    chain_id = raw.get("chain_id")
    return LedgerConfig(
        rpc_endpoints=tuple(e for e in raw.get("rpc_endpoints", []) if e),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
        chain_id=int(chain_id) if chain_id not in (None, "") else None,
        gas_limit=int(raw.get("gas_limit", 2_500_000)),
        receipt_timeout=int(raw.get("receipt_timeout", 120)),
    )


def _build_contracts(raw: dict[str, Any]) -> ContractsConfig:
    return ContractsConfig(
        protocol=raw.get("protocol", ""),
        swap_network=raw.get("swap_network", ""),
        swaps_impl=raw.get("swaps_impl", ""),
        native_wrapper=raw.get("native_wrapper", ""),
        price_feed=raw.get("price_feed", ""),
    )


def _build_tokens(raw: dict[str, Any]) -> TokensConfig:
    return TokensConfig(
        wrapped_native=raw.get("wrapped_native", ""),
        quote=raw.get("quote", ""),
        native_symbol=raw.get("native_symbol", "RBTC"),
        decimals=int(raw.get("decimals", 18)),
    )


def _build_scanner(raw: dict[str, Any]) -> ScannerConfig:
    return ScannerConfig(
        page_size=int(raw.get("page_size", 50)),
        page_pause=float(raw.get("page_pause", 1.0)),
        wait_between_rounds=float(raw.get("wait_between_rounds", 60.0)),
    )


def _build_liquidator(raw: dict[str, Any]) -> LiquidatorConfig:
    return LiquidatorConfig(
        enabled=bool(raw.get("enabled", True)),
        scan_interval=float(raw.get("scan_interval", 30.0)),
        dispatch_pause=float(raw.get("dispatch_pause", 1.0)),
    )


def _build_arbitrage(raw: dict[str, Any]) -> ArbitrageConfig:
    return ArbitrageConfig(
        enabled=bool(raw.get("enabled", True)),
        # Literal string, parsed with Decimal by the arbitrage engine.
        amount=str(raw.get("amount", "0.01")),
        threshold=float(raw.get("threshold", 2.0)),
        scan_interval=float(raw.get("scan_interval", 60.0)),
        min_return=int(raw.get("min_return", 1)),
    )


def _build_wallets(raw: list[dict[str, Any]]) -> tuple[WalletConfig, ...]:
    wallets: list[WalletConfig] = []
    for w in raw:
        wallets.append(
            WalletConfig(
                label=w.get("label", ""),
                purpose=w.get("purpose", LIQUIDATOR),
                address=w.get("address", ""),
                private_key=w.get("private_key", ""),
            )
        )
    return tuple(wallets)


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram", {})
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


def _build_storage(raw: dict[str, Any]) -> StorageConfig:
    return StorageConfig(db_path=raw.get("db_path", "data/stats.db"))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        network=str(raw.get("network", "test")),
        ledger=_build_ledger(raw.get("ledger", {})),
        contracts=_build_contracts(raw.get("contracts", {})),
        tokens=_build_tokens(raw.get("tokens", {})),
        scanner=_build_scanner(raw.get("scanner", {})),
        liquidator=_build_liquidator(raw.get("liquidator", {})),
        arbitrage=_build_arbitrage(raw.get("arbitrage", {})),
        wallets=_build_wallets(raw.get("wallets", [])),
        notifications=_build_notifications(raw.get("notifications", {})),
        storage=_build_storage(raw.get("storage", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.ledger.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")

    if cfg.scanner.page_size <= 0:
        raise ValueError("scanner.page_size must be positive")

    if cfg.arbitrage.threshold < 0:
        raise ValueError("arbitrage.threshold must not be negative")

    for wallet in cfg.wallets:
        if wallet.purpose not in PURPOSES:
            raise ValueError(
                f"Wallet '{wallet.label}' has unknown purpose '{wallet.purpose}'"
            )
        if not wallet.address:
            raise ValueError(f"Wallet '{wallet.label}' has no address")
        if not wallet.private_key:
            raise ValueError(f"Wallet '{wallet.label}' has no private key")

    if cfg.liquidator.enabled and not cfg.wallets_for(LIQUIDATOR):
        raise ValueError("At least one liquidator wallet must be configured")
    if cfg.arbitrage.enabled and not cfg.wallets_for(ARBITRAGE):
        raise ValueError("At least one arbitrage wallet must be configured")
