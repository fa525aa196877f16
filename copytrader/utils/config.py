# copytrader/utils/config.py
import os
from dataclasses import dataclass


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class PolymarketConfig:
    data_api_url: str
    api_key: str | None
    timeout_sec: float


@dataclass
class MonitorConfig:
    target_address: str
    poll_interval_sec: float
    trade_history_limit: int


@dataclass
class CopyTradingConfig:
    enabled: bool
    dry_run: bool
    wallet_address: str | None


@dataclass
class DiscordConfig:
    webhook_url: str | None


@dataclass
class AppConfig:
    polymarket: PolymarketConfig
    monitor: MonitorConfig
    copy_trading: CopyTradingConfig
    discord: DiscordConfig
    stats_interval_sec: int
    log_level: str


def load_config() -> AppConfig:
    polymarket = PolymarketConfig(
        data_api_url=os.getenv("POLYMARKET_DATA_API_URL", "https://data-api.polymarket.com"),
        api_key=os.getenv("POLYMARKET_API_KEY") or None,
        timeout_sec=float(os.getenv("POLYMARKET_TIMEOUT_SEC", "30")),
    )

    monitor = MonitorConfig(
        target_address=os.getenv("TARGET_ADDRESS", "").strip(),
        poll_interval_sec=float(os.getenv("POLL_INTERVAL_SEC", "30")),
        trade_history_limit=int(os.getenv("TRADE_HISTORY_LIMIT", "50")),
    )

    copy_trading = CopyTradingConfig(
        enabled=_env_bool("COPY_TRADING_ENABLED", "false"),
        dry_run=_env_bool("DRY_RUN", "true"),  # stay safe unless explicitly turned off
        wallet_address=os.getenv("WALLET_ADDRESS") or None,
    )

    discord = DiscordConfig(
        webhook_url=os.getenv("DISCORD_WEBHOOK")
    )

    return AppConfig(
        polymarket=polymarket,
        monitor=monitor,
        copy_trading=copy_trading,
        discord=discord,
        stats_interval_sec=int(os.getenv("STATS_INTERVAL_SEC", "300")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
