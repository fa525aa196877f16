# copytrader/core/copy_trading.py

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ..integrations.account_monitor import AccountMonitor
from ..utils.config import CopyTradingConfig
from .models import TradingStatus
from .reconciliation import ReconciliationEngine, ReconciliationState, TradeHook
from .stats import CopyTradingStats

log = logging.getLogger(__name__)


class CopyTradingMonitor:
    """
    Main coordinator:
    - Runs an AccountMonitor on the target address
    - Feeds every status into the ReconciliationEngine (when enabled)
    - Owns the trade gateway lifecycle
    """

    def __init__(
        self,
        client: Any,
        gateway: Any,
        target_address: str,
        config: CopyTradingConfig,
        poll_interval: float = 30,
        trade_limit: int = 50,
        on_update: Optional[Callable[[TradingStatus], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        on_trade: Optional[TradeHook] = None,
    ):
        self.config = config
        self.gateway = gateway
        self.target_address = target_address
        self._user_on_update = on_update
        self._user_on_error = on_error

        self.engine = ReconciliationEngine(
            gateway,
            state=ReconciliationState(enabled=config.enabled, dry_run=config.dry_run),
            on_trade=on_trade,
        )

        self.account_monitor = AccountMonitor(
            client,
            target_address,
            poll_interval=poll_interval,
            trade_limit=trade_limit,
            on_update=self._handle_update,
            on_error=self._handle_error,
        )

    # --------------------------------------------------------------------- #
    # Lifecycle
    # --------------------------------------------------------------------- #

    def start(self) -> None:
        if not self.config.enabled:
            log.warning("[COPY] Copy trading is disabled. Starting monitor only…")
            self.account_monitor.start()
            return

        log.info("[COPY] Starting copy trading monitor")
        log.info("[COPY] Target address: %s", self.target_address)
        log.info("[COPY] Trading wallet: %s", self.gateway.get_wallet_address())
        log.info("[COPY] %s", "DRY RUN MODE" if self.config.dry_run else "LIVE MODE")

        try:
            self.gateway.initialize()
        except Exception as e:
            log.error("[COPY] Failed to initialize trade gateway: %s", e)
            if not self.config.dry_run:
                raise

        self.account_monitor.start()
        log.info("[COPY] Copy trading monitor started")

    def stop(self) -> None:
        self.account_monitor.stop()
        log.info("[COPY] Copy trading monitor stopped")

    def is_running(self) -> bool:
        return self.account_monitor.is_running()

    def get_stats(self) -> CopyTradingStats:
        return self.engine.get_stats()

    # --------------------------------------------------------------------- #
    # Callbacks from AccountMonitor
    # --------------------------------------------------------------------- #

    def _handle_update(self, status: TradingStatus) -> None:
        if self._user_on_update is not None:
            self._user_on_update(status)

        if self.config.enabled:
            self.engine.on_snapshot(status.open_positions)

    def _handle_error(self, error: Exception) -> None:
        if self._user_on_error is not None:
            self._user_on_error(error)
        log.error("[COPY] Copy trading monitor error: %s", error)
