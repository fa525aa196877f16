# copytrader/integrations/account_monitor.py
from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from ..core.models import TradingStatus
from ..core.parser import now_iso

log = logging.getLogger(__name__)

UpdateHandler = Callable[[TradingStatus], None]
ErrorHandler = Callable[[Exception], None]


class AccountMonitor:
    """
    Polls a target address and delivers a TradingStatus every `poll_interval`
    seconds.

    - The first poll happens right after start().
    - Each status is handed to `on_update` on its own worker thread, so a
      slow handler never delays the next poll.
    - Fetch errors and handler errors go to `on_error`.
    """

    def __init__(
        self,
        client,
        target_address: str,
        poll_interval: float = 30,
        trade_limit: int = 50,
        on_update: Optional[UpdateHandler] = None,
        on_error: Optional[ErrorHandler] = None,
    ):
        self.client = client
        self.target_address = target_address
        self.poll_interval = poll_interval
        self.trade_limit = trade_limit
        self.on_update = on_update
        self.on_error = on_error

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._workers: List[threading.Thread] = []

    # --------------------------------------------------------------------- #
    # Lifecycle
    # --------------------------------------------------------------------- #

    def start(self) -> None:
        if self.is_running():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="account-monitor", daemon=True)
        self._thread.start()
        log.info(
            "[MONITOR] Watching %s every %ss",
            self.target_address,
            self.poll_interval,
        )

    def stop(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        # in-flight update handlers may still be placing trades
        for worker in self._workers:
            worker.join(timeout=timeout)
        self._workers = []
        log.info("[MONITOR] Stopped")

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # --------------------------------------------------------------------- #
    # Polling
    # --------------------------------------------------------------------- #

    def fetch_status(self) -> TradingStatus:
        positions = self.client.fetch_positions(self.target_address)
        trades = self.client.fetch_trades(self.target_address, self.trade_limit)
        return TradingStatus(
            address=self.target_address,
            open_positions=positions.positions,
            total_value=positions.total_value,
            recent_trades=trades.trades,
            timestamp=now_iso(),
        )

    def poll_once(self, background: bool = False) -> Optional[TradingStatus]:
        """
        Fetch one status and deliver it. Returns None if the fetch failed.
        """
        try:
            status = self.fetch_status()
        except Exception as e:
            log.warning("[MONITOR] Poll failed for %s: %s", self.target_address, e)
            self._report(e)
            return None

        log.debug(
            "[MONITOR] %s has %d open positions (value=%s)",
            self.target_address,
            len(status.open_positions),
            status.total_value,
        )

        if background:
            worker = threading.Thread(
                target=self._deliver,
                args=(status,),
                name="account-monitor-update",
                daemon=True,
            )
            self._workers = [w for w in self._workers if w.is_alive()]
            self._workers.append(worker)
            worker.start()
        else:
            self._deliver(status)
        return status

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.poll_once(background=True)
            self._stop_event.wait(self.poll_interval)

    def _deliver(self, status: TradingStatus) -> None:
        if self.on_update is None:
            return
        try:
            self.on_update(status)
        except Exception as e:
            log.exception("[MONITOR] Update handler failed")
            self._report(e)

    def _report(self, error: Exception) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(error)
        except Exception:
            log.exception("[MONITOR] Error handler failed")
