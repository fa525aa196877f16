# copytrader/core/reconciliation.py

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional

from .models import Position, TradeResult
from .stats import CopyTradingStats, StatsAggregator
from .tracker import ExecutionTracker

log = logging.getLogger(__name__)

TradeHook = Callable[[str, Position, TradeResult], None]


class ReconciliationState:
    """
    Everything a reconciliation cycle reads and writes.

    - executed: ids we currently mirror
    - previous: target positions as of the last completed cycle
    - stats:    session counters
    """

    def __init__(self, enabled: bool = True, dry_run: bool = False):
        self.executed = ExecutionTracker()
        self.previous: Dict[str, Position] = {}
        self.stats = StatsAggregator(enabled=enabled, dry_run=dry_run)


class ReconciliationEngine:
    """
    Turns successive position snapshots of a target account into buy/sell
    calls on a trade gateway.

    Only one cycle runs at a time. A snapshot that arrives while a cycle is
    in flight is dropped, not queued; the next cycle diffs against the last
    completed snapshot.
    """

    def __init__(
        self,
        gateway,
        state: Optional[ReconciliationState] = None,
        on_trade: Optional[TradeHook] = None,
    ):
        # gateway: anything with execute_buy(position) / execute_sell(position)
        self.gateway = gateway
        self.state = state or ReconciliationState()
        self.on_trade = on_trade
        self._cycle_lock = threading.Lock()

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #

    def on_snapshot(self, positions: Iterable[Position]) -> bool:
        """
        Run one reconciliation cycle for `positions`.

        Returns False when the snapshot was dropped because another cycle
        was still running, True otherwise.
        """
        if not self._cycle_lock.acquire(blocking=False):
            log.info("[RECON] Cycle already running; dropping snapshot")
            return False

        try:
            self._run_cycle(positions)
        finally:
            self._cycle_lock.release()
        return True

    def is_busy(self) -> bool:
        return self._cycle_lock.locked()

    def get_stats(self) -> CopyTradingStats:
        return self.state.stats.snapshot()

    # --------------------------------------------------------------------- #
    # Cycle
    # --------------------------------------------------------------------- #

    def _run_cycle(self, positions: Iterable[Position]) -> None:
        state = self.state

        # last write wins on duplicate ids
        current: Dict[str, Position] = {}
        for pos in positions:
            current[pos.id] = pos

        try:
            opened: List[Position] = [
                pos for pid, pos in current.items() if pid not in state.previous
            ]
            closed: List[Position] = [
                pos for pid, pos in state.previous.items() if pid not in current
            ]

            if opened or closed:
                log.info(
                    "[RECON] %d opened, %d closed (tracking %d)",
                    len(opened),
                    len(closed),
                    len(current),
                )

            for position in opened:
                if state.executed.is_executed(position.id):
                    log.debug("[RECON] Already mirrored %s; skipping buy", position.id)
                    continue
                log.info("[RECON] New position: %s (%s)", position.market.question, position.outcome)
                self._execute("buy", position)

            for position in closed:
                if not state.executed.is_executed(position.id):
                    log.debug("[RECON] Never bought %s; skipping sell", position.id)
                    continue
                log.info("[RECON] Position closed: %s (%s)", position.market.question, position.outcome)
                self._execute("sell", position)
        finally:
            # A failed sell is not retried: its close has been consumed here.
            state.previous = current

    def _execute(self, side: str, position: Position) -> None:
        state = self.state
        call = self.gateway.execute_buy if side == "buy" else self.gateway.execute_sell

        try:
            result = call(position)
        except Exception as e:
            state.stats.record_failure()
            log.error("[TRADE] %s error on %s: %s", side.capitalize(), position.id, e)
            return

        if not result.success:
            state.stats.record_failure()
            log.error("[TRADE] %s failed on %s: %s", side.capitalize(), position.id, result.error)
            return

        if side == "buy":
            state.executed.mark_executed(position.id)
        else:
            state.executed.clear_executed(position.id)

        notional = state.stats.record_success(result.executed_quantity, result.executed_price)
        log.info(
            "[TRADE] %s %s x %s @ %s (notional=%s)",
            side.upper(),
            position.id,
            result.executed_quantity,
            result.executed_price,
            notional,
        )

        if self.on_trade is not None:
            try:
                self.on_trade(side, position, result)
            except Exception:
                log.exception("[TRADE] on_trade hook failed for %s", position.id)
