# copytrader/core/stats.py

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .parser import now_iso

CENT = Decimal("0.01")


@dataclass(frozen=True)
class CopyTradingStats:
    enabled: bool
    dry_run: bool
    total_trades_executed: int
    total_trades_failed: int
    total_volume: str
    last_trade_time: Optional[str] = None


def _as_decimal(x: Any) -> Decimal:
    """Fill amounts that are missing or non-numeric count as zero."""
    if x is None or isinstance(x, bool):
        return Decimal("0")
    try:
        d = Decimal(str(x).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return d if d.is_finite() else Decimal("0")


class StatsAggregator:
    """
    Running counters for the copy-trading session.

    Only the reconciliation engine writes here; everybody else reads
    through `snapshot()`, which returns an immutable copy.
    """

    def __init__(self, enabled: bool, dry_run: bool = False):
        self.enabled = enabled
        self.dry_run = dry_run
        self.executed = 0
        self.failed = 0
        self.volume = Decimal("0")
        self.last_trade_time: Optional[str] = None

    def record_success(self, executed_quantity: Any, executed_price: Any) -> Decimal:
        """
        Count a filled trade and add quantity * price to the volume.
        Returns the trade's notional.
        """
        notional = _as_decimal(executed_quantity) * _as_decimal(executed_price)
        if notional < 0:
            notional = Decimal("0")
        self.executed += 1
        self.volume = (self.volume + notional).quantize(CENT)
        self.last_trade_time = now_iso()
        return notional

    def record_failure(self) -> None:
        self.failed += 1

    def snapshot(self) -> CopyTradingStats:
        return CopyTradingStats(
            enabled=self.enabled,
            dry_run=self.dry_run,
            total_trades_executed=self.executed,
            total_trades_failed=self.failed,
            total_volume=str(self.volume),
            last_trade_time=self.last_trade_time,
        )
