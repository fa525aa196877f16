import logging

import requests

from ..core.models import Position, TradeResult
from ..core.stats import CopyTradingStats

log = logging.getLogger(__name__)


class DiscordNotifier:
    def __init__(self, webhook_url: str | None, timeout: float = 8):
        self.url = webhook_url
        self.timeout = timeout

    def send(self, message: str):
        if not self.url:
            print("[DISCORD] Webhook not set. Message:\n", message)
            return
        for chunk in self._split_message(message):
            resp = requests.post(self.url, json={"content": chunk}, timeout=self.timeout)
            if resp.status_code >= 300:
                log.warning("[DISCORD] Error %s: %s", resp.status_code, resp.text)

    def _split_message(self, text: str) -> list[str]:
        max_len = 1900
        if len(text) <= max_len:
            return [text]
        return [text[i:i + max_len] for i in range(0, len(text), max_len)]

    def format_trade(self, side: str, position: Position, result: TradeResult, dry_run: bool = False) -> str:
        tag = "COPY-DRY-RUN" if dry_run else "COPY"
        verb = "BUY" if side == "buy" else "SELL"
        return (
            f"**[{tag}] {verb}** — {position.market.question[:90]}\n"
            f"  → `{position.outcome or '?'}` {result.executed_quantity} @ {result.executed_price}"
            f" | target value={position.value}\n"
        )

    def format_stats(self, stats: CopyTradingStats) -> str:
        mode = "dry-run" if stats.dry_run else "live"
        state = "enabled" if stats.enabled else "disabled"
        return (
            f"**Copy trading stats** ({state}, {mode})\n"
            f"  executed={stats.total_trades_executed}"
            f" | failed={stats.total_trades_failed}"
            f" | volume=${stats.total_volume}"
            f" | last trade={stats.last_trade_time or 'never'}\n"
        )

    def notify_trade(self, side: str, position: Position, result: TradeResult, dry_run: bool = False):
        """Hook for ReconciliationEngine.on_trade."""
        self.send(self.format_trade(side, position, result, dry_run=dry_run))
