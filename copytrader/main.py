import logging
import sys
import time

from copytrader.utils.config import load_config
from copytrader.integrations.polymarket_client import PolymarketClient
from copytrader.integrations.discord_notifier import DiscordNotifier
from copytrader.integrations.trade_gateway import DryRunTradeGateway
from copytrader.core.copy_trading import CopyTradingMonitor


def main():
    cfg = load_config()

    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("[BOOT] Polymarket copy trader started")

    if not cfg.monitor.target_address:
        print("[BOOT] TARGET_ADDRESS is not set; nothing to mirror.")
        sys.exit(1)

    # Upstream data API client
    client = PolymarketClient(
        base_url=cfg.polymarket.data_api_url,
        timeout=cfg.polymarket.timeout_sec,
        api_key=cfg.polymarket.api_key,
    )

    # Order signing is not wired here; only the dry-run gateway ships.
    if not cfg.copy_trading.dry_run:
        print("[BOOT] Live trading needs a signing gateway; refusing to start with DRY_RUN=false.")
        sys.exit(1)
    gateway = DryRunTradeGateway(wallet_address=cfg.copy_trading.wallet_address)

    # Discord notifier (prints when no webhook is configured)
    notifier = DiscordNotifier(cfg.discord.webhook_url)

    def on_trade(side, position, result):
        notifier.notify_trade(side, position, result, dry_run=cfg.copy_trading.dry_run)

    monitor = CopyTradingMonitor(
        client,
        gateway,
        cfg.monitor.target_address,
        cfg.copy_trading,
        poll_interval=cfg.monitor.poll_interval_sec,
        trade_limit=cfg.monitor.trade_history_limit,
        on_trade=on_trade,
    )

    monitor.start()

    # ───────────────────────────────────────────────────────────
    # Main Loop: the monitor polls on its own thread, we just report
    # ───────────────────────────────────────────────────────────
    try:
        while True:
            time.sleep(cfg.stats_interval_sec)
            stats = monitor.get_stats()
            print(
                f"[STATS] executed={stats.total_trades_executed} "
                f"failed={stats.total_trades_failed} "
                f"volume=${stats.total_volume} "
                f"last={stats.last_trade_time or '-'}"
            )
            if stats.enabled:
                try:
                    notifier.send(notifier.format_stats(stats))
                except Exception as e:
                    print("[ERROR] Failed to send stats to Discord:", e)
    except KeyboardInterrupt:
        print("\n[SHUTDOWN] Stopping…")
    finally:
        monitor.stop()


if __name__ == "__main__":
    main()
