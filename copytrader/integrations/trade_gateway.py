# copytrader/integrations/trade_gateway.py
from __future__ import annotations

import logging
from typing import Optional

from ..core.models import Position, TradeResult

log = logging.getLogger(__name__)


class TradeGatewayError(RuntimeError):
    """Gateway could not be set up (missing wallet, bad credentials, ...)."""


class TradeGateway:
    """
    Minimal base class for order execution.

    Concrete gateways implement execute_buy / execute_sell and report the
    outcome as a TradeResult. Raising is allowed; the engine treats it the
    same as success=False.
    """

    name = "base-gateway"

    def __init__(self, wallet_address: Optional[str] = None):
        self.wallet_address = wallet_address

    def initialize(self) -> None:
        """
        Optional setup hook (connect, load keys, approve allowances).

        Default: nothing to do.
        """

    def get_wallet_address(self) -> str:
        return self.wallet_address or "(not configured)"

    def execute_buy(self, position: Position) -> TradeResult:
        raise NotImplementedError("execute_buy() must be implemented by subclasses")

    def execute_sell(self, position: Position) -> TradeResult:
        raise NotImplementedError("execute_sell() must be implemented by subclasses")


class DryRunTradeGateway(TradeGateway):
    """
    Logs the order it would place and reports it as filled at the target's
    quantity and price. Nothing is signed or submitted.
    """

    name = "dry-run"

    def initialize(self) -> None:
        if not self.wallet_address:
            raise TradeGatewayError("WALLET_ADDRESS is not set")
        log.info("[TRADE-DRY-RUN] Gateway ready for wallet %s", self.wallet_address)

    def _fill(self, side: str, position: Position) -> TradeResult:
        log.info(
            "[TRADE-DRY-RUN] Would %s %s shares of '%s' (%s) @ %s",
            side,
            position.quantity,
            position.market.question,
            position.outcome,
            position.price,
        )
        return TradeResult(
            success=True,
            executed_quantity=position.quantity,
            executed_price=position.price,
        )

    def execute_buy(self, position: Position) -> TradeResult:
        return self._fill("BUY", position)

    def execute_sell(self, position: Position) -> TradeResult:
        return self._fill("SELL", position)
