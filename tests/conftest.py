"""Shared fakes for copytrader tests."""

from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import pytest

from copytrader.core.models import Market, Position, TradeResult


def make_position(pid: str, quantity: str = "10", price: str = "0.5", question: str = "Will it rain?") -> Position:
    return Position(
        id=pid,
        market=Market(id=f"m-{pid}", question=question),
        outcome="Yes",
        quantity=quantity,
        price=price,
        value="0",
        timestamp="2026-01-01T00:00:00.000Z",
    )


class ScriptedGateway:
    """
    Records every call. Fills at the position's quantity/price unless a
    scripted outcome (TradeResult or exception) is set for (side, id).
    """

    def __init__(self):
        self.calls = []
        self.outcomes = {}
        self.before_fill = None
        self.initialized = False
        self.init_error = None

    def initialize(self):
        if self.init_error is not None:
            raise self.init_error
        self.initialized = True

    def get_wallet_address(self):
        return "0xfollower"

    def _run(self, side, position):
        self.calls.append((side, position.id))
        if self.before_fill is not None:
            self.before_fill(side, position)
        outcome = self.outcomes.get((side, position.id))
        if isinstance(outcome, Exception):
            raise outcome
        if outcome is not None:
            return outcome
        return TradeResult(success=True, executed_quantity=position.quantity, executed_price=position.price)

    def execute_buy(self, position):
        return self._run("buy", position)

    def execute_sell(self, position):
        return self._run("sell", position)


@pytest.fixture
def gateway():
    return ScriptedGateway()
