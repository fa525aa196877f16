# copytrader/core/models.py

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Market:
    """
    Normalized view of a Polymarket market attached to a position or trade.

    String fields default to "" so callers can format them without checks.
    """

    id: str = ""
    question: str = "Unknown Market"
    slug: str = ""

    description: Optional[str] = None
    end_date: Optional[str] = None
    image: Optional[str] = None
    icon: Optional[str] = None
    resolution_source: Optional[str] = None

    tags: List[str] = field(default_factory=list)
    liquidity: Optional[str] = None
    volume: Optional[str] = None
    active: bool = True


@dataclass
class Position:
    """
    One open position of a watched account.

    `id` is stable across snapshots and is the reconciliation key.
    Quantities, prices and values are decimal strings.
    """

    id: str
    market: Market
    outcome: str = ""
    quantity: str = "0"
    price: str = "0"
    value: str = "0"
    initial_value: Optional[str] = None
    timestamp: str = ""


@dataclass
class Trade:
    """
    Historical fill of a watched account. Read-only, never used as a key.
    """

    id: str
    market: Market
    outcome: str = ""
    side: str = "sell"    # "buy" / "sell"
    quantity: str = "0"
    price: str = "0"
    timestamp: str = ""
    transaction_hash: Optional[str] = None
    user: str = ""


@dataclass
class UserPositions:
    user: str
    positions: List[Position]
    total_value: str
    timestamp: str


@dataclass
class UserTrades:
    user: str
    trades: List[Trade]
    total_trades: int
    timestamp: str


@dataclass
class TradingStatus:
    """
    One observation delivered by the account monitor.
    """

    address: str
    open_positions: List[Position]
    total_value: str = "0"
    recent_trades: List[Trade] = field(default_factory=list)
    timestamp: str = ""


@dataclass
class TradeResult:
    success: bool
    executed_quantity: Optional[str] = None
    executed_price: Optional[str] = None
    error: Optional[str] = None
