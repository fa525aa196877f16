# copytrader/core/parser.py

from __future__ import annotations

import logging
import random
import time
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .models import Market, Position, Trade

log = logging.getLogger(__name__)

ZERO = Decimal("0")

# Envelope keys, checked in order before treating the body itself as the list.
POSITION_ENVELOPE_KEYS = ("positions", "data")
TRADE_ENVELOPE_KEYS = ("trades", "data")


# --------------------------------------------------------------------- #
# Small helpers
# --------------------------------------------------------------------- #

def _first(raw: Dict[str, Any], keys: Iterable[str]) -> Any:
    """
    Return the value of the first key that is present and not None.
    Empty strings and zeros count as present.
    """
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _first_str(raw: Dict[str, Any], keys: Iterable[str], default: str = "") -> str:
    """
    `_first` as a string; `default` only when every key is missing or None.
    """
    value = _first(raw, keys)
    if value is None:
        return default
    return str(value)


def _dec(x: Any) -> Optional[Decimal]:
    """
    Normalize numeric-ish value to a finite Decimal or None.
    """
    if x is None or isinstance(x, bool):
        return None
    try:
        d = Decimal(str(x).strip())
    except (InvalidOperation, ValueError):
        return None
    if not d.is_finite():
        return None
    return d


def _fmt(d: Decimal) -> str:
    """Plain decimal string without exponent or trailing zeros."""
    return format(d.normalize(), "f")


def _opt_str(x: Any) -> Optional[str]:
    if x is None:
        return None
    return str(x)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _iso_timestamp(raw: Any) -> str:
    """
    Epoch seconds -> ISO-8601 UTC. Strings are passed through untouched.
    Missing or unconvertible values fall back to the current time.
    """
    if raw is None or raw == "":
        return now_iso()
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        try:
            ts = datetime.fromtimestamp(raw, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            log.debug("[PARSER] Timestamp out of range: %r", raw)
            return now_iso()
        return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return str(raw)


# --------------------------------------------------------------------- #
# Envelopes
# --------------------------------------------------------------------- #

def extract_items(payload: Any, keys: Sequence[str]) -> List[Any]:
    """
    Pull the item list out of a response body.

    Bodies come back as `{"positions": [...]}`, `{"data": [...]}`, or the
    bare list. Anything that does not resolve to a list yields [].
    """
    items = payload
    if isinstance(payload, dict):
        items = _first(payload, keys)
        if items is None:
            items = payload

    if not isinstance(items, list):
        log.debug("[PARSER] Expected list payload, got %s", type(items).__name__)
        return []
    return items


# --------------------------------------------------------------------- #
# Market
# --------------------------------------------------------------------- #

def to_market(raw: Dict[str, Any]) -> Market:
    """
    Build the Market embedded in a position/trade row.

    Identifier keys are tried in order: id, marketId, market_id, conditionId.
    """
    raw_tags = raw.get("tags")
    tags: List[str] = []
    if isinstance(raw_tags, list):
        tags = [t for t in raw_tags if isinstance(t, str)]

    liquidity = _dec(raw.get("liquidity")) if raw.get("liquidity") else None
    volume = _dec(raw.get("volume")) if raw.get("volume") else None

    active = raw.get("active")

    return Market(
        id=_first_str(raw, ("id", "marketId", "market_id", "conditionId")),
        question=_first_str(raw, ("question", "title"), "Unknown Market"),
        slug=_first_str(raw, ("slug",)),
        description=_opt_str(raw.get("description")),
        end_date=_opt_str(_first(raw, ("endDate", "end_date"))),
        image=_opt_str(raw.get("image")),
        icon=_opt_str(raw.get("icon")),
        resolution_source=_opt_str(raw.get("resolutionSource")),
        tags=tags,
        liquidity=_fmt(liquidity) if liquidity is not None else None,
        volume=_fmt(volume) if volume is not None else None,
        active=bool(active) if active is not None else True,
    )


# --------------------------------------------------------------------- #
# Position
# --------------------------------------------------------------------- #

def _explicit_value(raw, size, cur_price, avg_price):
    return _dec(raw.get("currentValue"))


def _value_at_current_price(raw, size, cur_price, avg_price):
    if size > 0 and cur_price > 0:
        return size * cur_price
    return None


def _value_at_average_price(raw, size, cur_price, avg_price):
    if size > 0 and avg_price > 0:
        return size * avg_price
    return None


# Order matters: the first resolver returning a value wins.
VALUE_RESOLVERS: Sequence[Callable[..., Optional[Decimal]]] = (
    _explicit_value,
    _value_at_current_price,
    _value_at_average_price,
)


def to_position(raw: Dict[str, Any]) -> Position:
    size = _dec(_first(raw, ("size", "quantity"))) or ZERO
    cur_price = _dec(_first(raw, ("curPrice", "currentPrice"))) or ZERO
    avg_price = _dec(_first(raw, ("avgPrice", "price"))) or ZERO

    value = ZERO
    for resolve in VALUE_RESOLVERS:
        resolved = resolve(raw, size, cur_price, avg_price)
        if resolved is not None:
            value = resolved
            break

    initial_value = _dec(raw.get("initialValue"))
    if initial_value is None and size > 0 and avg_price > 0:
        initial_value = size * avg_price

    return Position(
        id=_first_str(raw, ("asset", "id", "positionId")),
        market=to_market(raw),
        outcome=_first_str(raw, ("outcome",)),
        quantity=_fmt(size),
        price=_fmt(cur_price if cur_price > 0 else avg_price),
        value=_fmt(value),
        initial_value=_fmt(initial_value) if initial_value is not None else None,
        timestamp=_iso_timestamp(raw.get("timestamp")),
    )


# --------------------------------------------------------------------- #
# Trade
# --------------------------------------------------------------------- #

def _local_trade_id() -> str:
    # Not globally unique; trades are history, never reconciliation keys.
    return f"trade-{int(time.time() * 1000)}-{random.random()}"


def _normalize_side(raw: Any) -> str:
    if raw is not None and str(raw).strip().lower() == "buy":
        return "buy"
    return "sell"


def to_trade(raw: Dict[str, Any]) -> Trade:
    tx_hash = _first(raw, ("transactionHash", "txHash"))
    trade_id = _first(raw, ("transactionHash", "id"))

    quantity = _dec(_first(raw, ("size", "quantity", "amount"))) or ZERO
    price = _dec(_first(raw, ("price", "executionPrice"))) or ZERO

    return Trade(
        id=str(trade_id) if trade_id is not None else _local_trade_id(),
        market=to_market(raw),
        outcome=_first_str(raw, ("outcome",)),
        side=_normalize_side(raw.get("side")),
        quantity=_fmt(quantity),
        price=_fmt(price),
        timestamp=_iso_timestamp(raw.get("timestamp")),
        transaction_hash=_opt_str(tx_hash),
        user=_first_str(raw, ("user", "userAddress")),
    )


# --------------------------------------------------------------------- #
# Batch helpers
# --------------------------------------------------------------------- #

def _parse_many(items: List[Any], convert, label: str) -> list:
    parsed = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            log.debug("[PARSER] Skipping non-dict %s at index %d: %r", label, idx, item)
            continue
        parsed.append(convert(item))
    return parsed


def parse_positions(items: List[Any]) -> List[Position]:
    positions = _parse_many(items, to_position, "position")
    log.debug("[PARSER] Parsed %d/%d positions", len(positions), len(items))
    return positions


def parse_trades(items: List[Any]) -> List[Trade]:
    trades = _parse_many(items, to_trade, "trade")
    log.debug("[PARSER] Parsed %d/%d trades", len(trades), len(items))
    return trades


def total_value(positions: Iterable[Position]) -> str:
    """Sum of position values, six decimals."""
    total = ZERO
    for p in positions:
        total += _dec(p.value) or ZERO
    return format(total, ".6f")
