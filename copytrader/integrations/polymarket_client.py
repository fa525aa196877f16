# copytrader/integrations/polymarket_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from ..core.models import UserPositions, UserTrades
from ..core.parser import (
    POSITION_ENVELOPE_KEYS,
    TRADE_ENVELOPE_KEYS,
    extract_items,
    now_iso,
    parse_positions,
    parse_trades,
    total_value,
)

log = logging.getLogger(__name__)

POLYMARKET_DATA_API_URL = "https://data-api.polymarket.com"

PAGE_SIZE = 100
MAX_PAGES = 10  # position sets past PAGE_SIZE * MAX_PAGES are truncated


class PolymarketAPIError(RuntimeError):
    """
    Upstream request failed on every endpoint shape we tried.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.status_code = status_code
        self.cause = cause


def _status_of(err: BaseException) -> Optional[int]:
    resp = getattr(err, "response", None)
    return getattr(resp, "status_code", None)


def _is_not_found(err: BaseException) -> bool:
    return _status_of(err) == 404


class PolymarketClient:
    """
    Reads positions and trades of an address from the Polymarket data API.

    Each read tries the path-style endpoint (/users/{address}/...) first and
    the query-style endpoint (/...?user=address) second. Raw rows are always
    normalized before they leave this class.
    """

    def __init__(
        self,
        base_url: str = POLYMARKET_DATA_API_URL,
        timeout: float = 30,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if api_key:
            self.session.headers.update({"Authorization": f"Bearer {api_key}"})

    # --------------------------------------------------------------------- #
    # HTTP
    # --------------------------------------------------------------------- #

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        resp = self.session.get(f"{self.base_url}{path}", params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def _get_paginated(self, path: str, params: Dict[str, Any], envelope_keys) -> List[Any]:
        """
        Walk offset pages until a short page, an empty page, or MAX_PAGES.
        """
        rows: List[Any] = []
        for page in range(MAX_PAGES):
            page_params = dict(params, limit=PAGE_SIZE, offset=page * PAGE_SIZE)
            items = extract_items(self._get(path, page_params), envelope_keys)
            if not items:
                break
            rows.extend(items)
            if len(items) < PAGE_SIZE:
                break
        else:
            log.warning("[POLY] %s hit the %d page cap; result truncated", path, MAX_PAGES)
        return rows

    def _with_fallback(self, label: str, primary, alternate):
        """
        Run `primary`; on a transport/status error run `alternate`.

        Returns the rows, or None when both shapes failed and either one
        said 404. Other double failures raise the primary error, wrapped.
        """
        try:
            return primary()
        except requests.RequestException as primary_error:
            log.warning("[POLY] %s primary endpoint failed: %s; trying alternate", label, primary_error)
            try:
                return alternate()
            except requests.RequestException as alt_error:
                if _is_not_found(primary_error) or _is_not_found(alt_error):
                    log.info("[POLY] %s not found on either endpoint; treating as empty", label)
                    return None
                raise PolymarketAPIError(
                    f"Failed to fetch user {label}: {primary_error}",
                    status_code=_status_of(primary_error),
                    cause=primary_error,
                ) from primary_error

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #

    def fetch_positions(self, address: str) -> UserPositions:
        """
        Open positions of `address`, normalized.
        """
        base_params = {"active": "true"}
        rows = self._with_fallback(
            "positions",
            lambda: self._get_paginated(f"/users/{address}/positions", base_params, POSITION_ENVELOPE_KEYS),
            lambda: self._get_paginated("/positions", dict(base_params, user=address), POSITION_ENVELOPE_KEYS),
        )

        if rows is None:
            return UserPositions(user=address, positions=[], total_value="0", timestamp=now_iso())

        positions = parse_positions(rows)
        log.info("[POLY] fetched %d raw positions, parsed %d for %s", len(rows), len(positions), address)
        return UserPositions(
            user=address,
            positions=positions,
            total_value=total_value(positions),
            timestamp=now_iso(),
        )

    def fetch_trades(self, address: str, limit: int = 50) -> UserTrades:
        """
        Most recent trades of `address`, newest first. Not paginated.
        """
        params = {"limit": limit, "sort": "desc"}
        rows = self._with_fallback(
            "trades",
            lambda: extract_items(self._get(f"/users/{address}/trades", params), TRADE_ENVELOPE_KEYS),
            lambda: extract_items(self._get("/trades", dict(params, user=address)), TRADE_ENVELOPE_KEYS),
        )

        if rows is None:
            return UserTrades(user=address, trades=[], total_trades=0, timestamp=now_iso())

        trades = parse_trades(rows)
        log.info("[POLY] fetched %d trades for %s", len(trades), address)
        return UserTrades(
            user=address,
            trades=trades,
            total_trades=len(trades),
            timestamp=now_iso(),
        )

    # Aliases matching the upstream naming used elsewhere.
    get_user_positions = fetch_positions
    get_user_trades = fetch_trades
