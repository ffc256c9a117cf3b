"""
alpaca_client.py – light wrapper around the Alpaca trading REST API
-------------------------------------------------------------------
Keeps the executor logic clean and testable. With DRY_RUN set, orders
and closes are only logged; position / account reads still hit the API.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

import requests

from data_loader.loader import check_response
from shared.config import TRADE_BASE_URL
from shared.errors import CollaboratorError
from shared.logging import get_logger

TIMEOUT = 10
DRY_RUN_ID = "dry-run"

log = get_logger("alpaca_client")


class TradingClient:
    """
    Thin OO façade so the executor doesn’t depend directly on HTTP details.
    """

    def __init__(self, api_key: str, api_secret: str,
                 base_url: str = TRADE_BASE_URL, dry_run: bool = False,
                 session: Optional[requests.Session] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.dry_run  = dry_run
        self.session  = session or requests.Session()
        self.session.headers.update({
            "APCA-API-KEY-ID":     api_key,
            "APCA-API-SECRET-KEY": api_secret,
        })
        if dry_run:
            log.warning("DRY-RUN mode – no broker orders will be sent")

    def _request(self, method: str, path: str, what: str, **kw: Any) -> Any:
        resp = self.session.request(method, f"{self.base_url}{path}",
                                    timeout=TIMEOUT, **kw)
        try:
            check_response(resp)
        except CollaboratorError as exc:
            if type(exc) is CollaboratorError:
                raise CollaboratorError(
                    f"{what} error {resp.status_code}: {resp.text or ''}",
                    resp.status_code) from None
            raise
        return resp.json() if resp.content else {}

    # ───── broker queries ─────────────────────────────────────────
    def get_account(self) -> Dict[str, Any]:
        return self._request("GET", "/v2/account", "Account")

    def get_position(self, symbol: str) -> Optional[Dict[str, Any]]:
        """Open position for `symbol`, or None when flat (HTTP 404)."""
        try:
            return self._request("GET", f"/v2/positions/{symbol}", "Position")
        except CollaboratorError as exc:
            if exc.status == 404:
                return None
            raise

    # ───── trading actions ────────────────────────────────────────
    def place_order(self, symbol: str, qty: float, side: str,
                    order_type: str = "market") -> Dict[str, Any]:
        """Day market order; `side` is "buy" or "sell"."""
        log.info("ORDER %s %s x%s (%s)", side.upper(), symbol, qty, order_type)
        if self.dry_run:
            return {"id": DRY_RUN_ID, "symbol": symbol, "side": side, "qty": str(qty)}
        return self._request("POST", "/v2/orders", "Order", json={
            "symbol": symbol,
            "qty": str(qty),
            "side": side,
            "type": order_type,
            "time_in_force": "day",
        })

    def close_position(self, symbol: str) -> Dict[str, Any]:
        log.info("CLOSE %s", symbol)
        if self.dry_run:
            return {"id": DRY_RUN_ID, "symbol": symbol}
        return self._request("DELETE", f"/v2/positions/{symbol}", "Close position")

    def close_all_positions(self) -> Any:
        log.info("CLOSE ALL (cancel open orders)")
        if self.dry_run:
            return []
        return self._request("DELETE", "/v2/positions", "Close all",
                             params={"cancel_orders": "true"})
