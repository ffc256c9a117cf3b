"""
executor.py – turn a Decision into a broker call
------------------------------------------------
* EXIT_*       →  close the whole position.
* ENTER_LONG   →  market BUY  `qty`.
* ENTER_SHORT  →  market SELL `qty`.
* NO_ACTION    →  nothing.

A failed submission is reported in the returned Outcome and is *not*
retried; the next cycle re-reads the broker position and decides again.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import requests

from decision_service.decision import Action, Decision
from shared.errors import CollaboratorError
from shared.logging import get_logger
from trade_executor.alpaca_client import TradingClient

log = get_logger("trade_executor")


@dataclass(frozen=True)
class Outcome:
    category: str                 # info | entry | exit | error
    message: str
    order_id: Optional[str] = None


def execute(decision: Decision, client: TradingClient,
            symbol: str, qty: float) -> Outcome:
    headline = decision.describe()
    action = decision.action

    if action is Action.NO_ACTION:
        return Outcome("info", headline)

    try:
        if action.is_exit:
            order = client.close_position(symbol)
            done = f"Closed {decision.side.value} position"
        else:
            side = "sell" if action is Action.ENTER_SHORT else "buy"
            order = client.place_order(symbol, qty, side)
            done = f"Placed {side.upper()} order"
    except (CollaboratorError, requests.RequestException) as exc:
        verb = "closing position" if action.is_exit else "placing order"
        log.error("%s → ERROR %s: %s", headline, verb, exc)
        return Outcome("error", f"{headline} → ERROR {verb}: {exc}")

    order_id = (order or {}).get("id") or "N/A"
    category = "exit" if action.is_exit else "entry"
    return Outcome(category, f"{headline} → {done}. Order ID: {order_id}", order_id)
