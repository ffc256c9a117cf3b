"""
decision.py – map (bar, band, broker position) → at most one action
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from data_loader.candles import Candle
from decision_service.regression import Bands


class Side(str, Enum):
    LONG  = "LONG"
    SHORT = "SHORT"
    NONE  = "NONE"


class Action(str, Enum):
    EXIT_STOP             = "EXIT_STOP"
    EXIT_REGRESSION_TOUCH = "EXIT_REG"
    ENTER_LONG            = "ENTRY_LONG"
    ENTER_SHORT           = "ENTRY_SHORT"
    NO_ACTION             = "NO_ACTION"

    @property
    def is_exit(self) -> bool:
        return self in (Action.EXIT_STOP, Action.EXIT_REGRESSION_TOUCH)

    @property
    def is_entry(self) -> bool:
        return self in (Action.ENTER_LONG, Action.ENTER_SHORT)


@dataclass(frozen=True)
class ExternalPosition:
    """Broker-owned position, read fresh every cycle."""
    side: Side = Side.NONE
    quantity: float = 0.0
    average_entry_price: float = 0.0
    unrealized_pnl: float = 0.0

    @classmethod
    def flat(cls) -> "ExternalPosition":
        return cls()

    @classmethod
    def from_alpaca(cls, raw: Optional[Mapping[str, Any]]) -> "ExternalPosition":
        """Alpaca reports shorts as negative `qty`; None means flat."""
        if not raw:
            return cls.flat()
        qty = float(raw.get("qty") or 0)
        if qty > 0:
            side = Side.LONG
        elif qty < 0:
            side = Side.SHORT
        else:
            return cls.flat()
        return cls(
            side=side,
            quantity=abs(qty),
            average_entry_price=float(raw.get("avg_entry_price") or 0),
            unrealized_pnl=float(raw.get("unrealized_pl") or 0),
        )

    @property
    def is_flat(self) -> bool:
        return self.side is Side.NONE


@dataclass(frozen=True)
class Decision:
    action: Action
    side: Side                    # position the action refers to
    trigger: Optional[str] = None # "high" | "low"
    price: Optional[float] = None # bar price that triggered
    level: Optional[float] = None # stop, fitted value or band edge crossed
    bands: Optional[Bands] = None

    def describe(self) -> str:
        if self.action is Action.NO_ACTION:
            if self.side is Side.NONE:
                return "No signal. Waiting..."
            return f"Holding {self.side.value}, no exit signal."
        op = ">=" if self.trigger == "high" else "<="
        return f"{_LABELS[self.action]}: {self.trigger} {self.price:.2f} {op} {self.level:.2f}"


_LABELS = {
    Action.EXIT_STOP:             "EXIT STOP",
    Action.EXIT_REGRESSION_TOUCH: "EXIT REG",
    Action.ENTER_SHORT:           "ENTRY SHORT",
    Action.ENTER_LONG:            "ENTRY LONG",
}


def decide(candle: Candle, bands: Bands, position: ExternalPosition,
           stop_loss_fraction: float) -> Decision:
    """
    First match wins:
      LONG   → stop (low ≤ entry·(1−sl)) else regression touch (high ≥ fitted)
      SHORT  → stop (high ≥ entry·(1+sl)) else regression touch (low ≤ fitted)
      flat   → high ≥ upper ⇒ short, low ≤ lower ⇒ long, else nothing
    Holding a position never produces an entry in the same cycle.
    """
    fitted = bands.fitted

    if position.side is Side.LONG:
        stop = position.average_entry_price * (1 - stop_loss_fraction)
        if candle.low <= stop:
            return Decision(Action.EXIT_STOP, Side.LONG, "low", candle.low, stop, bands)
        if candle.high >= fitted:
            return Decision(Action.EXIT_REGRESSION_TOUCH, Side.LONG,
                            "high", candle.high, fitted, bands)
        return Decision(Action.NO_ACTION, Side.LONG, bands=bands)

    if position.side is Side.SHORT:
        stop = position.average_entry_price * (1 + stop_loss_fraction)
        if candle.high >= stop:
            return Decision(Action.EXIT_STOP, Side.SHORT, "high", candle.high, stop, bands)
        if candle.low <= fitted:
            return Decision(Action.EXIT_REGRESSION_TOUCH, Side.SHORT,
                            "low", candle.low, fitted, bands)
        return Decision(Action.NO_ACTION, Side.SHORT, bands=bands)

    if candle.high >= bands.upper:
        return Decision(Action.ENTER_SHORT, Side.NONE, "high", candle.high, bands.upper, bands)
    if candle.low <= bands.lower:
        return Decision(Action.ENTER_LONG, Side.NONE, "low", candle.low, bands.lower, bands)
    return Decision(Action.NO_ACTION, Side.NONE, bands=bands)
