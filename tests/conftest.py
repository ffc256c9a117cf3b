from __future__ import annotations

import threading
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from decision_service.decision_service import CycleCoordinator
from shared.errors import CollaboratorError
from trade_manager.journal import TradeLog

UTC = timezone.utc


def make_bar(ts: datetime, o: float, h: float, l: float, c: float,
             v: Optional[float] = 1000.0) -> Dict[str, Any]:
    bar = {"t": ts.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
           "o": o, "h": h, "l": l, "c": c}
    if v is not None:
        bar["v"] = v
    return bar


def day_bars(day: str, first_utc_hour: int = 13, count: int = 13,
             closes: Optional[List[float]] = None) -> List[Dict[str, Any]]:
    """30-min bars starting `first_utc_hour`:30 UTC, closes alternate 100/102."""
    start = datetime.combine(date.fromisoformat(day), datetime.min.time(), UTC) \
        + timedelta(hours=first_utc_hour, minutes=30)
    out = []
    for i in range(count):
        c = closes[i] if closes else (100.0 if i % 2 == 0 else 102.0)
        out.append(make_bar(start + timedelta(minutes=30 * i), c, c + 0.5, c - 0.5, c))
    return out


def daily_bars(days: List[str]) -> List[Dict[str, Any]]:
    return [{"t": f"{d}T04:00:00Z", "o": 100, "h": 103, "l": 99, "c": 101, "v": 1e6}
            for d in days]


class FakeData:
    """Stands in for MarketDataClient; records every call."""

    def __init__(self, today: str, today_bars: List[Dict[str, Any]],
                 prev: Dict[str, List[Dict[str, Any]]],
                 daily: Optional[List[Dict[str, Any]]] = None) -> None:
        self.today = today
        self.today_bars = today_bars
        self.prev = prev
        self.daily = daily if daily is not None else daily_bars(sorted(prev) + [today])
        self.calls: List[tuple] = []
        self.fail_with: Optional[Exception] = None
        self.on_fetch_today = None

    def clear_today_cache(self, symbol: str, day: str) -> None:
        self.calls.append(("clear", symbol, day))

    def fetch_intraday_bars(self, day: str, symbol: str, use_cache: bool = True):
        self.calls.append(("intraday", day, use_cache))
        if self.fail_with is not None:
            raise self.fail_with
        if day == self.today:
            if self.on_fetch_today is not None:
                self.on_fetch_today()
            return list(self.today_bars)
        return list(self.prev.get(day, []))

    def fetch_daily_bars(self, end_day: str, symbol: str, count: int = 20):
        self.calls.append(("daily", end_day, count))
        return list(self.daily)


class FakeTrading:
    def __init__(self, position: Optional[Dict[str, Any]] = None) -> None:
        self.position = position
        self.orders: List[tuple] = []
        self.closes: List[str] = []
        self.fail_orders = False

    def get_position(self, symbol: str):
        return self.position

    def place_order(self, symbol: str, qty: float, side: str, order_type: str = "market"):
        if self.fail_orders:
            raise CollaboratorError("Order error 403: insufficient buying power", 403)
        self.orders.append((symbol, qty, side))
        return {"id": f"ord-{len(self.orders)}"}

    def close_position(self, symbol: str):
        if self.fail_orders:
            raise CollaboratorError("Close position error 500: boom", 500)
        self.closes.append(symbol)
        return {"id": f"close-{len(self.closes)}"}


# Wednesday 2024-03-13 15:00 UTC = 11:00 EDT
NOW = datetime(2024, 3, 13, 15, 0, tzinfo=UTC)
TODAY = "2024-03-13"
PREV = ["2024-03-07", "2024-03-08", "2024-03-11", "2024-03-12"]


@pytest.fixture
def today_bars():
    # 13:30 → 15:00 UTC (09:30 → 11:00 EDT); last bar spikes high
    bars = day_bars(TODAY, count=4)
    bars[-1] = make_bar(NOW, 101, 200, 100.5, 101)
    return bars


@pytest.fixture
def fake_data(today_bars):
    return FakeData(TODAY, today_bars, {d: day_bars(d) for d in PREV})


@pytest.fixture
def fake_trading():
    return FakeTrading()


@pytest.fixture
def coordinator(fake_data, fake_trading):
    return CycleCoordinator(fake_data, fake_trading, "TSLA", 1, 0.05,
                            journal=TradeLog(), clock=lambda: NOW)


@pytest.fixture
def gate():
    """Pair of events to hold a cycle open from another thread."""
    return threading.Event(), threading.Event()
