"""
candles.py – raw Alpaca bar → Candle
------------------------------------
Alpaca bars look like ``{"t": "2024-03-04T14:30:00Z", "o": .., "h": ..,
"l": .., "c": .., "v": ..}``; `v` may be missing on thin feeds.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Mapping

import pandas as pd

from shared.errors import DataError


@dataclass(frozen=True)
class Candle:
    time: int          # epoch seconds, UTC
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0


def _epoch_seconds(val: Any) -> int:
    """RFC-3339 string / datetime → whole epoch seconds. Never coerces."""
    if not isinstance(val, (str, datetime)):
        raise DataError(f"bad bar timestamp {val!r}")
    try:
        ts = pd.Timestamp(val)
    except (ValueError, TypeError) as exc:
        raise DataError(f"bad bar timestamp {val!r}") from exc
    if ts is pd.NaT:
        raise DataError(f"bad bar timestamp {val!r}")
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return int(ts.value // 1_000_000_000)


def to_candle(bar: Mapping[str, Any]) -> Candle:
    if "t" not in bar:
        raise DataError(f"bar without timestamp: {dict(bar)!r}")
    return Candle(
        time=_epoch_seconds(bar["t"]),
        open=float(bar["o"]),
        high=float(bar["h"]),
        low=float(bar["l"]),
        close=float(bar["c"]),
        volume=float(bar.get("v") or 0.0),
    )


def to_candles(bars: Iterable[Mapping[str, Any]]) -> List[Candle]:
    return [to_candle(b) for b in bars]
