"""
rules.py  – reusable helpers for the regression-band strategy
=============================================================
Pure-function utilities only; no HTTP, no side-effects.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Mapping, Sequence

from shared.constants import REGULAR_END, REGULAR_START
from shared.utils import ET


class SessionPhase(str, Enum):
    PREMARKET  = "PREMARKET"
    REGULAR    = "REGULAR"
    AFTERHOURS = "AFTERHOURS"


def et_minutes(utc_seconds: int) -> int:
    """Minutes since New York midnight for an epoch timestamp."""
    et = datetime.fromtimestamp(utc_seconds, tz=timezone.utc).astimezone(ET)
    h = et.hour
    if h == 24:                      # some formatters render midnight as 24:00
        h = 0
    return h * 60 + et.minute


def get_session(utc_seconds: int) -> SessionPhase:
    """
    Classify a bar timestamp. Minutes before 04:00 fall into PREMARKET,
    the last minute of the day (23:59) is AFTERHOURS. Holidays are not
    known here – an empty bar list is the holiday signal.
    """
    mins = et_minutes(utc_seconds)
    if mins < REGULAR_START:
        return SessionPhase.PREMARKET
    if mins < REGULAR_END:
        return SessionPhase.REGULAR
    return SessionPhase.AFTERHOURS


def prev_trading_dates(daily_bars: Sequence[Mapping[str, Any]],
                       reference_date: str, n: int) -> List[str]:
    """
    The `n` most recent distinct trading dates strictly before
    `reference_date`, newest first. Needs at least two daily bars.
    """
    if not daily_bars or len(daily_bars) < 2:
        return []
    before = [b["t"][:10] for b in daily_bars if b["t"][:10] < reference_date]
    dates: List[str] = []
    for d in reversed(before):
        if len(dates) >= n:
            break
        if d not in dates:
            dates.append(d)
    return dates
