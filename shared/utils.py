"""
utils.py – small Eastern-time helpers reused in multiple services
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

ET = ZoneInfo("America/New_York")


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def to_et(dt: datetime) -> datetime:
    """Naïve datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(ET)


def et_date_str(dt: datetime) -> str:
    """YYYY-MM-DD of `dt` on the New York calendar."""
    return to_et(dt).date().isoformat()


def is_weekend(dt: datetime) -> bool:
    return to_et(dt).weekday() >= 5


def et_wall_clock(day: str | date, hour: int, minute: int = 0) -> datetime:
    """
    `day` at hh:mm New York wall-clock time, tz-aware. The UTC offset
    follows daylight-saving (-05:00 in winter, -04:00 in summer).
    """
    if isinstance(day, str):
        day = date.fromisoformat(day)
    return datetime.combine(day, time(hour, minute), tzinfo=ET)
