from datetime import datetime, timedelta, timezone

import pytest

from decision_service.rules import SessionPhase, et_minutes, get_session, prev_trading_dates

UTC = timezone.utc


def ts(*args) -> int:
    return int(datetime(*args, tzinfo=UTC).timestamp())


# ─── session classifier ───────────────────────────────────────────────
@pytest.mark.parametrize("utc, expected", [
    (ts(2024, 1, 10, 9, 0), SessionPhase.PREMARKET),     # 04:00 EST
    (ts(2024, 1, 10, 14, 29), SessionPhase.PREMARKET),   # 09:29 EST
    (ts(2024, 1, 10, 14, 30), SessionPhase.REGULAR),     # 09:30 EST
    (ts(2024, 1, 10, 20, 59), SessionPhase.REGULAR),     # 15:59 EST
    (ts(2024, 1, 10, 21, 0), SessionPhase.AFTERHOURS),   # 16:00 EST
    (ts(2024, 1, 11, 4, 59), SessionPhase.AFTERHOURS),   # 23:59 EST
])
def test_winter_boundaries(utc, expected):
    assert get_session(utc) is expected


@pytest.mark.parametrize("utc, expected", [
    (ts(2024, 7, 10, 13, 29), SessionPhase.PREMARKET),   # 09:29 EDT
    (ts(2024, 7, 10, 13, 30), SessionPhase.REGULAR),     # 09:30 EDT
    (ts(2024, 7, 10, 19, 59), SessionPhase.REGULAR),     # 15:59 EDT
    (ts(2024, 7, 10, 20, 0), SessionPhase.AFTERHOURS),   # 16:00 EDT
])
def test_summer_boundaries_follow_daylight_saving(utc, expected):
    assert get_session(utc) is expected


def test_same_utc_time_differs_across_dst_switch():
    # 13:30 UTC is 08:30 on the Friday before the switch, 09:30 the Monday after
    assert get_session(ts(2024, 3, 8, 13, 30)) is SessionPhase.PREMARKET
    assert get_session(ts(2024, 3, 11, 13, 30)) is SessionPhase.REGULAR


def test_fall_back_switch():
    # first Monday after the November switch: 14:30 UTC is 09:30 EST again
    assert get_session(ts(2024, 11, 4, 13, 30)) is SessionPhase.PREMARKET
    assert get_session(ts(2024, 11, 4, 14, 30)) is SessionPhase.REGULAR


def test_midnight_and_pre_four_am_are_premarket():
    midnight = ts(2024, 1, 10, 5, 0)            # 00:00 EST
    assert et_minutes(midnight) == 0
    assert get_session(midnight) is SessionPhase.PREMARKET
    assert get_session(ts(2024, 1, 10, 8, 59)) is SessionPhase.PREMARKET  # 03:59


def test_classifier_is_total_and_deterministic():
    start = ts(2024, 3, 8, 0, 0)
    for step in range(0, 4 * 24 * 60, 7):
        t = start + step * 60
        first = get_session(t)
        assert first in SessionPhase
        assert get_session(t) is first
        assert 0 <= et_minutes(t) < 24 * 60


# ─── trading date selector ────────────────────────────────────────────
def _daily(days):
    return [{"t": f"{d}T05:00:00Z"} for d in days]


def test_four_most_recent_dates_newest_first():
    ref = datetime(2024, 3, 21)
    days = [(ref - timedelta(days=k)).strftime("%Y-%m-%d") for k in range(10, 0, -1)]
    out = prev_trading_dates(_daily(days), "2024-03-21", 4)
    assert out == ["2024-03-20", "2024-03-19", "2024-03-18", "2024-03-17"]


def test_reference_date_and_later_are_excluded():
    days = ["2024-03-07", "2024-03-08", "2024-03-11", "2024-03-12", "2024-03-13"]
    assert prev_trading_dates(_daily(days), "2024-03-12", 4) == \
        ["2024-03-11", "2024-03-08", "2024-03-07"]


def test_needs_two_daily_bars():
    assert prev_trading_dates(_daily(["2024-03-11"]), "2024-03-12", 4) == []
    assert prev_trading_dates([], "2024-03-12", 4) == []


def test_dates_are_distinct():
    days = ["2024-03-07", "2024-03-08", "2024-03-08", "2024-03-11"]
    assert prev_trading_dates(_daily(days), "2024-03-12", 3) == \
        ["2024-03-11", "2024-03-08", "2024-03-07"]
