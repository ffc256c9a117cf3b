import pytest

from data_loader.candles import Candle
from decision_service.decision import Action, ExternalPosition, Side, decide
from decision_service.regression import Bands

BANDS = Bands(fitted=100.0, upper=110.0, lower=90.0, sigma=4.0)
FLAT = ExternalPosition.flat()


def bar(high, low):
    return Candle(time=0, open=low, high=high, low=low, close=(high + low) / 2)


def long_at(price):
    return ExternalPosition(Side.LONG, 1, price, 0.0)


def short_at(price):
    return ExternalPosition(Side.SHORT, 1, price, 0.0)


# ─── LONG ─────────────────────────────────────────────────────────────
def test_long_stop_beats_regression_touch():
    d = decide(bar(high=101, low=94), BANDS, long_at(100), 0.05)
    assert d.action is Action.EXIT_STOP
    assert d.level == pytest.approx(95.0)
    assert d.price == 94


def test_long_exits_on_touching_the_line():
    d = decide(bar(high=100.0, low=96), BANDS, long_at(100), 0.05)
    assert d.action is Action.EXIT_REGRESSION_TOUCH
    assert d.level == 100.0 and d.trigger == "high"


def test_long_below_lower_band_does_not_add():
    d = decide(bar(high=95, low=85), BANDS, long_at(80), 0.05)
    assert d.action is Action.NO_ACTION
    assert d.side is Side.LONG


# ─── SHORT ────────────────────────────────────────────────────────────
def test_short_stop_beats_regression_touch():
    d = decide(bar(high=106, low=99), BANDS, short_at(100), 0.05)
    assert d.action is Action.EXIT_STOP
    assert d.level == pytest.approx(105.0)


def test_short_exits_on_touching_the_line():
    d = decide(bar(high=104, low=99.5), BANDS, short_at(100), 0.05)
    assert d.action is Action.EXIT_REGRESSION_TOUCH
    assert d.trigger == "low"


def test_short_above_upper_band_does_not_reverse():
    d = decide(bar(high=115, low=101), BANDS, short_at(120), 0.05)
    assert d.action is Action.NO_ACTION


# ─── flat ─────────────────────────────────────────────────────────────
def test_flat_high_over_upper_enters_short():
    assert decide(bar(high=111, low=101), BANDS, FLAT, 0.05).action is Action.ENTER_SHORT


def test_flat_low_under_lower_enters_long():
    d = decide(bar(high=105, low=89), BANDS, FLAT, 0.05)
    assert d.action is Action.ENTER_LONG
    assert d.level == 90.0


def test_flat_inside_band_does_nothing():
    d = decide(bar(high=105, low=95), BANDS, FLAT, 0.05)
    assert d.action is Action.NO_ACTION
    assert d.describe() == "No signal. Waiting..."


def test_flat_upper_band_checked_first():
    assert decide(bar(high=111, low=89), BANDS, FLAT, 0.05).action is Action.ENTER_SHORT


def test_band_edges_are_inclusive():
    assert decide(bar(high=110, low=95), BANDS, FLAT, 0.05).action is Action.ENTER_SHORT
    assert decide(bar(high=105, low=90), BANDS, FLAT, 0.05).action is Action.ENTER_LONG


# ─── broker payloads / text ───────────────────────────────────────────
def test_position_from_alpaca_payload():
    pos = ExternalPosition.from_alpaca(
        {"qty": "-3", "avg_entry_price": "101.5", "unrealized_pl": "-4.2"})
    assert pos == ExternalPosition(Side.SHORT, 3.0, 101.5, -4.2)
    assert ExternalPosition.from_alpaca({"qty": "2", "avg_entry_price": "50"}).side is Side.LONG


@pytest.mark.parametrize("raw", [None, {}, {"qty": "0"}])
def test_absent_or_empty_position_is_flat(raw):
    assert ExternalPosition.from_alpaca(raw).is_flat


def test_describe_mentions_trigger_and_level():
    d = decide(bar(high=101, low=94), BANDS, long_at(100), 0.05)
    assert d.describe() == "EXIT STOP: low 94.00 <= 95.00"
    d = decide(bar(high=111, low=101), BANDS, FLAT, 0.05)
    assert d.describe() == "ENTRY SHORT: high 111.00 >= 110.00"
