"""
constants.py – single source of hard-coded numbers
"""

REG_BAND_MULT = 2.5           # ±2.5σ entry bands
REG_REF_MULT  = 1.5           # ±1.5σ reference bands (status display only)
DEFAULT_STOP_LOSS_PCT = 5.0

MIN_SIGMA   = 0.001           # below this the band carries no signal
DENOM_EPS   = 1e-12           # near-singular least-squares guard

# session boundaries in ET – minutes from midnight
REGULAR_START    = 9 * 60 + 30
REGULAR_END      = 16 * 60

# intraday fetch window (extended hours, ET wall clock)
INTRADAY_START_HOUR = 4
INTRADAY_END_HOUR   = 20

TF_INTRADAY = "30Min"
TF_DAILY    = "1Day"

PREV_DAYS       = 4           # + today = five-day regression window
DAILY_LOOKBACK  = 20          # daily bars requested to find PREV_DAYS
LOOKBACK_FACTOR = 1.6         # calendar days per trading day (weekends/holidays)

TRADE_LOG_CAP = 100

# cache key template (symbol, timeframe, start, end)
KEY_BARS = "bars:{}:{}:{}:{}"
