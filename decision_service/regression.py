"""
regression.py – least-squares line + σ band over a candle window
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from data_loader.candles import Candle
from shared.constants import DENOM_EPS, MIN_SIGMA, REG_BAND_MULT


@dataclass(frozen=True)
class Bands:
    fitted: float
    upper: float
    lower: float
    sigma: float


@dataclass(frozen=True)
class RegressionResult:
    slope: float = 0.0
    intercept: float = 0.0
    sigma: float = 0.0
    x0: float = 0.0          # time origin (first candle)

    @property
    def usable(self) -> bool:
        return self.sigma >= MIN_SIGMA

    def fitted_at(self, t: float) -> float:
        return self.intercept + self.slope * (t - self.x0)

    def bands_at(self, t: float, mult: float = REG_BAND_MULT) -> Bands:
        fitted = self.fitted_at(t)
        offset = mult * self.sigma
        return Bands(fitted=fitted, upper=fitted + offset,
                     lower=fitted - offset, sigma=self.sigma)


EMPTY = RegressionResult()


def compute_regression(candles: Sequence[Candle]) -> RegressionResult:
    """
    Close-on-time OLS. Time is shifted so the first candle sits at x=0;
    raw epoch seconds squared lose precision otherwise. σ is the
    population RMS residual (divisor n).

    Fewer than two candles or a singular fit give `EMPTY`.
    """
    if not candles or len(candles) < 2:
        return EMPTY

    n  = len(candles)
    xs = np.fromiter((c.time for c in candles), dtype=np.float64, count=n)
    ys = np.fromiter((c.close for c in candles), dtype=np.float64, count=n)
    x0 = xs[0]
    xn = xs - x0

    sum_x, sum_y = xn.sum(), ys.sum()
    sum_xy, sum_x2 = (xn * ys).sum(), (xn * xn).sum()

    denom = n * sum_x2 - sum_x * sum_x
    if abs(denom) < DENOM_EPS:
        return EMPTY

    b = (n * sum_xy - sum_x * sum_y) / denom
    a = (sum_y - b * sum_x) / n

    resid = ys - (a + b * xn)
    sigma = float(np.sqrt((resid * resid).sum() / n))

    return RegressionResult(slope=float(b), intercept=float(a),
                            sigma=sigma, x0=float(x0))
