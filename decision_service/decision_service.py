#!/usr/bin/env python3
"""
decision_service.py – regression-band live engine
=================================================

Once per poll interval:

1. skip weekends (ET calendar);
2. drop today's 30-min window from the cache and fetch it fresh – no bars
   means holiday / pre-open, latest bar outside REGULAR means sleep;
3. find the previous 4 trading dates from daily bars and load their
   (cached, finished) 30-min windows;
4. fit the five-day regression; σ below MIN_SIGMA skips the cycle;
5. read the broker position, decide, and let the executor act.

Every cycle that runs leaves exactly one entry in the trade log. A
trigger that arrives while a cycle is still running is dropped.
"""

from __future__ import annotations

import signal
import sys
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from data_loader.candles import Candle, to_candle, to_candles
from data_loader.loader import MarketDataClient
from decision_service import rules as R
from decision_service.decision import ExternalPosition, decide
from decision_service.regression import compute_regression
from shared.bar_cache import make_cache
from shared.config import BotSettings
from shared.constants import DAILY_LOOKBACK, PREV_DAYS, REG_BAND_MULT
from shared.errors import ConfigError
from shared.logging import get_logger
from shared.utils import et_date_str, is_weekend, now_utc
from trade_executor.alpaca_client import TradingClient
from trade_executor.executor import Outcome, execute
from trade_manager.journal import TradeLog

log = get_logger("decision_service")


@dataclass(frozen=True)
class CycleSnapshot:
    """What the last full evaluation saw; shown by the status API."""
    timestamp: str
    session: str
    bars: int
    sigma: float
    fitted: float
    upper: float
    lower: float
    last_high: float
    last_low: float
    last_close: float
    position_side: str
    position_qty: float
    entry_price: float
    unrealized_pnl: float
    action: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class CycleCoordinator:
    def __init__(self, data: MarketDataClient, trading: TradingClient,
                 symbol: str, qty: float, stop_loss_fraction: float,
                 journal: Optional[TradeLog] = None,
                 clock: Callable[[], datetime] = now_utc,
                 prev_days: int = PREV_DAYS,
                 band_mult: float = REG_BAND_MULT) -> None:
        self.data       = data
        self.trading    = trading
        self.symbol     = symbol
        self.qty        = qty
        self.stop_loss  = stop_loss_fraction
        self.journal    = journal if journal is not None else TradeLog()
        self.clock      = clock
        self.prev_days  = prev_days
        self.band_mult  = band_mult

        self.snapshot: Optional[CycleSnapshot] = None
        self.cycles = 0
        self._in_flight = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    # ───── public ─────────────────────────────────────────────────
    def tick(self) -> bool:
        """Run one cycle. Returns False when another cycle is in flight."""
        if not self._in_flight.acquire(blocking=False):
            return False
        try:
            self.cycles += 1
            try:
                outcome = self._run_cycle()
            except Exception as exc:  # noqa: BLE001
                log.exception("TICK ERROR: %s", exc)
                outcome = Outcome("error", f"TICK ERROR: {exc}")
            self.journal.append(outcome.message, outcome.category)
            if outcome.category != "error":
                log.info("%s", outcome.message, extra={"category": outcome.category})
            return True
        finally:
            self._in_flight.release()

    # ───── one cycle ──────────────────────────────────────────────
    def _run_cycle(self) -> Outcome:
        now = self.clock()
        if is_weekend(now):
            return Outcome("info", "Weekend – sleeping...")

        today = et_date_str(now)
        self.data.clear_today_cache(self.symbol, today)
        intraday = self.data.fetch_intraday_bars(today, self.symbol, use_cache=False)
        if not intraday:
            return Outcome("info", "No intraday bars yet (holiday or pre-open). Sleeping...")

        last = to_candle(intraday[-1])
        session = R.get_session(last.time)
        if session is not R.SessionPhase.REGULAR:
            return Outcome("info", f"Outside RTH (session={session.value}). Sleeping...")

        candles = self._window(today, intraday)
        reg = compute_regression(candles)
        if not reg.usable:
            return Outcome("info", f"Regression σ too small ({reg.sigma:.4f}). Skipping...")

        bands = reg.bands_at(last.time, self.band_mult)
        log.info("Tick: %d bars, σ=%.2f, reg=%.2f, upper=%.2f, lower=%.2f, "
                 "last=[H:%.2f L:%.2f C:%.2f]",
                 len(intraday), reg.sigma, bands.fitted, bands.upper, bands.lower,
                 last.high, last.low, last.close)

        position = ExternalPosition.from_alpaca(self.trading.get_position(self.symbol))
        if position.is_flat:
            log.info("No position.")
        else:
            log.info("Position: %s %sx @ %.2f, unrealPnL=$%.2f",
                     position.side.value, position.quantity,
                     position.average_entry_price, position.unrealized_pnl)

        decision = decide(last, bands, position, self.stop_loss)
        self.snapshot = self._snap(now, session, candles, reg.sigma, bands,
                                   last, position, decision.action.value)
        return execute(decision, self.trading, self.symbol, self.qty)

    def _window(self, today: str, intraday: List[Dict[str, Any]]) -> List[Candle]:
        """Previous trading days (oldest first) followed by today."""
        daily = self.data.fetch_daily_bars(today, self.symbol, DAILY_LOOKBACK)
        prev_dates = R.prev_trading_dates(daily, today, self.prev_days)
        candles: List[Candle] = []
        for day in reversed(prev_dates):
            candles.extend(to_candles(self.data.fetch_intraday_bars(day, self.symbol)))
        candles.extend(to_candles(intraday))
        return candles

    @staticmethod
    def _snap(now, session, candles, sigma, bands, last, position, action) -> CycleSnapshot:
        return CycleSnapshot(
            timestamp=now.isoformat(),
            session=session.value,
            bars=len(candles),
            sigma=sigma,
            fitted=bands.fitted,
            upper=bands.upper,
            lower=bands.lower,
            last_high=last.high,
            last_low=last.low,
            last_close=last.close,
            position_side=position.side.value,
            position_qty=position.quantity,
            entry_price=position.average_entry_price,
            unrealized_pnl=position.unrealized_pnl,
            action=action,
        )


# ─── WIRING / LOOP ────────────────────────────────────────────────────
def build_coordinator(settings: BotSettings,
                      journal: Optional[TradeLog] = None) -> CycleCoordinator:
    data = MarketDataClient(settings.api_key, settings.api_secret,
                            feed=settings.feed, base_url=settings.data_url,
                            cache=make_cache(settings.bar_cache_url))
    trading = TradingClient(settings.api_key, settings.api_secret,
                            base_url=settings.trade_url, dry_run=settings.dry_run)
    return CycleCoordinator(data, trading, settings.symbol, settings.qty,
                            settings.stop_loss_fraction, journal=journal)


def run_forever(coordinator: CycleCoordinator, poll_seconds: float,
                stop: Optional[threading.Event] = None) -> None:
    """
    Fire `tick` on its own thread every `poll_seconds` (first one right
    away). Slow cycles are not waited for; the in-flight guard drops the
    overlapping triggers.
    """
    stop = stop or threading.Event()
    while not stop.is_set():
        threading.Thread(target=coordinator.tick, name="cycle", daemon=True).start()
        stop.wait(poll_seconds)
    log.info("cycle loop stopped")


def load_settings() -> BotSettings:
    try:
        return BotSettings.from_env()
    except ConfigError as exc:
        log.error("[FATAL] %s. Set env vars and restart.", exc)
        sys.exit(1)


def main() -> None:
    settings = load_settings()
    coordinator = build_coordinator(settings)
    stop = threading.Event()

    def _shutdown(signum, _frame) -> None:
        log.info("Received %s. Shutting down gracefully...", signal.Signals(signum).name)
        stop.set()

    signal.signal(signal.SIGTERM, _shutdown)
    signal.signal(signal.SIGINT, _shutdown)

    log.info("Bot started: %s x%s, SL=%s%%, poll=%ss, feed=%s%s",
             settings.symbol, settings.qty, settings.stop_loss_pct,
             settings.poll_seconds, settings.feed,
             " (dry-run)" if settings.dry_run else "")
    run_forever(coordinator, settings.poll_seconds, stop)


if __name__ == "__main__":
    main()
