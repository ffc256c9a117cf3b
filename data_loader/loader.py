#!/usr/bin/env python3
"""
loader.py – Alpaca market-data client
=====================================
• `fetch_bars` follows `next_page_token` until the window is complete,
  so callers always see one ascending, gap-free-as-available list.
• Completed windows go through the injected bar cache; today's window is
  still forming and is dropped from the cache before every cycle.
• Day windows are built on the New York wall clock (04:00 → 20:00 ET),
  with the UTC offset taken from the tz database rather than hard-coded.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import requests

from shared.bar_cache import BarCache, MemoryBarCache, cache_key
from shared.config import DATA_BASE_URL
from shared.constants import (
    DAILY_LOOKBACK, INTRADAY_END_HOUR, INTRADAY_START_HOUR,
    LOOKBACK_FACTOR, TF_DAILY, TF_INTRADAY,
)
from shared.errors import AuthError, CollaboratorError, RateLimitError
from shared.logging import get_logger
from shared.utils import et_wall_clock

PAGE_LIMIT = 10_000
TIMEOUT    = 10

log = get_logger("data_loader")


def check_response(resp: requests.Response) -> None:
    """Map Alpaca HTTP failures onto our error types."""
    if resp.ok:
        return
    body = resp.text or ""
    if resp.status_code in (401, 403):
        raise AuthError("Invalid API credentials. Check your API key and secret.",
                        resp.status_code)
    if resp.status_code == 429:
        raise RateLimitError("Rate limited by Alpaca. Wait a moment and try again.",
                             resp.status_code)
    if resp.status_code == 422:
        raise CollaboratorError(f"Invalid request: {body}", resp.status_code)
    raise CollaboratorError(f"Alpaca API error {resp.status_code}: {body}",
                            resp.status_code)


def daily_lookback_days(count: int) -> int:
    """Calendar days needed to cover `count` trading days."""
    return math.ceil(count * LOOKBACK_FACTOR)


def intraday_window(day: str) -> tuple[str, str]:
    """(start, end) RFC-3339 strings for 04:00–20:00 ET on `day`."""
    start = et_wall_clock(day, INTRADAY_START_HOUR)
    end   = et_wall_clock(day, INTRADAY_END_HOUR)
    return start.isoformat(), end.isoformat()


class MarketDataClient:
    def __init__(self, api_key: str, api_secret: str, feed: str = "sip",
                 base_url: str = DATA_BASE_URL,
                 cache: Optional[BarCache] = None,
                 session: Optional[requests.Session] = None) -> None:
        self.feed     = feed or "sip"
        self.base_url = base_url.rstrip("/")
        self.cache    = cache if cache is not None else MemoryBarCache()
        self.session  = session or requests.Session()
        self.session.headers.update({
            "APCA-API-KEY-ID":     api_key,
            "APCA-API-SECRET-KEY": api_secret,
        })

    def _get_json(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        resp = self.session.get(url, params=params, timeout=TIMEOUT)
        check_response(resp)
        return resp.json()

    # ───── raw bars ────────────────────────────────────────────────
    def fetch_bars(self, symbol: str, timeframe: str, start: str, end: str,
                   use_cache: bool = True) -> List[Dict[str, Any]]:
        key = cache_key(symbol, timeframe, start, end)
        if use_cache:
            hit = self.cache.get(key)
            if hit is not None:
                return hit

        url = f"{self.base_url}/stocks/{symbol}/bars"
        bars: List[Dict[str, Any]] = []
        page_token: Optional[str] = None
        pages = 0
        while True:
            params = {
                "timeframe": timeframe,
                "start": start,
                "end": end,
                "limit": str(PAGE_LIMIT),
                "feed": self.feed,
                "sort": "asc",
            }
            if page_token:
                params["page_token"] = page_token
            data = self._get_json(url, params)
            bars.extend(data.get("bars") or [])
            pages += 1
            page_token = data.get("next_page_token")
            if not page_token:
                break

        log.debug("%s %s %s→%s: %d bars in %d page(s)",
                  symbol, timeframe, start, end, len(bars), pages)
        if use_cache:
            self.cache.set(key, bars)
        return bars

    # ───── day helpers ─────────────────────────────────────────────
    def fetch_intraday_bars(self, day: str, symbol: str,
                            use_cache: bool = True) -> List[Dict[str, Any]]:
        """30-minute bars of one ET trading day, extended hours included."""
        start, end = intraday_window(day)
        return self.fetch_bars(symbol, TF_INTRADAY, start, end, use_cache)

    def fetch_daily_bars(self, end_day: str, symbol: str,
                         count: int = DAILY_LOOKBACK) -> List[Dict[str, Any]]:
        """Daily bars reaching back far enough to hold `count` sessions."""
        end_d   = date.fromisoformat(end_day)
        start_d = end_d - timedelta(days=daily_lookback_days(count))
        return self.fetch_bars(symbol, TF_DAILY, start_d.isoformat(), end_day)

    def clear_today_cache(self, symbol: str, day: str) -> None:
        start, end = intraday_window(day)
        self.cache.invalidate(cache_key(symbol, TF_INTRADAY, start, end))
