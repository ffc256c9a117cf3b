"""
bar_cache.py – cache for completed bar windows
==============================================

• Keyed by (symbol, timeframe, start, end); values are the raw bar lists
  exactly as the data API returned them.
• Entries never expire on their own – a finished trading day does not
  change. The still-forming day is removed with `invalidate()` before
  every cycle.
• `MemoryBarCache` is the default; `RedisBarCache` shares the windows
  between restarts / processes when `BAR_CACHE_URL` is set.
"""

from __future__ import annotations

import json
import threading
import time
from typing import Any, Dict, List, Optional, Protocol, Tuple

import redis

from .constants import KEY_BARS
from .logging import get_logger

log = get_logger("shared.bar_cache")

CacheKey = Tuple[str, str, str, str]     # symbol, timeframe, start, end
Bars     = List[Dict[str, Any]]


class BarCache(Protocol):
    def get(self, key: CacheKey) -> Optional[Bars]: ...
    def set(self, key: CacheKey, bars: Bars) -> None: ...
    def invalidate(self, key: CacheKey) -> None: ...


def cache_key(symbol: str, timeframe: str, start: str, end: str) -> CacheKey:
    return (symbol, timeframe, start, end)


# ───── in-process ─────────────────────────────────────────────────────
class MemoryBarCache:
    """Plain dict; written only from inside the active cycle."""

    def __init__(self) -> None:
        self._store: Dict[CacheKey, Bars] = {}

    def get(self, key: CacheKey) -> Optional[Bars]:
        return self._store.get(key)

    def set(self, key: CacheKey, bars: Bars) -> None:
        self._store[key] = list(bars)

    def invalidate(self, key: CacheKey) -> None:
        self._store.pop(key, None)

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        return key in self._store


# ───── Redis backed ───────────────────────────────────────────────────
class RedisBarCache:
    """JSON-encoded windows in Redis, connection opened on first use."""

    def __init__(self, url: str, client: Optional[redis.Redis] = None,
                 retries: int = 3) -> None:
        self.url = url
        self.retries = retries
        self._client = client
        self._lock = threading.Lock()

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = self._connect()
        return self._client

    def _connect(self) -> redis.Redis:
        last_exc: Exception | None = None
        for attempt in range(1, self.retries + 1):
            try:
                client = redis.Redis.from_url(
                    self.url,
                    decode_responses=True,
                    socket_timeout=2,
                )
                client.ping()
                log.info("Connected to Redis at %s", self.url)
                return client
            except redis.RedisError as exc:
                last_exc = exc
                log.warning("Redis unavailable – retry %d/%d in 2 s (%s)",
                            attempt, self.retries, exc)
                time.sleep(2)
        raise last_exc  # type: ignore[misc]

    @staticmethod
    def _key(key: CacheKey) -> str:
        return KEY_BARS.format(*key)

    def get(self, key: CacheKey) -> Optional[Bars]:
        raw = self.client.get(self._key(key))
        return json.loads(raw) if raw is not None else None

    def set(self, key: CacheKey, bars: Bars) -> None:
        self.client.set(self._key(key), json.dumps(bars))

    def invalidate(self, key: CacheKey) -> None:
        self.client.delete(self._key(key))


def make_cache(url: str = "") -> BarCache:
    """`url` empty → memory; anything else is handed to Redis."""
    if not url:
        return MemoryBarCache()
    return RedisBarCache(url)
