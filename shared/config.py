"""
config.py – centralised env-var handling
=======================================

• Loads the first `.env` file it finds (cwd or /app) exactly **once**.
• Exposes `ENV` – a dict-like object that also supports attribute access.
• `env(key, default=None, cast=None)` helper for one-off lookups
  with automatic type-casting (int, float, bool).
• `BotSettings.from_env()` – the typed view the bot actually runs on.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from .constants import DEFAULT_STOP_LOSS_PCT
from .errors import ConfigError

DATA_BASE_URL  = "https://data.alpaca.markets/v2"
TRADE_BASE_URL = "https://paper-api.alpaca.markets"

# ───── locate & load .env (first one wins) ────────────────────────────
for candidate in (Path.cwd() / ".env", Path("/app/.env")):
    if candidate.is_file():
        load_dotenv(dotenv_path=candidate, override=False)
        break

# ───── ENV proxy object ───────────────────────────────────────────────
class _Env(dict):
    """Attr-style access to `os.environ` while staying dict-compatible."""

    def __getattr__(self, item: str) -> str | None:  # noqa: D401
        return os.getenv(item)

    def __getitem__(self, key: str) -> str:
        return os.environ[key]

    # ergonomic get with optional cast
    def get(self, key: str, default: Any = None, cast: Optional[type] = None) -> Any:  # noqa: D401
        val = os.getenv(key, default)
        if cast is not None and val is not None:
            try:
                if cast is bool:
                    return str(val).lower() in ("1", "true", "yes", "y")
                return cast(val)
            except (ValueError, TypeError):
                return default
        return val


ENV: _Env = _Env(os.environ)  # public alias

def env(key: str, default: Any = None, cast: Optional[type] = None) -> Any:
    """Shortcut for `ENV.get(key, default, cast)`."""
    return ENV.get(key, default, cast)


# ───── typed settings ─────────────────────────────────────────────────
@dataclass(frozen=True)
class BotSettings:
    api_key: str
    api_secret: str
    feed: str = "sip"
    data_url: str = DATA_BASE_URL
    trade_url: str = TRADE_BASE_URL
    symbol: str = "TSLA"
    qty: int = 1
    stop_loss_pct: float = DEFAULT_STOP_LOSS_PCT
    poll_interval_ms: int = 30_000
    bar_cache_url: str = ""            # "" → in-memory cache
    dry_run: bool = False
    api_port: int = 8000               # 0 → no status API

    @property
    def stop_loss_fraction(self) -> float:
        return self.stop_loss_pct / 100

    @property
    def poll_seconds(self) -> float:
        return self.poll_interval_ms / 1000

    @classmethod
    def from_env(cls) -> "BotSettings":
        """Build settings from the environment; credentials are mandatory."""
        key    = env("ALPACA_API_KEY", "")
        secret = env("ALPACA_API_SECRET", "")
        if not key or not secret:
            raise ConfigError("Missing ALPACA_API_KEY or ALPACA_API_SECRET")
        return cls(
            api_key=key,
            api_secret=secret,
            feed=env("ALPACA_FEED", "sip"),
            data_url=env("ALPACA_DATA_URL", DATA_BASE_URL),
            trade_url=env("ALPACA_TRADE_URL", TRADE_BASE_URL),
            symbol=env("SYMBOL", "TSLA").upper(),
            qty=env("QTY", 1, int),
            stop_loss_pct=env("STOP_LOSS_PCT", DEFAULT_STOP_LOSS_PCT, float),
            poll_interval_ms=env("POLL_INTERVAL_MS", 30_000, int),
            bar_cache_url=env("BAR_CACHE_URL", ""),
            dry_run=env("DRY_RUN", False, bool),
            api_port=env("API_PORT", 8000, int),
        )


__all__ = ["ENV", "env", "BotSettings", "DATA_BASE_URL", "TRADE_BASE_URL"]
