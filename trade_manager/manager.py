#!/usr/bin/env python3
"""
manager.py – process entry point + status REST API
--------------------------------------------------
Environment
-----------
ALPACA_API_KEY / ALPACA_API_SECRET   credentials            (required)
SYMBOL            traded symbol                             (default: TSLA)
QTY               shares per entry                          (default: 1)
STOP_LOSS_PCT     stop distance from entry, percent         (default: 5)
POLL_INTERVAL_MS  milliseconds between cycles               (default: 30000)
BAR_CACHE_URL     redis://… for a shared bar cache, ""=RAM  (default: "")
DRY_RUN           1 → log orders instead of sending them    (default: 0)
API_PORT          expose REST API (0=off)                   (default: 8000)
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Query

from decision_service.decision_service import (
    CycleCoordinator, build_coordinator, load_settings, run_forever,
)
from shared.config import BotSettings
from shared.constants import REG_BAND_MULT, REG_REF_MULT, TRADE_LOG_CAP
from shared.logging import get_logger
from trade_manager.journal import TradeLog

log = get_logger("trade_manager")


def create_app(coordinator: CycleCoordinator,
               settings: Optional[BotSettings] = None) -> FastAPI:
    app = FastAPI(title="Regression Band Bot", docs_url=None, redoc_url=None)

    @app.get("/status")
    def status() -> Dict[str, Any]:
        snap = coordinator.snapshot
        last = snap.to_dict() if snap else None
        if last is not None:
            ref = REG_REF_MULT * snap.sigma
            last["ref_upper"], last["ref_lower"] = snap.fitted + ref, snap.fitted - ref
        return {
            "symbol": coordinator.symbol,
            "qty": coordinator.qty,
            "stop_loss_pct": coordinator.stop_loss * 100,
            "band_mult": REG_BAND_MULT,
            "dry_run": bool(settings and settings.dry_run),
            "busy": coordinator.busy,
            "cycles": coordinator.cycles,
            "last": last,
        }

    @app.get("/log")
    def trade_log(limit: int = Query(TRADE_LOG_CAP, ge=1, le=TRADE_LOG_CAP)) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in coordinator.journal.entries()[:limit]]

    return app


def main() -> None:
    settings = load_settings()
    coordinator = build_coordinator(settings, journal=TradeLog())

    log.info("Bot started: %s x%s, SL=%s%%, poll=%ss, feed=%s%s",
             settings.symbol, settings.qty, settings.stop_loss_pct,
             settings.poll_seconds, settings.feed,
             " (dry-run)" if settings.dry_run else "")

    if settings.api_port:
        # cycle loop in the background, uvicorn owns the main thread + signals
        th = threading.Thread(target=run_forever, name="cycle-loop", daemon=True,
                              args=(coordinator, settings.poll_seconds))
        th.start()
        uvicorn.run(create_app(coordinator, settings), host="0.0.0.0",
                    port=settings.api_port, log_level="warning")
    else:
        run_forever(coordinator, settings.poll_seconds)


if __name__ == "__main__":
    main()
