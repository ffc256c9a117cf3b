"""
journal.py – bounded, newest-first trade log for the status API
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

from shared.constants import TRADE_LOG_CAP
from shared.utils import now_utc

CATEGORIES = ("info", "entry", "exit", "error")


@dataclass(frozen=True)
class TradeLogEntry:
    timestamp: datetime
    message: str
    category: str = "info"

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["timestamp"] = self.timestamp.isoformat()
        return d


class TradeLog:
    """Ring of the last `cap` entries; the oldest fall off silently."""

    def __init__(self, cap: int = TRADE_LOG_CAP) -> None:
        self._entries: Deque[TradeLogEntry] = deque(maxlen=cap)
        self._lock = threading.Lock()

    def append(self, message: str, category: str = "info",
               timestamp: Optional[datetime] = None) -> TradeLogEntry:
        if category not in CATEGORIES:
            raise ValueError(f"unknown log category {category!r}")
        entry = TradeLogEntry(timestamp or now_utc(), message, category)
        with self._lock:
            self._entries.appendleft(entry)
        return entry

    def entries(self) -> List[TradeLogEntry]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
