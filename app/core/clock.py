"""
Clock — the single source of "now" for the engine, classifier, dedup and
scheduler.

Wall-clock readings (`now`, `today`) are timezone-aware in the configured
zone and drive calendar logic (due dates, cron matching). Elapsed-time
checks (dedup expiry, reply window) use `monotonic()` so clock adjustments
cannot shift them.
"""
from __future__ import annotations

import time
from datetime import date, datetime
from zoneinfo import ZoneInfo


class Clock:
    """Real clock bound to one time zone."""

    def __init__(self, tz: str | ZoneInfo = "UTC"):
        self.tz = tz if isinstance(tz, ZoneInfo) else ZoneInfo(tz)

    def now(self) -> datetime:
        return datetime.now(tz=self.tz)

    def today(self) -> date:
        return self.now().date()

    def monotonic(self) -> float:
        return time.monotonic()
