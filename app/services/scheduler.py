"""
Scheduler — cron-expression jobs evaluated against an injected clock.

Expressions use the classic 5 fields, in the clock's time zone:

    minute  hour  day-of-month  month  day-of-week
    0-59    0-23  1-31          1-12   0-7 (0 and 7 = Sunday)

Each field accepts `*`, a number, a range `a-b`, a list `a,b,c` and a step
`*/n` or `a-b/n`. All five fields must match (day-of-month and day-of-week
are ANDed, not ORed as in Vixie cron).

tick() fires every job whose expression matches a minute between the
previous tick and now (at most an hour back), at most once per job per
minute. A slow job or a missed poll therefore delays the jobs behind it
instead of dropping them, and calling tick() again within the same minute
is a no-op. Tests drive tick() with a manual clock; in production
run_forever() calls it from a worker thread every few seconds.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Iterable, Optional

from app.core.clock import Clock

logger = logging.getLogger(__name__)

MINUTE = timedelta(minutes=1)
MAX_CATCH_UP_MINUTES = 60

# (name, low, high)
_FIELDS = (
    ("minute", 0, 59),
    ("hour", 0, 23),
    ("day", 1, 31),
    ("month", 1, 12),
    ("weekday", 0, 7),
)


# ---------------------------------------------------------------------------
# Cron expressions
# ---------------------------------------------------------------------------

def _parse_field(expr: str, low: int, high: int) -> frozenset[int]:
    values: set[int] = set()
    for part in expr.split(","):
        step = 1
        has_step = "/" in part
        if has_step:
            part, raw_step = part.split("/", 1)
            step = int(raw_step)
            if step < 1:
                raise ValueError(f"step must be >= 1 in {expr!r}")
        if part == "*":
            start, end = low, high
        elif "-" in part:
            first, last = part.split("-", 1)
            start, end = int(first), int(last)
        else:
            start = int(part)
            end = high if has_step else start
        if start < low or end > high or start > end:
            raise ValueError(f"{expr!r} is outside {low}-{high}")
        values.update(range(start, end + 1, step))
    return frozenset(values)


@dataclass(frozen=True)
class CronSchedule:
    expression: str
    minutes: frozenset[int]
    hours: frozenset[int]
    days: frozenset[int]
    months: frozenset[int]
    weekdays: frozenset[int]    # 0 = Sunday

    @classmethod
    def parse(cls, expression: str) -> "CronSchedule":
        parts = expression.split()
        if len(parts) != len(_FIELDS):
            raise ValueError(f"cron expression needs 5 fields, got {expression!r}")
        try:
            minutes, hours, days, months, weekdays = (
                _parse_field(part, low, high) for part, (_, low, high) in zip(parts, _FIELDS)
            )
        except ValueError as exc:
            raise ValueError(f"invalid cron expression {expression!r}: {exc}") from None
        return cls(
            expression=expression,
            minutes=minutes,
            hours=hours,
            days=days,
            months=months,
            weekdays=frozenset(0 if d == 7 else d for d in weekdays),
        )

    def matches(self, moment: datetime) -> bool:
        cron_weekday = (moment.weekday() + 1) % 7
        return (
            moment.minute in self.minutes
            and moment.hour in self.hours
            and moment.day in self.days
            and moment.month in self.months
            and cron_weekday in self.weekdays
        )


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

@dataclass
class ScheduledJob:
    name: str
    schedule: CronSchedule
    action: Callable[[], Any]
    last_fired: Optional[datetime] = None


class Scheduler:

    def __init__(self, clock: Clock, jobs: Iterable[ScheduledJob] = ()):
        self.clock = clock
        self.jobs: list[ScheduledJob] = list(jobs)
        self._lock = threading.Lock()
        self._last_checked: Optional[datetime] = None

    def add_job(self, name: str, expression: str, action: Callable[[], Any]) -> ScheduledJob:
        job = ScheduledJob(name=name, schedule=CronSchedule.parse(expression), action=action)
        self.jobs.append(job)
        logger.info("Scheduled %s at '%s' (%s)", name, expression, self.clock.tz)
        return job

    def tick(self, now: Optional[datetime] = None) -> list[str]:
        """
        Run every job due in the minutes since the previous tick, up to and
        including the current one. Returns the names that fired, in order.

        A naive `now` is read as the clock's own time zone.
        """
        moment = now or self.clock.now()
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=self.clock.tz)
        moment = moment.astimezone(self.clock.tz).replace(second=0, microsecond=0)
        fired = []
        with self._lock:
            for minute in self._pending_minutes(moment):
                for job in self.jobs:
                    if job.last_fired == minute or not job.schedule.matches(minute):
                        continue
                    if self._run(job, minute):
                        fired.append(job.name)
            if self._last_checked is None or moment > self._last_checked:
                self._last_checked = moment
        return fired

    def _pending_minutes(self, moment: datetime) -> list[datetime]:
        if self._last_checked is None or moment <= self._last_checked:
            return [moment]
        missed = int((moment - self._last_checked) / MINUTE)
        if missed > MAX_CATCH_UP_MINUTES:
            logger.warning(
                "Scheduler fell %d minutes behind; only the last %d are replayed",
                missed, MAX_CATCH_UP_MINUTES,
            )
            missed = MAX_CATCH_UP_MINUTES
        return [moment - MINUTE * back for back in range(missed - 1, -1, -1)]

    def _run(self, job: ScheduledJob, minute: datetime) -> bool:
        job.last_fired = minute
        logger.info("Running scheduled job %s (%s)", job.name, minute.isoformat())
        try:
            job.action()
        except Exception as e:
            logger.error("Scheduled job %s failed: %s", job.name, e, exc_info=True)
            return False
        return True

    async def run_forever(self, poll_seconds: float = 15.0) -> None:
        logger.info("Scheduler started with %d jobs", len(self.jobs))
        while True:
            await asyncio.to_thread(self.tick)
            await asyncio.sleep(poll_seconds)
