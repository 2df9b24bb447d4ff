"""
Deadline Lifecycle Engine — creates, reminds, completes and expires deadlines.

Lifecycle
---------
  add_deadline        → appended to activeDeadlines (rejected if an active
                        deadline with the same (task, dueDate) exists)
  mark_as_reminded    → mutated in place (reminded, reminderCount, lastReminderAt)
  complete_deadline   → moved activeDeadlines → completedDeadlines
  cleanup_old_deadlines → completed entries older than the retention cutoff
                        are deleted

"Overdue" is never stored: it is always `active and dueDate < today`, with
today taken from the injected clock (store time zone).

Rejections return None / False, never raise. Every successful mutation
persists the whole store before returning. All mutations run under one
lock, since the HTTP thread pool and the scheduler thread share the engine.

Public API
----------
add_deadline(user_id, task, due_date, type, *, name, role) -> Deadline | None
complete_deadline(user_id, deadline_id)                     -> bool
mark_as_reminded(user_id, deadline_id)                      -> bool
get_active_deadlines / get_overdue_deadlines / get_deadlines_due_today(user_id)
get_all_overdue_deadlines() / get_all_deadlines_due_today()
generate_role_specific_deadline(role, message_context)      -> DeadlineDraft
cleanup_old_deadlines(retention_days=30)                    -> int
get_deadline_stats(user_id)                                 -> DeadlineStats | None
"""
from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from app.core.clock import Clock
from app.core.errors import DeadlineValidationError
from app.schemas.deadline import Deadline, UserDeadlineRecord
from app.services.deadline_store import DeadlineStore

logger = logging.getLogger(__name__)

DEFAULT_USER_NAME = "Warrior"
DEFAULT_USER_ROLE = "Team Member"
DEFAULT_RETENTION_DAYS = 30


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DeadlineDraft:
    """A deadline proposal, not yet stored."""
    task: str
    due_date: date
    type: str


@dataclass
class DeadlineStats:
    active: int
    completed: int
    overdue: int
    completion_rate: int    # 0 – 100


# ---------------------------------------------------------------------------
# Role rules: evaluated in order, first match wins
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RoleRule:
    keywords: tuple[str, ...]
    category: str
    task: str
    due_in_days: int

    def matches(self, role: str) -> bool:
        return any(k in role for k in self.keywords)


ROLE_RULES: tuple[RoleRule, ...] = (
    RoleRule(
        ("ceo", "founder"), "strategic",
        "Identify and personally tackle your biggest strategic challenge - don't delegate it",
        7,
    ),
    RoleRule(
        ("social",), "content",
        "Create 3 pieces of high-value content that push boundaries and add real value",
        7,
    ),
    RoleRule(
        ("assistant",), "efficiency",
        "Find and implement one process optimization that adds measurable value",
        1,
    ),
    RoleRule(
        ("manager", "director"), "leadership",
        "Have one difficult conversation you've been avoiding with your team",
        7,
    ),
)

FALLBACK_ROLE_RULE = RoleRule(
    (), "productivity",
    "Attack your most challenging task FIRST thing tomorrow - no warm-up tasks",
    1,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _new_deadline_id() -> str:
    return f"deadline_{uuid.uuid4().hex[:16]}"


def _coerce_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise DeadlineValidationError(
        f"due_date must be an ISO calendar date, got {value!r}", field="due_date"
    )


def completion_rate(completed: int, overdue: int) -> int:
    denominator = completed + overdue
    if denominator == 0:
        return 0
    rate = Decimal(100 * completed) / Decimal(denominator)
    return int(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class DeadlineEngine:

    def __init__(self, store: DeadlineStore, clock: Clock):
        self.store = store
        self.clock = clock
        self._lock = threading.RLock()

    @property
    def tracked_users(self) -> int:
        return len(self.store.records)

    # -- mutations ----------------------------------------------------------

    def add_deadline(
        self,
        user_id: str,
        task: str,
        due_date: date | str,
        type: str = "general",
        *,
        name: Optional[str] = None,
        role: Optional[str] = None,
    ) -> Optional[Deadline]:
        """Store a new active deadline. Returns None if the same (task, due_date) is already active."""
        if not isinstance(task, str) or not task.strip():
            raise DeadlineValidationError("task must not be empty", field="task")
        due = _coerce_date(due_date)

        with self._lock:
            record = self.store.records.get(user_id)
            if record is None:
                record = UserDeadlineRecord(
                    name=name or DEFAULT_USER_NAME,
                    role=role or DEFAULT_USER_ROLE,
                )
                self.store.records[user_id] = record

            if any(d.task == task and d.due_date == due for d in record.active_deadlines):
                logger.info("Duplicate deadline prevented for %s: %s", record.name, task)
                return None

            deadline = Deadline(
                id=_new_deadline_id(),
                task=task,
                due_date=due,
                type=type,
                created_at=self.clock.now(),
            )
            record.active_deadlines.append(deadline)
            self.store.save()

        logger.info("Deadline added for %s: %s (due %s)", record.name, task, due)
        return deadline.model_copy()

    def complete_deadline(self, user_id: str, deadline_id: str) -> bool:
        with self._lock:
            record = self.store.records.get(user_id)
            if record is None:
                return False
            index = next(
                (i for i, d in enumerate(record.active_deadlines) if d.id == deadline_id),
                None,
            )
            if index is None:
                return False

            deadline = record.active_deadlines.pop(index)
            deadline.completed = True
            deadline.completed_at = self.clock.now()
            record.completed_deadlines.append(deadline)
            self.store.save()

        logger.info("Deadline completed for %s: %s", record.name, deadline.task)
        return True

    def mark_as_reminded(self, user_id: str, deadline_id: str) -> bool:
        with self._lock:
            record = self.store.records.get(user_id)
            if record is None:
                return False
            deadline = next((d for d in record.active_deadlines if d.id == deadline_id), None)
            if deadline is None:
                return False

            deadline.reminded = True
            deadline.reminder_count += 1
            deadline.last_reminder_at = self.clock.now()
            self.store.save()
        return True

    def cleanup_old_deadlines(self, retention_days: int = DEFAULT_RETENTION_DAYS) -> int:
        """Delete completed deadlines finished before today - retention_days. Returns count removed."""
        cutoff = self.clock.today() - timedelta(days=retention_days)
        removed = 0
        with self._lock:
            for record in self.store.records.values():
                kept = [
                    d for d in record.completed_deadlines
                    if d.completed_at is None or self._local_date(d.completed_at) >= cutoff
                ]
                removed += len(record.completed_deadlines) - len(kept)
                record.completed_deadlines = kept
            if removed:
                self.store.save()

        if removed:
            logger.info("Cleaned up %d completed deadlines older than %s", removed, cutoff)
        return removed

    # -- queries ------------------------------------------------------------
    # Reads take the same lock as mutations so a sweep never sees a
    # half-applied complete/remind.

    def get_user_record(self, user_id: str) -> Optional[UserDeadlineRecord]:
        with self._lock:
            record = self.store.records.get(user_id)
            return record.model_copy(deep=True) if record else None

    def get_active_deadlines(self, user_id: str) -> list[Deadline]:
        with self._lock:
            record = self.store.records.get(user_id)
            if record is None:
                return []
            return [d.model_copy() for d in record.active_deadlines if not d.completed]

    def get_overdue_deadlines(self, user_id: str) -> list[Deadline]:
        today = self.clock.today()
        return [d for d in self.get_active_deadlines(user_id) if d.due_date < today]

    def get_deadlines_due_today(self, user_id: str) -> list[Deadline]:
        today = self.clock.today()
        return [d for d in self.get_active_deadlines(user_id) if d.due_date == today]

    def get_all_overdue_deadlines(self) -> dict[str, list[Deadline]]:
        result = {}
        with self._lock:
            for user_id in list(self.store.records):
                overdue = self.get_overdue_deadlines(user_id)
                if overdue:
                    result[user_id] = overdue
        return result

    def get_all_deadlines_due_today(self) -> dict[str, list[Deadline]]:
        result = {}
        with self._lock:
            for user_id in list(self.store.records):
                due = self.get_deadlines_due_today(user_id)
                if due:
                    result[user_id] = due
        return result

    def get_deadline_stats(self, user_id: str) -> Optional[DeadlineStats]:
        with self._lock:
            record = self.store.records.get(user_id)
            if record is None:
                return None
            active = len(record.active_deadlines)
            completed = len(record.completed_deadlines)
            overdue = len(self.get_overdue_deadlines(user_id))
        return DeadlineStats(
            active=active,
            completed=completed,
            overdue=overdue,
            completion_rate=completion_rate(completed, overdue),
        )

    # -- content ------------------------------------------------------------

    def generate_role_specific_deadline(self, role: str, message_context: str = "") -> DeadlineDraft:
        """
        Pick a deadline for `role` from ROLE_RULES (case-insensitive substring,
        first match wins). `message_context` is accepted for callers that have
        it but does not change the choice.
        """
        normalized = (role or "").lower()
        rule = next((r for r in ROLE_RULES if r.matches(normalized)), FALLBACK_ROLE_RULE)
        return DeadlineDraft(
            task=rule.task,
            due_date=self.clock.today() + timedelta(days=rule.due_in_days),
            type=rule.category,
        )

    def _local_date(self, moment: datetime) -> date:
        if moment.tzinfo is None:
            return moment.date()
        return moment.astimezone(self.clock.tz).date()
