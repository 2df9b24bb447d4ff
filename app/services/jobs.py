"""
Scheduled jobs — the bodies behind the three cron entries.

  send_daily_check_ins   : prompt every active roster user scheduled today;
                           users with overdue deadlines get the overdue
                           reminder instead (never both)
  send_overdue_reminders : one message per user with overdue deadlines,
                           then mark each listed deadline as reminded
  run_cleanup            : drop completed deadlines past retention

Per-user failures are logged and the loop moves on.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from app.services.deadline_engine import DEFAULT_RETENTION_DAYS, DeadlineEngine
from app.services.messages import check_in_message, reminder_message
from app.services.orchestrator import BroadcastTracker
from app.services.roster import Roster
from app.services.slack_client import MessageTransport

logger = logging.getLogger(__name__)


@dataclass
class BroadcastResult:
    sent: int = 0
    reminders: int = 0
    failed: int = 0
    users: list[str] = field(default_factory=list)


@dataclass
class ReminderResult:
    users_notified: int = 0
    deadlines_reminded: int = 0
    failed: int = 0


def send_daily_check_ins(
    engine: DeadlineEngine,
    roster: Roster,
    transport: MessageTransport,
    tracker: BroadcastTracker,
) -> BroadcastResult:
    tracker.record()
    today = engine.clock.today()
    users = roster.get_active_users(today)
    result = BroadcastResult()
    logger.info("Daily check-in for %d users (%s)", len(users), today)

    for user in users.values():
        try:
            overdue = engine.get_overdue_deadlines(user.slack_id)
            if overdue:
                text = reminder_message(user.name, overdue, today)
            else:
                text = check_in_message(user.name, engine.get_deadlines_due_today(user.slack_id))
            outcome = transport.send_message(user.slack_id, text)
        except Exception as e:
            logger.error("Check-in for %s failed: %s", user.name, e, exc_info=True)
            result.failed += 1
            continue

        if not outcome.success:
            result.failed += 1
            continue
        result.users.append(user.slack_id)
        if overdue:
            result.reminders += 1
        else:
            result.sent += 1

    logger.info(
        "Daily check-in done: %d prompts, %d overdue reminders, %d failed",
        result.sent, result.reminders, result.failed,
    )
    return result


def send_overdue_reminders(engine: DeadlineEngine, transport: MessageTransport) -> ReminderResult:
    today = engine.clock.today()
    result = ReminderResult()

    for user_id, overdue in engine.get_all_overdue_deadlines().items():
        try:
            record = engine.get_user_record(user_id)
            name = record.name if record else user_id
            outcome = transport.send_message(user_id, reminder_message(name, overdue, today))
            if not outcome.success:
                result.failed += 1
                continue
            result.users_notified += 1
            for deadline in overdue:
                if engine.mark_as_reminded(user_id, deadline.id):
                    result.deadlines_reminded += 1
        except Exception as e:
            logger.error("Overdue reminder for %s failed: %s", user_id, e, exc_info=True)
            result.failed += 1

    logger.info(
        "Overdue reminders: %d users, %d deadlines, %d failed",
        result.users_notified, result.deadlines_reminded, result.failed,
    )
    return result


def run_cleanup(engine: DeadlineEngine, retention_days: int = DEFAULT_RETENTION_DAYS) -> int:
    removed = engine.cleanup_old_deadlines(retention_days)
    logger.info("Weekly cleanup removed %d completed deadlines", removed)
    return removed
