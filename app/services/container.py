"""
Service container — builds and holds one instance of every collaborator.

build_services(settings) is called once by the app lifespan; tests build
their own BotServices from fakes and put it on app.state before startup.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from app.core.clock import Clock
from app.core.config import Settings
from app.services.classifier import ResponseClassifier, get_profile
from app.services.deadline_engine import DeadlineEngine
from app.services.deadline_store import DeadlineStore
from app.services.dedup import DuplicateSuppressor
from app.services.jobs import run_cleanup, send_daily_check_ins, send_overdue_reminders
from app.services.orchestrator import BroadcastTracker, CheckInBot
from app.services.roster import Roster
from app.services.scheduler import Scheduler
from app.services.slack_client import DisabledTransport, MessageTransport, SlackClient
from app.services.text_generator import TextGenerator

logger = logging.getLogger(__name__)


@dataclass
class BotServices:
    clock: Clock
    engine: DeadlineEngine
    roster: Roster
    transport: MessageTransport
    tracker: BroadcastTracker
    bot: CheckInBot
    scheduler: Scheduler
    retention_days: int = 30
    signing_secret: str = ""
    scheduler_enabled: bool = False
    scheduler_poll_seconds: float = 15.0

    def run_check_in(self):
        return send_daily_check_ins(self.engine, self.roster, self.transport, self.tracker)

    def run_reminders(self):
        return send_overdue_reminders(self.engine, self.transport)

    def run_cleanup(self) -> int:
        return run_cleanup(self.engine, self.retention_days)


def wire_services(
    *,
    clock: Clock,
    store: DeadlineStore,
    roster: Roster,
    transport: MessageTransport,
    classifier: ResponseClassifier,
    suppressor: DuplicateSuppressor,
    generator: Optional[TextGenerator] = None,
    check_in_cron: str = "30 16 * * 1-5",
    reminder_cron: str = "0 9 * * *",
    cleanup_cron: str = "0 3 * * 0",
    retention_days: int = 30,
    signing_secret: str = "",
    scheduler_enabled: bool = False,
    scheduler_poll_seconds: float = 15.0,
) -> BotServices:
    engine = DeadlineEngine(store, clock)
    tracker = BroadcastTracker(clock)
    bot = CheckInBot(
        engine=engine,
        classifier=classifier,
        suppressor=suppressor,
        transport=transport,
        roster=roster,
        tracker=tracker,
        generator=generator,
    )
    services = BotServices(
        clock=clock,
        engine=engine,
        roster=roster,
        transport=transport,
        tracker=tracker,
        bot=bot,
        scheduler=Scheduler(clock),
        retention_days=retention_days,
        signing_secret=signing_secret,
        scheduler_enabled=scheduler_enabled,
        scheduler_poll_seconds=scheduler_poll_seconds,
    )
    services.scheduler.add_job("daily_check_in", check_in_cron, services.run_check_in)
    services.scheduler.add_job("overdue_reminders", reminder_cron, services.run_reminders)
    services.scheduler.add_job("weekly_cleanup", cleanup_cron, services.run_cleanup)
    return services


def build_services(settings: Settings) -> BotServices:
    clock = Clock(settings.TIMEZONE)

    transport: MessageTransport
    if settings.SLACK_BOT_TOKEN:
        transport = SlackClient(settings.SLACK_BOT_TOKEN)
    else:
        logger.warning("SLACK_BOT_TOKEN not set — outbound messages will be dropped")
        transport = DisabledTransport()

    generator = None
    if settings.openai_enabled:
        generator = TextGenerator(settings.OPENAI_API_KEY, settings.OPENAI_MODEL)
        logger.info("OpenAI replies enabled (%s)", settings.OPENAI_MODEL)
    else:
        logger.info("OPENAI_API_KEY not set — using template replies only")

    return wire_services(
        clock=clock,
        store=DeadlineStore.open(settings.DEADLINES_FILE),
        roster=Roster.load(settings.ROSTER_FILE),
        transport=transport,
        classifier=ResponseClassifier(get_profile(settings.CLASSIFIER_PROFILE), clock),
        suppressor=DuplicateSuppressor(settings.DEDUP_TTL_SECONDS, clock),
        generator=generator,
        check_in_cron=settings.check_in_cron,
        reminder_cron=settings.REMINDER_SCHEDULE,
        cleanup_cron=settings.CLEANUP_SCHEDULE,
        retention_days=settings.DEADLINE_RETENTION_DAYS,
        signing_secret=settings.SLACK_SIGNING_SECRET,
        scheduler_enabled=settings.SCHEDULER_ENABLED,
        scheduler_poll_seconds=settings.SCHEDULER_POLL_SECONDS,
    )


def get_services(request: Request) -> BotServices:
    """FastAPI dependency: the container built by the lifespan."""
    return request.app.state.services
