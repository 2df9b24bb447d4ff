"""
Orchestrator — one inbound chat message in, at most one reply out.

    InboundEvent
      → DuplicateSuppressor   (same user/ts/channel within 5 min → drop)
      → short mention?        (<= 5 chars after stripping @mentions → canned prompt)
      → ResponseClassifier    (not a check-in response → stay silent)
      → reply text            (TextGenerator, or the templates when it is
                               missing or fails)
      + deadline via DeadlineEngine: the generator's DEADLINE line when it
                               gave one, else the role rule (appended to
                               the reply when it was actually created)
      → transport.send_message in the message thread
        (failed send → one retry with MINIMAL_FALLBACK, then log)

A message the classifier accepts always gets a reply unless the transport
itself is down.
"""
from __future__ import annotations

import enum
import logging
import random
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from app.core.clock import Clock
from app.core.errors import TextGenerationError
from app.schemas.slack import InboundEvent
from app.services.classifier import ResponseClassifier
from app.services.deadline_engine import DEFAULT_USER_NAME, DEFAULT_USER_ROLE, DeadlineEngine
from app.services.dedup import DuplicateSuppressor, event_key
from app.services.messages import (
    MENTION_PROMPT,
    MINIMAL_FALLBACK,
    deadline_inclusion_message,
    fallback_reply,
    reply_prompt,
    split_deadline_line,
    with_signature,
)
from app.services.roster import Roster
from app.services.slack_client import MessageTransport, SendResult
from app.services.text_generator import TextGenerator

logger = logging.getLogger(__name__)

MENTION_TOKEN = re.compile(r"<@[A-Z0-9]+>")
SHORT_MENTION_CHARS = 5


class HandleOutcome(str, enum.Enum):
    duplicate = "duplicate"
    ignored = "ignored"
    prompted = "prompted"
    replied = "replied"
    failed = "failed"


@dataclass(frozen=True)
class UserContext:
    name: str
    role: str
    goals: tuple[str, ...] = field(default_factory=tuple)


DEFAULT_CONTEXT = UserContext(DEFAULT_USER_NAME, DEFAULT_USER_ROLE, ("Stay hard",))


def strip_mentions(text: str) -> str:
    return MENTION_TOKEN.sub("", text).strip()


class BroadcastTracker:
    """When the last check-in broadcast went out (read by the reply window)."""

    def __init__(self, clock: Clock):
        self.clock = clock
        self._lock = threading.Lock()
        self.last_monotonic: Optional[float] = None
        self.last_at: Optional[datetime] = None
        self.count = 0

    def record(self) -> None:
        with self._lock:
            self.last_monotonic = self.clock.monotonic()
            self.last_at = self.clock.now()
            self.count += 1


class CheckInBot:

    def __init__(
        self,
        engine: DeadlineEngine,
        classifier: ResponseClassifier,
        suppressor: DuplicateSuppressor,
        transport: MessageTransport,
        roster: Roster,
        tracker: BroadcastTracker,
        generator: Optional[TextGenerator] = None,
        rng: Optional[random.Random] = None,
    ):
        self.engine = engine
        self.classifier = classifier
        self.suppressor = suppressor
        self.transport = transport
        self.roster = roster
        self.tracker = tracker
        self.generator = generator
        self.rng = rng

    def handle_event(self, event: InboundEvent) -> HandleOutcome:
        key = event_key(event.user_id, event.timestamp, event.channel_id)
        if not self.suppressor.should_process(key):
            logger.info("Duplicate event skipped: %s", key)
            return HandleOutcome.duplicate

        # Slack sends a channel mention as both `message` and `app_mention`;
        # whichever copy wins dedup must be treated the same way.
        text = strip_mentions(event.text)
        if event.is_mention or MENTION_TOKEN.search(event.text):
            if len(text) <= SHORT_MENTION_CHARS:
                self.send_with_fallback(event.channel_id, MENTION_PROMPT)
                return HandleOutcome.prompted

        verdict = self.classifier.classify(text, event.is_direct, self.tracker.last_monotonic)
        if not verdict.should_respond:
            logger.info("Not a check-in response from %s in %s", event.user_id, event.channel_id)
            return HandleOutcome.ignored

        context = self.user_context(event.user_id)
        reply = self.compose_reply(text, event.user_id, context)
        result = self.send_with_fallback(event.channel_id, reply, thread_ts=event.timestamp)
        if result.success:
            logger.info("Reply sent to %s", context.name)
            return HandleOutcome.replied
        return HandleOutcome.failed

    def user_context(self, user_id: str) -> UserContext:
        user = self.roster.get_user_by_slack_id(user_id)
        if user is None:
            return DEFAULT_CONTEXT
        return UserContext(user.name, user.role, tuple(user.custom_goals))

    def compose_reply(self, text: str, user_id: str, context: UserContext) -> str:
        reply, suggested_task = self._generated_reply(text, context)

        # The generator's DEADLINE line replaces the role task; due date and
        # category always come from the role rule.
        draft = self.engine.generate_role_specific_deadline(context.role, text)
        deadline = self.engine.add_deadline(
            user_id, suggested_task or draft.task, draft.due_date, draft.type,
            name=context.name, role=context.role,
        )
        if deadline is not None:
            reply += deadline_inclusion_message(deadline)
        return reply

    def _generated_reply(self, text: str, context: UserContext) -> tuple[str, Optional[str]]:
        if self.generator is not None:
            prompt = reply_prompt(text, context.name, context.role, context.goals)
            try:
                body, task = split_deadline_line(self.generator.generate(prompt))
                return with_signature(body, self.rng), task
            except TextGenerationError:
                logger.warning("Generator failed for %s; using fallback reply", context.name)
        return fallback_reply(text, context.name, self.rng), None

    def send_with_fallback(
        self, channel: str, text: str, thread_ts: Optional[str] = None
    ) -> SendResult:
        result = self.transport.send_message(channel, text, thread_ts)
        if result.success:
            return result
        logger.warning("Reply to %s failed (%s); retrying with fallback", channel, result.error)
        retry = self.transport.send_message(channel, MINIMAL_FALLBACK, thread_ts)
        if not retry.success:
            logger.error("Fallback reply to %s failed too: %s", channel, retry.error)
        return retry
