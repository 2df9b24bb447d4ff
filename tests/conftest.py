"""
Shared pytest fixtures.

Everything runs against a manual clock, a recording transport and a
deadline file under tmp_path, so no Slack, OpenAI or wall-clock time is
involved.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from app.core.clock import Clock
from app.core.errors import TextGenerationError
from app.main import app
from app.schemas.roster import RosterUser
from app.services.classifier import LIGHTWEIGHT, ResponseClassifier
from app.services.container import wire_services
from app.services.deadline_engine import DeadlineEngine
from app.services.deadline_store import DeadlineStore
from app.services.dedup import DuplicateSuppressor
from app.services.roster import Roster
from app.services.slack_client import SendResult

TZ = "America/New_York"

# Tuesday
START = datetime(2026, 3, 10, 10, 0)


class ManualClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = START, tz: str = TZ):
        super().__init__(tz)
        self._now = start if start.tzinfo else start.replace(tzinfo=self.tz)
        self._monotonic = 1_000.0

    def now(self) -> datetime:
        return self._now

    def monotonic(self) -> float:
        return self._monotonic

    def advance(self, **kwargs) -> None:
        delta = timedelta(**kwargs)
        self._now += delta
        self._monotonic += delta.total_seconds()


@dataclass
class SentMessage:
    channel: str
    text: str
    thread_ts: Optional[str] = None


class RecordingTransport:
    """Keeps every send; `fail_next` / `always_fail` simulate Slack errors."""

    def __init__(self):
        self.sent: list[SentMessage] = []
        self.fail_next = 0
        self.always_fail = False

    def send_message(self, channel, text, thread_ts=None):
        self.sent.append(SentMessage(channel, text, thread_ts))
        if self.always_fail:
            return SendResult(success=False, error="channel_not_found")
        if self.fail_next:
            self.fail_next -= 1
            return SendResult(success=False, error="ratelimited")
        return SendResult(success=True, ts=f"{len(self.sent)}.000", channel=channel)

    @property
    def texts(self) -> list[str]:
        return [m.text for m in self.sent]


class FakeGenerator:

    def __init__(self, reply: str = "You showed up. Now show up harder tomorrow.", fail: bool = False):
        self.reply = reply
        self.fail = fail
        self.prompts: list[str] = []

    def generate(self, prompt, context=None):
        self.prompts.append(prompt)
        if self.fail:
            raise TextGenerationError("rate limited")
        return self.reply


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def deadlines_path(tmp_path):
    return tmp_path / "user-deadlines.json"


@pytest.fixture()
def store(deadlines_path):
    return DeadlineStore.open(deadlines_path)


@pytest.fixture()
def engine(store, clock):
    return DeadlineEngine(store, clock)


@pytest.fixture()
def transport():
    return RecordingTransport()


@pytest.fixture()
def roster():
    return Roster({
        "marnie_assistant": RosterUser(
            name="Marnie",
            slack_id="U0MARNIE",
            role="Executive Assistant",
            custom_goals=["Support team productivity"],
        ),
        "jake_social": RosterUser(name="Jake", slack_id="U0JAKE", role="Social Media Manager"),
        "sam_ceo": RosterUser(name="Sam", slack_id="U0SAM", role="CEO", active=False),
        "riley_dev": RosterUser(
            name="Riley", slack_id="U0RILEY", role="Developer", check_in_days=["saturday"],
        ),
    })


@pytest.fixture()
def generator():
    return FakeGenerator()


@pytest.fixture()
def make_services(clock, store, roster, transport):
    def _make(generator=None, signing_secret=""):
        return wire_services(
            clock=clock,
            store=store,
            roster=roster,
            transport=transport,
            classifier=ResponseClassifier(LIGHTWEIGHT, clock),
            suppressor=DuplicateSuppressor(300, clock),
            generator=generator,
            signing_secret=signing_secret,
            scheduler_enabled=False,
        )
    return _make


@pytest.fixture()
def services(make_services):
    return make_services()


@pytest.fixture()
def client(services):
    app.state.services = services
    with TestClient(app) as c:
        yield c
    app.state.services = None
