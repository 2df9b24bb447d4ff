"""
Tests for the orchestrator (CheckInBot.handle_event).

Covered:
  - duplicate deliveries
  - short @mentions get the canned prompt
  - classifier rejections stay silent
  - template reply + role deadline appended once
  - generator reply, generator failure fallback
  - the generator's DEADLINE line overrides the role task
  -  tokens stripped whichever Slack copy arrives first
  - unknown users get the default context
  - failed send → one retry with the minimal fallback
"""
from __future__ import annotations

import random

import pytest

from app.schemas.slack import InboundEvent
from app.services.messages import MENTION_PROMPT, MINIMAL_FALLBACK, SIGNATURE_PHRASES
from app.services.orchestrator import HandleOutcome, strip_mentions


def _event(text="Finished all my tasks today", user="U0MARNIE", channel="D0MARNIE",
           ts="1773151200.000100", is_direct=True, is_mention=False) -> InboundEvent:
    return InboundEvent(
        user_id=user,
        text=text,
        channel_id=channel,
        timestamp=ts,
        is_direct=is_direct,
        is_mention=is_mention,
    )


class TestGatekeeping:
    def test_duplicate_delivery_answered_once(self, services, transport):
        assert services.bot.handle_event(_event()) == HandleOutcome.replied
        assert services.bot.handle_event(_event()) == HandleOutcome.duplicate
        assert len(transport.sent) == 1

    def test_short_mention_gets_prompt(self, services, transport):
        event = _event(text="<@U0BOT> yo", channel="C0TEAM", is_direct=False, is_mention=True)
        assert services.bot.handle_event(event) == HandleOutcome.prompted
        assert transport.sent[0].text == MENTION_PROMPT
        assert transport.sent[0].thread_ts is None

    def test_mention_text_is_stripped_before_classifying(self, services, transport, engine):
        event = _event(text="<@U0BOT> finished the board deck", channel="C0TEAM",
                       is_direct=False, is_mention=True)
        assert services.bot.handle_event(event) == HandleOutcome.replied
        assert transport.sent[0].thread_ts == event.timestamp

    def test_message_copy_of_short_mention_gets_prompt(self, services, transport, engine, clock):
        services.tracker.record()
        clock.advance(hours=9)
        plain = _event(text="<@UHI0BOT> ok", channel="C0TEAM", is_direct=False)
        mention = _event(text="<@UHI0BOT> ok", channel="C0TEAM", is_direct=False, is_mention=True)

        assert services.bot.handle_event(plain) == HandleOutcome.prompted
        assert services.bot.handle_event(mention) == HandleOutcome.duplicate
        assert transport.texts == [MENTION_PROMPT]
        assert engine.get_user_record("U0MARNIE") is None

    def test_message_copy_of_mention_is_stripped_before_classifying(self, services, transport, clock):
        services.tracker.record()
        clock.advance(hours=9)
        # the bot id alone contains "hi" and "day"
        event = _event(text="<@UHIDAY0> ran five miles before sunrise", channel="C0TEAM",
                       is_direct=False)
        assert services.bot.handle_event(event) == HandleOutcome.ignored
        assert transport.sent == []

    def test_unrelated_channel_chatter_ignored(self, services, transport, clock):
        services.tracker.record()
        clock.advance(hours=9)
        event = _event(text="ran five miles before sunrise", channel="C0TEAM", is_direct=False)
        assert services.bot.handle_event(event) == HandleOutcome.ignored
        assert transport.sent == []

    def test_channel_reply_inside_window(self, services, transport, clock):
        services.tracker.record()
        clock.advance(hours=2)
        event = _event(text="ran five miles before sunrise", channel="C0TEAM", is_direct=False)
        assert services.bot.handle_event(event) == HandleOutcome.replied


class TestReplies:
    def test_template_reply_with_role_deadline(self, services, transport, engine):
        event = _event()
        assert services.bot.handle_event(event) == HandleOutcome.replied

        message = transport.sent[0]
        assert message.channel == "D0MARNIE"
        assert message.thread_ts == event.timestamp
        assert "**Marnie" in message.text
        assert "YOUR NEW DEADLINE - NO EXCUSES" in message.text

        deadlines = engine.get_active_deadlines("U0MARNIE")
        assert len(deadlines) == 1
        assert deadlines[0].type == "efficiency"
        assert deadlines[0].task in message.text

        record = engine.get_user_record("U0MARNIE")
        assert record.name == "Marnie"
        assert record.role == "Executive Assistant"

    def test_same_day_second_reply_has_no_new_deadline(self, services, transport, engine):
        services.bot.handle_event(_event(ts="1.0"))
        services.bot.handle_event(_event(ts="2.0"))

        assert len(transport.sent) == 2
        assert "YOUR NEW DEADLINE" not in transport.sent[1].text
        assert len(engine.get_active_deadlines("U0MARNIE")) == 1

    def test_generator_reply(self, make_services, transport, generator):
        services = make_services(generator=generator)

        services.bot.handle_event(_event())

        text = transport.sent[0].text
        assert text.startswith(generator.reply)
        assert any(phrase in text for phrase in SIGNATURE_PHRASES)
        assert "YOUR NEW DEADLINE" in text
        assert "Role: Executive Assistant" in generator.prompts[0]
        assert "Goals: Support team productivity" in generator.prompts[0]

    def test_generator_deadline_line_replaces_role_task(self, make_services, transport, engine,
                                                        generator):
        generator.reply = (
            "Good work, but you left reps on the table.\n"
            "DEADLINE: Clear the inbox to zero by noon"
        )
        services = make_services(generator=generator)
        services.bot.handle_event(_event())

        deadline = engine.get_active_deadlines("U0MARNIE")[0]
        assert deadline.task == "Clear the inbox to zero by noon"
        assert deadline.type == "efficiency"
        text = transport.sent[0].text
        assert text.startswith("Good work, but you left reps on the table.\n\n**")
        assert "**Clear the inbox to zero by noon** - Due:" in text
        assert "DEADLINE: Clear" not in text

    def test_empty_deadline_line_keeps_role_task(self, make_services, transport, engine, generator):
        generator.reply = "Good work.\nDEADLINE:"
        services = make_services(generator=generator)
        services.bot.handle_event(_event())

        deadline = engine.get_active_deadlines("U0MARNIE")[0]
        assert deadline.task == engine.generate_role_specific_deadline("Executive Assistant").task
        assert "DEADLINE:" not in transport.sent[0].text.split("⏰")[0]

    def test_generator_failure_falls_back_to_template(self, make_services, transport, generator):
        generator.fail = True
        services = make_services(generator=generator)
        assert services.bot.handle_event(_event()) == HandleOutcome.replied
        assert "**Marnie" in transport.sent[0].text
        assert len(generator.prompts) == 1

    def test_unknown_user_gets_default_context(self, services, transport, engine):
        services.bot.handle_event(_event(user="U0STRANGER", channel="D0STRANGER"))

        assert "**Warrior" in transport.sent[0].text
        record = engine.get_user_record("U0STRANGER")
        assert record.name == "Warrior"
        assert record.role == "Team Member"
        assert record.active_deadlines[0].type == "productivity"

    def test_seeded_rng_pins_greeting_variant(self, services, transport):
        services.bot.rng = random.Random(7)
        services.bot.handle_event(_event(text="hello coach", ts="1.0"))
        first = transport.sent[0].text.split("\n\n")[0]

        services.bot.rng = random.Random(7)
        services.bot.handle_event(_event(text="hello coach", ts="2.0"))
        assert transport.sent[1].text.startswith(first)


class TestSendFailures:
    def test_retry_with_minimal_fallback(self, services, transport):
        transport.fail_next = 1
        assert services.bot.handle_event(_event()) == HandleOutcome.replied
        assert len(transport.sent) == 2
        assert transport.sent[1].text == MINIMAL_FALLBACK
        assert transport.sent[1].thread_ts == transport.sent[0].thread_ts

    def test_both_sends_fail(self, services, transport):
        transport.always_fail = True
        assert services.bot.handle_event(_event()) == HandleOutcome.failed
        assert len(transport.sent) == 2


@pytest.mark.parametrize("raw, expected", [
    ("<@U0BOT> hi", "hi"),
    ("<@U0BOT>", ""),
    ("done <@U0BOT> and <@U0OTHER> today", "done  and  today"),
])
def test_strip_mentions(raw, expected):
    assert strip_mentions(raw) == expected
