"""
Message templates — every piece of text the bot sends that is not
produced by the text generator.

All builders are pure. Builders that pick among variants take an optional
`random.Random` so tests can pin the choice.
"""
from __future__ import annotations

import random
from datetime import date
from typing import Optional, Sequence

from app.schemas.deadline import Deadline

# Sent when the reply itself could not be delivered.
MINIMAL_FALLBACK = "🔥 Stay hard, warrior! 💪"

MENTION_PROMPT = (
    "🔥 What's up, warrior! Tell me about your day - what did you accomplish? Stay hard! 💪"
)

SYSTEM_PROMPT = (
    "You are David Goggins, the ultra-endurance athlete and motivational speaker known "
    "for extreme mental toughness and accountability. Be motivational but tough."
)

SIGNATURE_PHRASES = (
    "Stay hard!",
    "Take souls!",
    "Embrace the suck!",
    "Who's gonna carry the boats?",
    "You're only using 40% of your potential!",
    "Callous your mind!",
    "Do something that sucks every day!",
    "The accountability mirror doesn't lie!",
    "Mental toughness is a lifestyle!",
    "When your mind is telling you you're done, you're only 40% done!",
)

DEADLINE_LABEL = "DEADLINE:"

STRUGGLE_KEYWORDS = ("tired", "failed", "couldn't", "didn't", "bad day", "struggled", "quit")

_ENCOURAGEMENT_PROMPT = """You are David Goggins responding to someone who had a tough day. Give them the motivation they need while still holding them accountable.

Key elements:
- Acknowledge their struggle
- Remind them that struggle builds strength
- Challenge them to get back up
- Give them specific steps for tomorrow
- Reference concepts like: callousing the mind, staying hard, mental toughness
- Keep it under 200 words
- End with one line: DEADLINE: <one specific actionable task for tomorrow or this week>

User's report: {message}

Respond as David Goggins would:"""

_IMPROVEMENT_PROMPT = """You are David Goggins responding to someone's daily report. Based on their response, give them tough love advice on how to improve tomorrow.

Key elements to include:
- Acknowledge what they did well (briefly)
- Challenge them to do better
- Give specific, actionable advice
- Reference concepts like: taking souls, staying hard, the 40% rule, embracing the suck, accountability mirror
- Keep it under 200 words
- Use emojis sparingly but effectively
- End with one line: DEADLINE: <one specific actionable task for tomorrow or this week>

User's report: {message}

Respond as David Goggins would:"""


def _pick(options: Sequence[str], rng: Optional[random.Random]) -> str:
    return (rng or random).choice(options)


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'s' if n > 1 else ''}"


# ---------------------------------------------------------------------------
# Scheduled messages
# ---------------------------------------------------------------------------

def check_in_message(name: str, due_today: Sequence[Deadline] = ()) -> str:
    text = (
        f"🔥 **{name}!** End of day accountability check!\n\n"
        "**Tell me what you accomplished today:**\n"
        "• What specific tasks did you complete?\n"
        "• What challenges did you overcome?\n"
        "• How did you push yourself outside your comfort zone?\n\n"
    )
    if due_today:
        text += "**⏰ Due TODAY:**\n"
        text += "".join(f"• {d.task}\n" for d in due_today)
        text += "\n"
    text += "*Don't give me some weak response. I want details! Stay hard!* 💪"
    return text


def reminder_message(name: str, overdue: Sequence[Deadline], today: date) -> str:
    lines = [
        f"🚨 **{name}** - DEADLINE ALERT!",
        "",
        f"You have {_plural(len(overdue), 'overdue deadline')}:",
        "",
    ]
    for index, deadline in enumerate(overdue, start=1):
        days_overdue = (today - deadline.due_date).days
        lines.append(f"{index}. **{deadline.task}**")
        lines.append(f"   Due: {deadline.due_date} ({_plural(days_overdue, 'day')} overdue)")
        lines.append("")
    lines.append("**What's your excuse?** Reply with your progress update RIGHT NOW!")
    lines.append("")
    lines.append(
        "*The accountability mirror doesn't lie! You can't hurt me, but you can hurt "
        "yourself by not following through! 🔥*"
    )
    return "\n".join(lines)


def deadline_inclusion_message(deadline: Deadline) -> str:
    return (
        "\n\n⏰ **YOUR NEW DEADLINE - NO EXCUSES:**\n"
        f"**{deadline.task}** - Due: {deadline.due_date}\n\n"
        "*I'll be checking on your progress! Stay hard! 🔥*"
    )


# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------

def needs_encouragement(message: str) -> bool:
    text = message.lower()
    return any(k in text for k in STRUGGLE_KEYWORDS)


def reply_prompt(message: str, name: str, role: str, goals: Sequence[str] = ()) -> str:
    """Generator prompt: encouragement for a rough day, improvement advice otherwise."""
    template = _ENCOURAGEMENT_PROMPT if needs_encouragement(message) else _IMPROVEMENT_PROMPT
    context = [f"User: {name}", f"Role: {role}"]
    if goals:
        context.append(f"Goals: {', '.join(goals)}")
    return "\n".join(context) + "\n\n" + template.format(message=message)


def split_deadline_line(reply: str) -> tuple[str, Optional[str]]:
    """
    Pull the `DEADLINE: ...` line out of a generated reply.

    Returns the reply without that line and the suggested task, or None when
    the line is missing or empty.
    """
    body, task, found = [], None, False
    for line in reply.splitlines():
        stripped = line.strip().strip("*").strip()
        if not found and stripped.upper().startswith(DEADLINE_LABEL):
            found = True
            task = stripped[len(DEADLINE_LABEL):].strip(" []*") or None
            continue
        body.append(line)
    return "\n".join(body).strip(), task


def with_signature(reply: str, rng: Optional[random.Random] = None) -> str:
    return f"{reply}\n\n**{_pick(SIGNATURE_PHRASES, rng)}** 💪"


def fallback_reply(message: str, name: str, rng: Optional[random.Random] = None) -> str:
    """Deterministic-by-content reply used whenever the generator is missing or fails."""
    text = message.lower()

    if any(k in text for k in ("hey", "hi", "hello")):
        return _pick((
            f"🔥 **{name}!** What's up, warrior! Ready to get after it today? Stay hard! 💪",
            f"💪 **{name}**, I see you checking in! Time to face the accountability mirror - "
            "what did you accomplish today? 🔥",
            f"🎯 **{name}!** Don't just say hey - tell me what you're doing to level up today! "
            "Take souls! ⚡",
        ), rng)

    if any(k in text for k in ("good", "great", "productive")):
        return (
            f"🔥 **{name}!** I hear you putting in work! But don't get comfortable - tomorrow "
            "we push even harder! What's your plan to level up? Stay hard! 💪"
        )

    if any(k in text for k in ("tough", "hard", "difficult", "struggled")):
        return (
            f"💪 **{name}**, that's when champions are made! Every struggle is callousing your "
            "mind. Embrace the suck and come back stronger tomorrow! Stay hard! 🔥"
        )

    return (
        f"🔥 **{name}!** I respect you for showing up! Now tell me - what are you doing today "
        "that's going to make you better than you were yesterday? Stay hard! 💪"
    )
