"""
Response Classifier — is an inbound message a check-in response worth a reply?

Signals (all evaluated, then OR-combined)
-----------------------------------------
  floor              : normalized text shorter than 3 chars → False, full stop
  has_keyword        : any Trigger Vocabulary term appears as a substring
  direct_substantial : direct (1:1) channel and at least one word
  within_window      : no broadcast sent yet, or whole hours since the last
                       broadcast <= profile.window_hours
  long_message       : word count >= the profile threshold for the channel
                       kind, or (comprehensive only) any EOD/report phrase

  respond = has_keyword or direct_substantial or (within_window and long_message)

The bias is toward answering: a stray reply costs less than ignoring a report.

Two parameter sets were deployed and never reconciled; both live here as
named profiles and exactly one is active (Settings.CLASSIFIER_PROFILE).

  profile        window   long message
  lightweight    8h       >= 5 words anywhere
  comprehensive  6h       >= 8 words direct / >= 12 words elsewhere, or EOD phrase

Broadcast timestamps are monotonic seconds (Clock.monotonic()).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from app.core.clock import Clock

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 3


# ---------------------------------------------------------------------------
# Trigger Vocabulary
# ---------------------------------------------------------------------------

GREETINGS = ("hey", "hi", "hello", "morning", "afternoon", "evening")

DAY_DESCRIPTORS = (
    "day", "today", "work", "job", "productive", "busy", "tired",
    "good", "bad", "great", "tough", "hard", "easy", "difficult",
)

WORK_ACTIONS = (
    "finished", "completed", "accomplished", "did", "worked",
    "struggled", "failed", "succeeded", "won", "lost",
)

WORK_TERMS = (
    "tasks", "goals", "projects", "meetings", "deadline",
    "report", "presentation", "analysis",
)

ACCOUNTABILITY_PHRASES = (
    "stayed hard", "took souls", "comfort zone", "grind",
    "thanks", "thank you",
)

TRIGGER_VOCABULARY: tuple[str, ...] = (
    GREETINGS + DAY_DESCRIPTORS + WORK_ACTIONS + WORK_TERMS + ACCOUNTABILITY_PHRASES
)

# Report-style phrasing; counts as a long message under the comprehensive profile.
EOD_PHRASES: tuple[str, ...] = (
    "my day", "worked on", "good day", "tough day", "challenging",
    "progress", "achievement", "success", "failure", "hectic", "smooth",
    "embraced the suck", "pushed through", "mental toughness",
    "accountability", "hustle", "workout",
    "end of day", "eod", "daily update", "status update",
    "wrap up", "summary", "recap", "review",
)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ClassifierProfile:
    name: str
    window_hours: int
    long_words_direct: int
    long_words_channel: int
    keywords: tuple[str, ...] = TRIGGER_VOCABULARY
    secondary_keywords: tuple[str, ...] = ()


LIGHTWEIGHT = ClassifierProfile(
    name="lightweight", window_hours=8, long_words_direct=5, long_words_channel=5,
)
COMPREHENSIVE = ClassifierProfile(
    name="comprehensive", window_hours=6, long_words_direct=8, long_words_channel=12,
    secondary_keywords=EOD_PHRASES,
)

PROFILES = {p.name: p for p in (LIGHTWEIGHT, COMPREHENSIVE)}


def get_profile(name: str) -> ClassifierProfile:
    try:
        return PROFILES[name.strip().lower()]
    except KeyError:
        raise ValueError(
            f"Unknown classifier profile {name!r}; expected one of {sorted(PROFILES)}"
        ) from None


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Classification:
    should_respond: bool
    too_short: bool = False
    has_keyword: bool = False
    direct_substantial: bool = False
    within_window: bool = False
    long_message: bool = False
    word_count: int = 0
    matched: tuple[str, ...] = ()


def is_within_window(
    recent_broadcast_at: Optional[float], now: float, window_hours: int
) -> bool:
    """True before any broadcast, or while whole hours elapsed <= window_hours."""
    if recent_broadcast_at is None:
        return True
    hours_since = int((now - recent_broadcast_at) // 3600)
    return hours_since <= window_hours


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------

class ResponseClassifier:

    def __init__(self, profile: ClassifierProfile = LIGHTWEIGHT, clock: Optional[Clock] = None):
        self.profile = profile
        self.clock = clock or Clock()

    def classify(
        self,
        text: Optional[str],
        is_direct: bool,
        recent_broadcast_at: Optional[float] = None,
        now: Optional[float] = None,
    ) -> Classification:
        normalized = (text or "").lower().strip()
        if len(normalized) < MIN_TEXT_LENGTH:
            logger.debug("Classifier: %r too short", normalized)
            return Classification(should_respond=False, too_short=True)

        profile = self.profile
        word_count = len(normalized.split())

        matched = tuple(k for k in profile.keywords if k in normalized)
        has_keyword = bool(matched)

        direct_substantial = is_direct and word_count >= 1

        current = self.clock.monotonic() if now is None else now
        within_window = is_within_window(recent_broadcast_at, current, profile.window_hours)

        threshold = profile.long_words_direct if is_direct else profile.long_words_channel
        long_message = word_count >= threshold or any(
            k in normalized for k in profile.secondary_keywords
        )

        result = Classification(
            should_respond=has_keyword or direct_substantial or (within_window and long_message),
            has_keyword=has_keyword,
            direct_substantial=direct_substantial,
            within_window=within_window,
            long_message=long_message,
            word_count=word_count,
            matched=matched,
        )
        logger.debug(
            "Classifier[%s] %r: keywords=%s direct=%s window=%s long=%s (%d words) -> %s",
            profile.name, normalized[:30], ",".join(matched) or "none",
            direct_substantial, within_window, long_message, word_count,
            result.should_respond,
        )
        return result
