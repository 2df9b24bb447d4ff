"""
Duplicate Suppressor — at most one processing pass per inbound event.

Slack can deliver the same message more than once (retries, and a channel
mention arrives as both `message` and `app_mention`). Events are keyed by
user + event timestamp + channel; a key seen within the last `ttl_seconds`
is a duplicate.

Expired keys are swept lazily at the start of every call. Keys are stored
in first-seen order, so the sweep stops at the first live entry.

Process-local only: no cross-process or restart guarantee.
"""
from __future__ import annotations

import threading
from typing import Optional

from app.core.clock import Clock

DEFAULT_TTL_SECONDS = 5 * 60


def event_key(user_id: str, timestamp: str, channel_id: str) -> str:
    return f"{user_id}-{timestamp}-{channel_id}"


class DuplicateSuppressor:

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Optional[Clock] = None):
        self.ttl_seconds = ttl_seconds
        self.clock = clock or Clock()
        self._lock = threading.Lock()
        self._seen: dict[str, float] = {}

    def should_process(self, key: str) -> bool:
        """Register `key` and return True, or return False if it is still live."""
        with self._lock:
            now = self.clock.monotonic()
            self._sweep(now)
            if key in self._seen:
                return False
            self._seen[key] = now
            return True

    def _sweep(self, now: float) -> None:
        for key, first_seen in list(self._seen.items()):
            if now - first_seen < self.ttl_seconds:
                break
            del self._seen[key]

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)
