"""
Roster — who gets the daily check-in.

Loaded once from ROSTER_FILE (see app/schemas/roster.py for the format).
A missing file is an empty roster; a malformed one is a startup error.
"""
from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from app.core.errors import RosterLoadError
from app.schemas.roster import WEEKDAYS, RosterUser

logger = logging.getLogger(__name__)

_ROSTER = TypeAdapter(dict[str, RosterUser])


class Roster:

    def __init__(self, users: Optional[dict[str, RosterUser]] = None):
        self.users = users or {}

    @classmethod
    def load(cls, path: str | Path) -> "Roster":
        path = Path(path)
        if not path.exists():
            logger.warning("Roster file %s not found — no users will get check-ins", path)
            return cls()
        try:
            users = _ROSTER.validate_json(path.read_bytes())
        except (OSError, ValidationError) as exc:
            raise RosterLoadError(str(path), str(exc)) from exc
        logger.info("Loaded %d roster users from %s", len(users), path)
        return cls(users)

    def get_active_users(self, day: Optional[date] = None) -> dict[str, RosterUser]:
        """Active users; when `day` is given, only those whose check-in days include it."""
        weekday = WEEKDAYS[day.weekday()] if day else None
        return {
            key: user
            for key, user in self.users.items()
            if user.active and (weekday is None or weekday in user.check_in_days)
        }

    def get_user_by_slack_id(self, slack_id: str) -> Optional[RosterUser]:
        return next((u for u in self.users.values() if u.slack_id == slack_id), None)

    def __len__(self) -> int:
        return len(self.users)
