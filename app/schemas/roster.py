"""
Roster schema — the team members who receive daily check-ins.

roster.json is keyed by a free-form roster key:

    {
      "marnie_assistant": {
        "name": "Marnie",
        "slackId": "U078UMV769F",
        "role": "Executive Assistant",
        "active": true,
        "checkInDays": ["monday", "tuesday", "wednesday", "thursday", "friday"],
        "customGoals": ["Support team productivity"]
      }
    }
"""
from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from app.schemas.deadline import CamelModel

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class RosterUser(CamelModel):
    name: str
    slack_id: str = Field(min_length=1)
    role: str = "Team Member"
    active: bool = True
    timezone: Optional[str] = None
    preferred_channel: str = "DMs"
    check_in_days: list[str] = Field(default_factory=lambda: list(WEEKDAYS[:5]))
    custom_goals: list[str] = Field(default_factory=list)

    @field_validator("check_in_days")
    @classmethod
    def known_weekdays(cls, v: list[str]) -> list[str]:
        days = [d.strip().lower() for d in v]
        unknown = [d for d in days if d not in WEEKDAYS]
        if unknown:
            raise ValueError(f"unknown weekday(s): {', '.join(unknown)}")
        return days
