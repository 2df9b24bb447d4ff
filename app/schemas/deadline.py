"""
Deadline schemas.

Deadline / UserDeadlineRecord are both the persisted shape (user-deadlines.json,
camelCase keys) and the API shape. Request/response wrappers for the
/deadlines router live below them.

GET  /deadlines/{user_id}                         → UserDeadlinesResponse
GET  /deadlines/{user_id}/stats                   → DeadlineStatsResponse
POST /deadlines/{user_id}                         → DeadlineCreateRequest → Deadline
POST /deadlines/{user_id}/{deadline_id}/complete  → CompleteDeadlineResponse
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case in Python, camelCase on disk and on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------

class Deadline(CamelModel):
    id: str
    task: str
    due_date: date
    type: str = "general"
    created_at: datetime
    completed: bool = False
    completed_at: Optional[datetime] = None
    reminded: bool = False
    reminder_count: int = Field(default=0, ge=0)
    last_reminder_at: Optional[datetime] = None


class UserDeadlineRecord(CamelModel):
    name: str
    role: str
    active_deadlines: list[Deadline] = Field(default_factory=list)
    completed_deadlines: list[Deadline] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

class DeadlineCreateRequest(BaseModel):
    """Manually assign a deadline to a user."""

    task: Annotated[str, Field(
        min_length=1,
        max_length=2_000,
        description="What has to be done. Stripped of surrounding whitespace.",
        examples=["Ship the Q3 board deck"],
    )]
    due_date: date = Field(description="ISO calendar date.", examples=["2026-10-23"])
    type: str = Field(default="general", max_length=64)
    name: Optional[str] = Field(
        default=None, description="Display name, used only if this is the user's first deadline."
    )
    role: Optional[str] = Field(
        default=None, description="Role, used only if this is the user's first deadline."
    )

    @field_validator("task", mode="before")
    @classmethod
    def strip_and_check_empty(cls, v: str) -> str:
        stripped = v.strip() if isinstance(v, str) else v
        if not stripped:
            raise ValueError("task must not be empty after stripping whitespace")
        return stripped


class UserDeadlinesResponse(BaseModel):
    user_id: str
    name: Optional[str] = None
    role: Optional[str] = None
    active: list[Deadline]
    overdue: list[Deadline] = Field(description="Active deadlines due before today.")
    due_today: list[Deadline]


class DeadlineStatsResponse(BaseModel):
    user_id: str
    active: int
    completed: int
    overdue: int
    completion_rate: int = Field(
        description="round(100 * completed / (completed + overdue)); 0 when both are 0.",
        examples=[75],
    )


class CompleteDeadlineResponse(BaseModel):
    user_id: str
    deadline_id: str
    completed: bool
