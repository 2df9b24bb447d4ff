"""
Manual job trigger schemas.

POST /jobs/check-in   → CheckInRunResponse
POST /jobs/reminders  → ReminderRunResponse
POST /jobs/cleanup    → CleanupRunResponse
"""
from pydantic import BaseModel, Field


class CheckInRunResponse(BaseModel):
    sent: int = Field(description="Check-in prompts delivered.")
    reminders: int = Field(description="Users who got an overdue reminder instead of the prompt.")
    failed: int
    users: list[str]


class ReminderRunResponse(BaseModel):
    users_notified: int
    deadlines_reminded: int
    failed: int


class CleanupRunResponse(BaseModel):
    removed: int
    retention_days: int
