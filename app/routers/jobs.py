"""
Jobs router — run a scheduled job now.

POST /jobs/check-in   — daily check-in broadcast
POST /jobs/reminders  — overdue reminder sweep
POST /jobs/cleanup    — drop completed deadlines past retention
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from app.schemas.jobs import CheckInRunResponse, CleanupRunResponse, ReminderRunResponse
from app.services.container import BotServices, get_services

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("/check-in", response_model=CheckInRunResponse, summary="Send the daily check-in now")
def trigger_check_in(services: BotServices = Depends(get_services)):
    """Same as the scheduled run, including opening the reply window."""
    result = services.run_check_in()
    return CheckInRunResponse(
        sent=result.sent,
        reminders=result.reminders,
        failed=result.failed,
        users=result.users,
    )


@router.post("/reminders", response_model=ReminderRunResponse, summary="Send overdue reminders now")
def trigger_reminders(services: BotServices = Depends(get_services)):
    result = services.run_reminders()
    return ReminderRunResponse(
        users_notified=result.users_notified,
        deadlines_reminded=result.deadlines_reminded,
        failed=result.failed,
    )


@router.post("/cleanup", response_model=CleanupRunResponse, summary="Run deadline cleanup now")
def trigger_cleanup(services: BotServices = Depends(get_services)):
    removed = services.run_cleanup()
    return CleanupRunResponse(removed=removed, retention_days=services.retention_days)
