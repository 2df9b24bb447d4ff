"""
Deadlines router.

GET  /deadlines/{user_id}                         — active / overdue / due today
GET  /deadlines/{user_id}/stats                   — counts + completion rate
POST /deadlines/{user_id}                         — assign a deadline manually
POST /deadlines/{user_id}/{deadline_id}/complete  — mark done
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from app.core.errors import DeadlineNotFoundError, DuplicateDeadlineError, UnknownUserError
from app.schemas.deadline import (
    CompleteDeadlineResponse,
    Deadline,
    DeadlineCreateRequest,
    DeadlineStatsResponse,
    UserDeadlinesResponse,
)
from app.services.container import BotServices, get_services

router = APIRouter(prefix="/deadlines", tags=["deadlines"])


@router.get(
    "/{user_id}",
    response_model=UserDeadlinesResponse,
    summary="A user's deadlines",
    responses={404: {"description": "User has no deadline record."}},
)
def get_user_deadlines(user_id: str, services: BotServices = Depends(get_services)):
    engine = services.engine
    record = engine.get_user_record(user_id)
    if record is None:
        raise UnknownUserError(user_id)
    return UserDeadlinesResponse(
        user_id=user_id,
        name=record.name,
        role=record.role,
        active=engine.get_active_deadlines(user_id),
        overdue=engine.get_overdue_deadlines(user_id),
        due_today=engine.get_deadlines_due_today(user_id),
    )


@router.get(
    "/{user_id}/stats",
    response_model=DeadlineStatsResponse,
    summary="Deadline statistics for a user",
    responses={404: {"description": "User has no deadline record."}},
)
def get_user_stats(user_id: str, services: BotServices = Depends(get_services)):
    """`completion_rate` = round(100 × completed / (completed + overdue)), 0 if both are 0."""
    stats = services.engine.get_deadline_stats(user_id)
    if stats is None:
        raise UnknownUserError(user_id)
    return DeadlineStatsResponse(
        user_id=user_id,
        active=stats.active,
        completed=stats.completed,
        overdue=stats.overdue,
        completion_rate=stats.completion_rate,
    )


@router.post(
    "/{user_id}",
    response_model=Deadline,
    status_code=status.HTTP_201_CREATED,
    summary="Assign a deadline",
    responses={
        409: {"description": "Same task and due date already active for this user."},
        422: {"description": "Empty task or invalid date."},
    },
)
def create_deadline(
    user_id: str,
    payload: DeadlineCreateRequest,
    services: BotServices = Depends(get_services),
):
    deadline = services.engine.add_deadline(
        user_id,
        payload.task,
        payload.due_date,
        payload.type,
        name=payload.name,
        role=payload.role,
    )
    if deadline is None:
        raise DuplicateDeadlineError(payload.task, payload.due_date)
    return deadline


@router.post(
    "/{user_id}/{deadline_id}/complete",
    response_model=CompleteDeadlineResponse,
    summary="Complete a deadline",
    responses={404: {"description": "Unknown user or no such active deadline."}},
)
def complete_deadline(
    user_id: str,
    deadline_id: str,
    services: BotServices = Depends(get_services),
):
    if not services.engine.complete_deadline(user_id, deadline_id):
        raise DeadlineNotFoundError(user_id, deadline_id)
    return CompleteDeadlineResponse(user_id=user_id, deadline_id=deadline_id, completed=True)
