"""
Custom exception hierarchy for the accountability bot.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

Lifecycle rejections (duplicate deadline, unknown user or id) are NOT
exceptions inside the engine — it returns None / False. The routers turn
those sentinels into the errors below.
"""
from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class AccountabilityBotError(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class UnknownUserError(AccountabilityBotError):
    http_status = status.HTTP_404_NOT_FOUND
    code = "UNKNOWN_USER"

    def __init__(self, user_id: str):
        super().__init__(
            message=f"No deadline record for user {user_id}.",
            details={"user_id": user_id},
        )


class DeadlineNotFoundError(AccountabilityBotError):
    http_status = status.HTTP_404_NOT_FOUND
    code = "DEADLINE_NOT_FOUND"

    def __init__(self, user_id: str, deadline_id: str):
        super().__init__(
            message=f"Active deadline {deadline_id} not found for user {user_id}.",
            details={"user_id": user_id, "deadline_id": deadline_id},
        )


class DuplicateDeadlineError(AccountabilityBotError):
    http_status = status.HTTP_409_CONFLICT
    code = "DUPLICATE_DEADLINE"

    def __init__(self, task: str, due_date: date):
        super().__init__(
            message=f"An active deadline for '{task}' due {due_date} already exists.",
            details={"task": task, "due_date": str(due_date)},
        )


class DeadlineValidationError(AccountabilityBotError):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_DEADLINE"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            details={"field": field} if field else {},
        )


class InvalidSlackSignatureError(AccountabilityBotError):
    http_status = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_SLACK_SIGNATURE"

    def __init__(self, reason: str):
        super().__init__(
            message="Slack request signature verification failed.",
            details={"reason": reason},
        )


class RosterLoadError(AccountabilityBotError):
    code = "ROSTER_LOAD_ERROR"

    def __init__(self, path: str, reason: str):
        super().__init__(
            message=f"Could not load roster from {path}.",
            details={"path": path, "reason": reason},
        )


class TextGenerationError(AccountabilityBotError):
    """Raised by the text generator; always caught by the orchestrator."""
    http_status = status.HTTP_502_BAD_GATEWAY
    code = "TEXT_GENERATION_FAILED"

    def __init__(self, reason: str):
        super().__init__(message=f"Text generation failed: {reason}")


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def bot_exception_handler(request: Request, exc: AccountabilityBotError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
