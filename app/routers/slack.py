"""
Slack Events API router.

POST /slack/events — url_verification handshake + message / app_mention events

Slack expects an answer within 3 seconds, so accepted events are handed to
the orchestrator as a background task and acknowledged immediately.
"""
from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.core.errors import InvalidSlackSignatureError
from app.schemas.slack import EventAck, InboundEvent, SlackEventEnvelope, UrlVerificationResponse
from app.services.container import BotServices, get_services
from app.services.slack_client import verify_slack_signature

router = APIRouter(prefix="/slack", tags=["slack"])

IGNORED_SUBTYPES = {"bot_message", "message_changed", "message_deleted"}


# ---------------------------------------------------------------------------
# Event conversion
# ---------------------------------------------------------------------------

def to_inbound_event(event: dict[str, Any]) -> Optional[InboundEvent]:
    """Slack event → InboundEvent, or None for events the bot never answers."""
    kind = event.get("type")
    if kind not in ("message", "app_mention"):
        return None
    if event.get("subtype") in IGNORED_SUBTYPES or event.get("bot_id"):
        return None

    user = event.get("user")
    text = event.get("text")
    channel = event.get("channel")
    ts = event.get("ts")
    if not (user and text and channel and ts):
        return None

    return InboundEvent(
        user_id=user,
        text=text,
        channel_id=channel,
        timestamp=ts,
        is_direct=event.get("channel_type") == "im" or channel.startswith("D"),
        is_mention=kind == "app_mention",
    )


# ---------------------------------------------------------------------------
# POST /slack/events
# ---------------------------------------------------------------------------

@router.post(
    "/events",
    summary="Slack Events API endpoint",
    responses={
        200: {"description": "Challenge echo, or an acknowledgement of the event."},
        401: {"description": "Signature verification failed."},
        422: {"description": "Body is not a Slack event envelope."},
    },
)
async def slack_events(
    request: Request,
    background_tasks: BackgroundTasks,
    services: BotServices = Depends(get_services),
):
    """
    Verify the request signature (when SLACK_SIGNING_SECRET is set), answer the
    `url_verification` challenge, and queue `message` / `app_mention` events
    for the orchestrator.
    """
    body = await request.body()

    if services.signing_secret:
        reason = verify_slack_signature(
            services.signing_secret,
            request.headers.get("X-Slack-Request-Timestamp"),
            body,
            request.headers.get("X-Slack-Signature"),
        )
        if reason:
            raise InvalidSlackSignatureError(reason)

    try:
        envelope = SlackEventEnvelope.model_validate_json(body)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors()) from exc

    if envelope.type == "url_verification":
        return UrlVerificationResponse(challenge=envelope.challenge or "")

    if envelope.type != "event_callback" or not envelope.event:
        return EventAck()

    inbound = to_inbound_event(envelope.event)
    if inbound is None:
        return EventAck()

    background_tasks.add_task(services.bot.handle_event, inbound)
    return EventAck(queued=True)
