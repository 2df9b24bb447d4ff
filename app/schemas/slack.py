"""
Slack Events API payloads and the transport-agnostic inbound event.

POST /slack/events → SlackEventEnvelope
    type == "url_verification" → echo `challenge`
    type == "event_callback"   → `event` is converted to an InboundEvent
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class SlackEventEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str = Field(description='"url_verification" | "event_callback"')
    challenge: Optional[str] = None
    team_id: Optional[str] = None
    event_id: Optional[str] = None
    event: Optional[dict[str, Any]] = None


class InboundEvent(BaseModel):
    """What the core needs from a chat message, nothing transport-specific."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    text: str
    channel_id: str
    timestamp: str
    is_direct: bool = False
    is_mention: bool = False


class UrlVerificationResponse(BaseModel):
    challenge: str


class EventAck(BaseModel):
    ok: bool = True
    queued: bool = False
