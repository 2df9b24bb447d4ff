"""
Slack transport — outbound chat.postMessage and inbound request signing.

Outbound sends never raise: every failure (HTTP status, Slack `ok: false`,
network error) comes back as SendResult(success=False, error=...), and the
caller decides whether to retry.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

logger = logging.getLogger(__name__)

SLACK_API_BASE = "https://slack.com/api"
SIGNATURE_VERSION = "v0"
MAX_REQUEST_AGE_SECONDS = 5 * 60


@dataclass
class SendResult:
    """Result of an outbound send."""

    success: bool
    ts: str | None = None  # Slack timestamp (id) of the posted message
    channel: str | None = None
    error: str | None = None


class MessageTransport(Protocol):
    def send_message(
        self, channel: str, text: str, thread_ts: Optional[str] = None
    ) -> SendResult: ...


class SlackClient:
    """Post messages with a bot token."""

    def __init__(self, bot_token: str, timeout: float = 30.0):
        if not bot_token:
            raise ValueError("No Slack bot token provided. Set SLACK_BOT_TOKEN.")
        self.bot_token = bot_token
        self.timeout = timeout

    def _get_headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.bot_token}",
            "Content-Type": "application/json; charset=utf-8",
        }

    def send_message(
        self,
        channel: str,
        text: str,
        thread_ts: Optional[str] = None,
    ) -> SendResult:
        """
        Send a text message.

        Args:
            channel: Channel, DM or user id (a user id opens the DM)
            text: mrkdwn text
            thread_ts: Parent message timestamp to reply in thread (optional)
        """
        payload = {"channel": channel, "text": text, "mrkdwn": True}
        if thread_ts:
            payload["thread_ts"] = thread_ts

        try:
            response = httpx.post(
                f"{SLACK_API_BASE}/chat.postMessage",
                json=payload,
                headers=self._get_headers(),
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            logger.error("send_message to %s failed: %s", channel, e)
            return SendResult(success=False, error=str(e))

        if response.status_code != 200:
            error = f"HTTP {response.status_code}"
            logger.error("send_message to %s failed: %s", channel, error)
            return SendResult(success=False, error=error)

        try:
            data = response.json()
        except ValueError:
            return SendResult(success=False, error=f"invalid JSON: {response.text[:100]}")

        if not data.get("ok"):
            error = data.get("error", "unknown_error")
            logger.error("send_message to %s rejected by Slack: %s", channel, error)
            return SendResult(success=False, error=error)

        return SendResult(success=True, ts=data.get("ts"), channel=data.get("channel"))


class DisabledTransport:
    """Stand-in when no bot token is configured: logs and reports failure."""

    def send_message(
        self, channel: str, text: str, thread_ts: Optional[str] = None
    ) -> SendResult:
        logger.warning("Slack is not configured; dropping message to %s", channel)
        return SendResult(success=False, error="slack_not_configured")


# ---------------------------------------------------------------------------
# Inbound request verification
# ---------------------------------------------------------------------------

def compute_slack_signature(signing_secret: str, timestamp: str, body: bytes) -> str:
    base = f"{SIGNATURE_VERSION}:{timestamp}:".encode() + body
    digest = hmac.new(signing_secret.encode(), base, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def verify_slack_signature(
    signing_secret: str,
    timestamp: Optional[str],
    body: bytes,
    signature: Optional[str],
    now: Optional[float] = None,
) -> Optional[str]:
    """Return None when the request is authentic, otherwise the reason it is not."""
    if not timestamp or not signature:
        return "missing signature headers"
    try:
        sent_at = int(timestamp)
    except ValueError:
        return "malformed timestamp"
    current = time.time() if now is None else now
    if abs(current - sent_at) > MAX_REQUEST_AGE_SECONDS:
        return "stale request"
    expected = compute_slack_signature(signing_secret, timestamp, body)
    if not hmac.compare_digest(expected, signature):
        return "signature mismatch"
    return None
