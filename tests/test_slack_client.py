"""
Tests for the Slack transport and request signing. httpx.post is patched,
nothing leaves the process.
"""
from __future__ import annotations

import time

import httpx
import pytest

from app.services.slack_client import (
    DisabledTransport,
    SlackClient,
    compute_slack_signature,
    verify_slack_signature,
)

URL = "https://slack.com/api/chat.postMessage"


@pytest.fixture()
def calls(monkeypatch):
    """Patch httpx.post; set `calls.response` / `calls.error` before sending."""

    class Recorder:
        def __init__(self):
            self.requests = []
            self.response = httpx.Response(
                200,
                json={"ok": True, "ts": "1773151200.000200", "channel": "D0MARNIE"},
                request=httpx.Request("POST", URL),
            )
            self.error = None

        def __call__(self, url, json=None, headers=None, timeout=None):
            self.requests.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
            if self.error:
                raise self.error
            return self.response

    recorder = Recorder()
    monkeypatch.setattr("app.services.slack_client.httpx.post", recorder)
    return recorder


class TestSendMessage:
    def test_success(self, calls):
        result = SlackClient("xoxb-test").send_message("U0MARNIE", "Stay hard")

        assert result.success is True
        assert result.ts == "1773151200.000200"
        assert result.channel == "D0MARNIE"

        request = calls.requests[0]
        assert request["url"] == URL
        assert request["json"] == {"channel": "U0MARNIE", "text": "Stay hard", "mrkdwn": True}
        assert request["headers"]["Authorization"] == "Bearer xoxb-test"

    def test_thread_reply(self, calls):
        SlackClient("xoxb-test").send_message("C0TEAM", "Nice", thread_ts="1.0")
        assert calls.requests[0]["json"]["thread_ts"] == "1.0"

    def test_slack_rejects(self, calls):
        calls.response = httpx.Response(
            200, json={"ok": False, "error": "channel_not_found"}, request=httpx.Request("POST", URL),
        )
        result = SlackClient("xoxb-test").send_message("C0GONE", "hello")
        assert result.success is False
        assert result.error == "channel_not_found"

    def test_http_error_status(self, calls):
        calls.response = httpx.Response(500, text="oops", request=httpx.Request("POST", URL))
        result = SlackClient("xoxb-test").send_message("C0TEAM", "hello")
        assert result.success is False
        assert result.error == "HTTP 500"

    def test_invalid_json(self, calls):
        calls.response = httpx.Response(200, text="<html>", request=httpx.Request("POST", URL))
        result = SlackClient("xoxb-test").send_message("C0TEAM", "hello")
        assert result.success is False
        assert result.error.startswith("invalid JSON")

    def test_network_error(self, calls):
        calls.error = httpx.ConnectError("connection refused")
        result = SlackClient("xoxb-test").send_message("C0TEAM", "hello")
        assert result.success is False
        assert "connection refused" in result.error

    def test_token_required(self):
        with pytest.raises(ValueError):
            SlackClient("")


def test_disabled_transport():
    result = DisabledTransport().send_message("C0TEAM", "hello")
    assert result.success is False
    assert result.error == "slack_not_configured"


class TestSignature:
    SECRET = "8f742231b10e8888abcd99yyyzzz85a5"
    BODY = b'{"type":"event_callback"}'

    def test_valid(self):
        ts = str(int(time.time()))
        signature = compute_slack_signature(self.SECRET, ts, self.BODY)
        assert signature.startswith("v0=")
        assert verify_slack_signature(self.SECRET, ts, self.BODY, signature) is None

    def test_mismatch(self):
        ts = "1773151200"
        signature = compute_slack_signature("other-secret", ts, self.BODY)
        reason = verify_slack_signature(self.SECRET, ts, self.BODY, signature, now=1773151200)
        assert reason == "signature mismatch"

    def test_stale(self):
        ts = "1773151200"
        signature = compute_slack_signature(self.SECRET, ts, self.BODY)
        reason = verify_slack_signature(self.SECRET, ts, self.BODY, signature, now=1773151200 + 301)
        assert reason == "stale request"

    @pytest.mark.parametrize("ts, signature, reason", [
        (None, "v0=abc", "missing signature headers"),
        ("1773151200", None, "missing signature headers"),
        ("yesterday", "v0=abc", "malformed timestamp"),
    ])
    def test_bad_headers(self, ts, signature, reason):
        assert verify_slack_signature(self.SECRET, ts, self.BODY, signature, now=1773151200) == reason
