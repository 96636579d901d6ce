from __future__ import annotations

import asyncio
import json
from types import SimpleNamespace
from typing import Any, Optional

import pytest
import requests

from adapters.slack_webhook_notifier import SlackWebhookNotifier
from core.errors import DispatchError
from core.models import NotificationPayload

WEBHOOK_URL = "https://hooks.slack.example.com/services/T000/B000/secret"


class FakeSession:
    def __init__(self, status_code: int = 200, text: str = "ok", error: Optional[Exception] = None) -> None:
        self.status_code = status_code
        self.text = text
        self.error = error
        self.posts: list[dict[str, Any]] = []
        self.closed = False

    def post(self, url: str, **kwargs: Any) -> SimpleNamespace:
        self.posts.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(status_code=self.status_code, text=self.text)

    def close(self) -> None:
        self.closed = True


def _payload() -> NotificationPayload:
    return NotificationPayload(
        text='MR #42 "Fix bug" is awaiting merge.',
        title="Fix bug",
        link="https://gitlab.example.com/group/project/-/merge_requests/7",
        blocks=[{"type": "section", "text": {"type": "mrkdwn", "text": "*MR #42: Fix bug*"}}],
        mr_ids=(42,),
    )


def test_posts_json_body_with_timeout() -> None:
    session = FakeSession()
    notifier = SlackWebhookNotifier(WEBHOOK_URL, timeout_secs=3.5, session=session)

    asyncio.run(notifier.send(_payload()))

    assert len(session.posts) == 1
    post = session.posts[0]
    assert post["url"] == WEBHOOK_URL
    assert post["timeout"] == 3.5
    assert post["headers"]["Content-Type"] == "application/json"
    body = json.loads(post["data"].decode("utf-8"))
    assert body["text"] == 'MR #42 "Fix bug" is awaiting merge.'
    assert body["blocks"][0]["type"] == "section"


def test_http_error_status_raises_dispatch_error() -> None:
    notifier = SlackWebhookNotifier(WEBHOOK_URL, session=FakeSession(status_code=500, text="invalid_payload"))

    with pytest.raises(DispatchError) as excinfo:
        asyncio.run(notifier.send(_payload()))

    assert excinfo.value.sink == "webhook"
    assert excinfo.value.mr_ids == (42,)
    assert "HTTP 500" in str(excinfo.value)
    assert "invalid_payload" in str(excinfo.value)


def test_transport_error_raises_dispatch_error_without_url() -> None:
    error = requests.ConnectionError(f"Max retries exceeded with url: {WEBHOOK_URL}")
    notifier = SlackWebhookNotifier(WEBHOOK_URL, session=FakeSession(error=error))

    with pytest.raises(DispatchError) as excinfo:
        asyncio.run(notifier.send(_payload()))

    assert "ConnectionError" in str(excinfo.value)
    assert "secret" not in str(excinfo.value)


def test_timeout_is_a_dispatch_error() -> None:
    notifier = SlackWebhookNotifier(WEBHOOK_URL, session=FakeSession(error=requests.Timeout()))
    with pytest.raises(DispatchError):
        asyncio.run(notifier.send(_payload()))


def test_unserializable_payload_raises_dispatch_error() -> None:
    session = FakeSession()
    notifier = SlackWebhookNotifier(WEBHOOK_URL, session=session)
    payload = NotificationPayload(text="x", title="x", link=None, blocks=[{"bad": object()}], mr_ids=(1,))

    with pytest.raises(DispatchError) as excinfo:
        asyncio.run(notifier.send(payload))

    assert "serialize" in str(excinfo.value)
    assert not session.posts


def test_close_closes_session() -> None:
    session = FakeSession()
    SlackWebhookNotifier(WEBHOOK_URL, session=session).close()
    assert session.closed
