"""Slack incoming-webhook notification adapter.

Posts each notification as a JSON body with the plain text and its Block Kit
blocks. Every failure is raised as a DispatchError for that payload only.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional

import requests

from core.config import DEFAULT_TIMEOUT_SECS
from core.errors import DispatchError
from core.models import NotificationPayload

LOGGER = logging.getLogger(__name__)

_MAX_ERROR_BODY = 200


class SlackWebhookNotifier:
    """Notifier adapter that sends messages to a Slack incoming webhook."""

    name = "webhook"

    def __init__(
        self,
        webhook_url: str,
        timeout_secs: float = DEFAULT_TIMEOUT_SECS,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._timeout_secs = timeout_secs
        self._session = session or requests.Session()

    def close(self) -> None:
        self._session.close()

    def _body(self, payload: NotificationPayload) -> str:
        try:
            return json.dumps({"text": payload.text, "blocks": payload.blocks})
        except (TypeError, ValueError) as exc:
            raise DispatchError(self.name, payload.mr_ids, f"could not serialize payload: {exc}") from exc

    def _post(self, payload: NotificationPayload) -> None:
        data = self._body(payload)
        try:
            response = self._session.post(
                self._webhook_url,
                data=data.encode("utf-8"),
                headers={"Content-Type": "application/json"},
                timeout=self._timeout_secs,
            )
        except requests.RequestException as exc:
            # The exception text can contain the webhook URL, which is a secret.
            raise DispatchError(self.name, payload.mr_ids, f"transport error: {type(exc).__name__}") from exc

        if not 200 <= response.status_code < 300:
            body = (response.text or "")[:_MAX_ERROR_BODY]
            raise DispatchError(self.name, payload.mr_ids, f"HTTP {response.status_code}: {body}")

        LOGGER.debug("Webhook accepted notification for MR %s", payload.mr_ids)

    async def send(self, payload: NotificationPayload) -> None:
        """Send the notification via the webhook without blocking the event loop."""

        await asyncio.to_thread(self._post, payload)
