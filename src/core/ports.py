"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the merge request source and the
notification sinks so that the core can be reused with different hosts.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from core.models import MergeRequestSummary, NotificationPayload


class MergeRequestSourcePort(Protocol):
    """Read-only listing of open merge requests."""

    def fetch(self, project_id: int, target_branch: Optional[str] = None) -> Sequence[MergeRequestSummary]:
        ...


class NotifierPort(Protocol):
    """Notification operations required by the core pipeline."""

    name: str

    async def send(self, payload: NotificationPayload) -> None:
        ...


class RendererPort(Protocol):
    """Turns qualifying merge requests into notification payloads."""

    def render(self, mr: MergeRequestSummary, target_branch: Optional[str] = None) -> NotificationPayload:
        ...

    def render_digest(
        self, mrs: Sequence[MergeRequestSummary], target_branch: Optional[str] = None
    ) -> NotificationPayload:
        ...
