"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any GitLab or Slack-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

OPEN_STATE = "opened"


@dataclass(frozen=True)
class MergeRequestSummary:
    """Minimal projection of a remote merge request used by the pipeline."""

    id: int
    iid: int
    title: str
    web_url: str
    updated_at: datetime
    target_branch: str
    state: str = OPEN_STATE


@dataclass(frozen=True)
class MergeRequestQuery:
    """Request descriptor for listing merge requests of one project."""

    project_id: int
    state: str = OPEN_STATE
    target_branch: Optional[str] = None

    def as_params(self) -> dict[str, Any]:
        params: dict[str, Any] = {"state": self.state}
        if self.target_branch is not None:
            params["target_branch"] = self.target_branch
        return params


@dataclass(frozen=True)
class NotificationPayload:
    """Rendered notification consumed by the sinks."""

    text: str
    title: str
    link: Optional[str]
    blocks: list[dict[str, Any]] = field(default_factory=list)
    mr_ids: tuple[int, ...] = ()
