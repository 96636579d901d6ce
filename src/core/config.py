"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

NOTIFICATION_MODES = ("per_item", "digest")
DEFAULT_TIMEOUT_SECS = 10.0


@dataclass(frozen=True)
class DwellPolicy:
    """Minimum idle time before a merge request is worth a notification."""

    min_dwell_secs: Optional[int] = None


@dataclass(frozen=True)
class NotifierConfig:
    """Resolved settings for a single notifier run."""

    gitlab_host: str
    gitlab_token: str
    project_id: int
    target_branch: Optional[str] = None
    min_dwell_secs: Optional[int] = None
    webhook_url: Optional[str] = None
    timeout_secs: float = DEFAULT_TIMEOUT_SECS
    notification_mode: str = "per_item"
    abort_on_dispatch_failure: bool = False

    @property
    def dwell_policy(self) -> DwellPolicy:
        return DwellPolicy(min_dwell_secs=self.min_dwell_secs)

    @property
    def secrets(self) -> list[str]:
        """Values that must never appear in logs."""

        values = [value for value in (self.gitlab_token, self.webhook_url) if value]
        if self.webhook_url:
            # HTTP client debug logs print the request path without the host.
            path = urlparse(self.webhook_url).path
            if path.strip("/"):
                values.append(path)
        return values
