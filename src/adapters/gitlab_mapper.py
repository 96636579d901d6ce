"""GitLab-to-core merge request mapping adapter.

This keeps python-gitlab object details out of the core pipeline.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from core.models import MergeRequestSummary


def parse_gitlab_timestamp(raw: str) -> datetime:
    """Parse GitLab's ISO-8601 timestamps (``2024-01-01T12:00:00.000Z``)."""

    if not isinstance(raw, str) or not raw:
        raise ValueError(f"Invalid timestamp: {raw!r}")
    # fromisoformat only accepts a trailing "Z" from Python 3.11 onwards.
    if raw.endswith("Z"):
        raw = f"{raw[:-1]}+00:00"
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _attributes(merge_request: Any) -> Mapping[str, Any]:
    # python-gitlab RESTObjects expose their JSON through .attributes; plain
    # mappings are accepted so the mapper works on raw API payloads too.
    if isinstance(merge_request, Mapping):
        return merge_request
    return merge_request.attributes


def build_summary(merge_request: Any) -> MergeRequestSummary:
    """Build a MergeRequestSummary from a python-gitlab merge request.

    Raises KeyError/ValueError/TypeError when the payload is missing fields or
    carries values of the wrong shape.
    """

    data = _attributes(merge_request)
    return MergeRequestSummary(
        id=int(data["id"]),
        iid=int(data.get("iid") or data["id"]),
        title=str(data["title"]),
        web_url=str(data.get("web_url") or ""),
        updated_at=parse_gitlab_timestamp(data["updated_at"]),
        target_branch=str(data["target_branch"]),
        state=str(data["state"]),
    )
