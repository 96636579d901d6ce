"""Dwell-time policy (core domain)."""

from __future__ import annotations

from datetime import datetime, timezone

from core.config import DwellPolicy
from core.models import MergeRequestSummary


def _as_utc(value: datetime) -> datetime:
    # GitLab timestamps always carry an offset; naive values come from tests or
    # hand-built summaries and are read as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def idle_seconds(mr: MergeRequestSummary, now: datetime) -> float:
    """Return how long the merge request has been untouched, in seconds."""

    return (_as_utc(now) - _as_utc(mr.updated_at)).total_seconds()


def qualifies(mr: MergeRequestSummary, policy: DwellPolicy, now: datetime) -> bool:
    """Return True when the merge request should be notified about.

    - No minimum dwell: every fetched merge request qualifies.
    - An update timestamp in the future never qualifies.
    - Otherwise the merge request must have been idle for at least the minimum.
    """

    if policy.min_dwell_secs is None:
        return True

    elapsed = idle_seconds(mr, now)
    if elapsed < 0:
        return False
    return elapsed >= policy.min_dwell_secs
