from __future__ import annotations

from datetime import datetime, timedelta, timezone

from core.config import DwellPolicy
from core.dwell import idle_seconds, qualifies
from core.models import MergeRequestSummary

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _mr(updated_at: datetime) -> MergeRequestSummary:
    return MergeRequestSummary(
        id=42,
        iid=7,
        title="Fix bug",
        web_url="https://gitlab.example.com/group/project/-/merge_requests/7",
        updated_at=updated_at,
        target_branch="main",
    )


def test_no_policy_qualifies_everything() -> None:
    policy = DwellPolicy()
    assert qualifies(_mr(NOW), policy, NOW)
    assert qualifies(_mr(NOW - timedelta(days=30)), policy, NOW)
    # Without a minimum there is nothing to compare a future timestamp with.
    assert qualifies(_mr(NOW + timedelta(hours=1)), policy, NOW)


def test_too_fresh_does_not_qualify() -> None:
    policy = DwellPolicy(min_dwell_secs=3600)
    assert not qualifies(_mr(NOW - timedelta(seconds=1800)), policy, NOW)


def test_idle_long_enough_qualifies() -> None:
    policy = DwellPolicy(min_dwell_secs=3600)
    assert qualifies(_mr(NOW - timedelta(seconds=7200)), policy, NOW)


def test_threshold_is_inclusive() -> None:
    policy = DwellPolicy(min_dwell_secs=3600)
    assert qualifies(_mr(NOW - timedelta(seconds=3600)), policy, NOW)
    assert not qualifies(_mr(NOW - timedelta(seconds=3599)), policy, NOW)


def test_zero_dwell_qualifies_present_and_past() -> None:
    policy = DwellPolicy(min_dwell_secs=0)
    assert qualifies(_mr(NOW), policy, NOW)
    assert qualifies(_mr(NOW - timedelta(minutes=5)), policy, NOW)


def test_future_update_never_qualifies() -> None:
    future = _mr(NOW + timedelta(seconds=30))
    for threshold in (0, 1, 3600):
        assert not qualifies(future, DwellPolicy(min_dwell_secs=threshold), NOW)


def test_naive_timestamps_are_read_as_utc() -> None:
    naive_update = (NOW - timedelta(hours=2)).replace(tzinfo=None)
    assert idle_seconds(_mr(naive_update), NOW) == 7200
    assert qualifies(_mr(naive_update), DwellPolicy(min_dwell_secs=3600), NOW)


def test_offsets_are_compared_as_instants() -> None:
    plus_two = timezone(timedelta(hours=2))
    # 13:00+02:00 is 11:00 UTC, one hour before NOW.
    updated = datetime(2024, 5, 1, 13, 0, tzinfo=plus_two)
    assert idle_seconds(_mr(updated), NOW) == 3600
