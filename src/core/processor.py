"""Core merge request notification pipeline.

This module is integration-agnostic. It only relies on ports for the merge
request source, rendering and notifications, so hosts or sinks can change
without touching the pipeline order:

1) Fetch open merge requests (fatal on failure)
2) Apply the dwell policy per merge request
3) Render one payload per qualifying merge request (or one digest)
4) Dispatch every payload to every sink, in discovery order
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional, Sequence

from core.config import NOTIFICATION_MODES, DwellPolicy
from core.dwell import idle_seconds, qualifies
from core.errors import DispatchError
from core.models import MergeRequestSummary, NotificationPayload
from core.ports import MergeRequestSourcePort, NotifierPort, RendererPort

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchFailure:
    """One payload that a sink failed to deliver."""

    sink: str
    mr_ids: tuple[int, ...]
    detail: str


@dataclass
class RunReport:
    """Outcome of a single notifier pass."""

    fetched: int = 0
    qualified: int = 0
    # Per merge request in per_item mode, a single payload in digest mode.
    payloads_delivered: int = 0
    failures: list[DispatchFailure] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return 1 if self.failures else 0


class MergeRequestNotifier:
    """Orchestrates fetch, dwell filtering, rendering and dispatch."""

    def __init__(
        self,
        source: MergeRequestSourcePort,
        renderer: RendererPort,
        notifiers: Iterable[NotifierPort],
        project_id: int,
        target_branch: Optional[str] = None,
        policy: DwellPolicy = DwellPolicy(),
        mode: str = "per_item",
        abort_on_dispatch_failure: bool = False,
    ) -> None:
        if mode not in NOTIFICATION_MODES:
            raise ValueError(f"Unsupported notification mode: {mode}")
        self._source = source
        self._renderer = renderer
        self._notifiers = list(notifiers)
        self._project_id = project_id
        self._target_branch = target_branch
        self._policy = policy
        self._mode = mode
        self._abort_on_dispatch_failure = abort_on_dispatch_failure

    async def run(self, now: Optional[datetime] = None) -> RunReport:
        """Run one pass of the pipeline and report what happened."""

        report = RunReport()
        # The source call blocks on network I/O; SourceFetchError propagates
        # untouched so the run fails instead of looking like "no MRs".
        merge_requests = await asyncio.to_thread(self._source.fetch, self._project_id, self._target_branch)
        report.fetched = len(merge_requests)

        # Dwell is measured against a single timestamp taken after the fetch.
        now = now or datetime.now(timezone.utc)
        qualifying = [mr for mr in merge_requests if self._qualifies(mr, now)]
        report.qualified = len(qualifying)
        LOGGER.info(
            "Project %s: %s open merge request(s), %s qualify for notification",
            self._project_id,
            report.fetched,
            report.qualified,
        )
        if not qualifying:
            return report

        for payload in self._render(qualifying):
            if await self._dispatch(payload, report):
                report.payloads_delivered += 1

        if report.failures:
            LOGGER.warning("%s notification(s) failed to dispatch", len(report.failures))
        return report

    def _qualifies(self, mr: MergeRequestSummary, now: datetime) -> bool:
        if qualifies(mr, self._policy, now):
            return True
        LOGGER.debug(
            "Skipping MR #%s: idle for %.0fs, minimum is %ss",
            mr.id,
            idle_seconds(mr, now),
            self._policy.min_dwell_secs,
        )
        return False

    def _render(self, merge_requests: Sequence[MergeRequestSummary]) -> list[NotificationPayload]:
        if self._mode == "digest":
            return [self._renderer.render_digest(merge_requests, self._target_branch)]
        return [self._renderer.render(mr, self._target_branch) for mr in merge_requests]

    async def _dispatch(self, payload: NotificationPayload, report: RunReport) -> bool:
        """Send a payload to every sink; return True when all of them accepted it."""

        delivered = True
        for notifier in self._notifiers:
            try:
                await notifier.send(payload)
            except DispatchError as exc:
                LOGGER.error("%s", exc)
                if self._abort_on_dispatch_failure:
                    raise
                report.failures.append(DispatchFailure(sink=exc.sink, mr_ids=exc.mr_ids, detail=exc.detail))
                delivered = False
        return delivered
