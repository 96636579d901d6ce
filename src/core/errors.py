"""Error types shared by the core and adapters."""

from __future__ import annotations

from typing import Iterable


class MrNagError(Exception):
    """Base class for all mr-nag failures."""


class ConfigurationError(MrNagError):
    """Missing or invalid configuration, detected before the pipeline runs."""


class SourceFetchError(MrNagError):
    """Listing merge requests failed; fatal to the run."""

    def __init__(self, kind: str, host: str, project_id: int, detail: str) -> None:
        super().__init__(f"{kind} error listing merge requests for project {project_id} on {host}: {detail}")
        self.kind = kind
        self.host = host
        self.project_id = project_id
        self.detail = detail


class DispatchError(MrNagError):
    """A single notification could not be delivered to a sink."""

    def __init__(self, sink: str, mr_ids: Iterable[int], detail: str) -> None:
        self.sink = sink
        self.mr_ids = tuple(mr_ids)
        self.detail = detail
        ids = ", ".join(f"#{mr_id}" for mr_id in self.mr_ids) or "(none)"
        super().__init__(f"{sink} dispatch failed for MR {ids}: {detail}")
