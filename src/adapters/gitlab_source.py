"""GitLab merge request source adapter.

Lists open merge requests for a single project through python-gitlab. Only
the API's default page is requested; every failure is raised as a
SourceFetchError so the run never mistakes an outage for "no open MRs".
"""

from __future__ import annotations

import logging
from typing import Optional

import gitlab
import requests

from adapters.gitlab_mapper import build_summary
from core.errors import SourceFetchError
from core.models import OPEN_STATE, MergeRequestQuery, MergeRequestSummary

LOGGER = logging.getLogger(__name__)

_AUTH_STATUS_CODES = {401, 403}


class GitLabMergeRequestSource:
    """Merge request source backed by a python-gitlab client."""

    def __init__(self, client: gitlab.Gitlab, host: str) -> None:
        self._client = client
        self._host = host

    def fetch(self, project_id: int, target_branch: Optional[str] = None) -> list[MergeRequestSummary]:
        """Return open merge requests, optionally restricted to one target branch."""

        query = MergeRequestQuery(project_id=project_id, target_branch=target_branch)
        raw_items = self._list(query)

        summaries: list[MergeRequestSummary] = []
        for raw in raw_items:
            try:
                summary = build_summary(raw)
            except (KeyError, TypeError, ValueError) as exc:
                raise SourceFetchError("response", self._host, project_id, f"malformed merge request: {exc!r}") from exc

            # The server already filters, but the contract is enforced here as
            # well so a misbehaving host cannot leak closed or foreign MRs.
            if summary.state != OPEN_STATE:
                LOGGER.debug("Dropping MR #%s in state %s", summary.id, summary.state)
                continue
            if target_branch is not None and summary.target_branch != target_branch:
                LOGGER.debug("Dropping MR #%s targeting %s", summary.id, summary.target_branch)
                continue
            summaries.append(summary)

        LOGGER.debug("Fetched %s open merge request(s) for project %s", len(summaries), project_id)
        return summaries

    def _list(self, query: MergeRequestQuery) -> list:
        project_id = query.project_id
        try:
            project = self._client.projects.get(project_id, lazy=True)
            # No 429 sleep-and-retry loop: a rate-limited listing fails the run.
            items = project.mergerequests.list(get_all=False, obey_rate_limit=False, **query.as_params())
            return list(items)
        except gitlab.exceptions.GitlabAuthenticationError as exc:
            raise SourceFetchError("authentication", self._host, project_id, str(exc)) from exc
        except gitlab.exceptions.GitlabError as exc:
            kind = "authentication" if exc.response_code in _AUTH_STATUS_CODES else "response"
            raise SourceFetchError(kind, self._host, project_id, str(exc)) from exc
        except requests.exceptions.InvalidJSONError as exc:
            raise SourceFetchError("response", self._host, project_id, str(exc)) from exc
        except requests.RequestException as exc:
            raise SourceFetchError("transport", self._host, project_id, str(exc)) from exc
        except ValueError as exc:
            # Body that is not JSON at all.
            raise SourceFetchError("response", self._host, project_id, str(exc)) from exc
