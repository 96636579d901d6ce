"""GitLab client factory for mr-nag.

The client is built once per run from the resolved configuration. No call is
made here; authentication problems surface on the first request, where the
merge request source turns them into a SourceFetchError.
"""

from __future__ import annotations

import logging

import gitlab

from core.config import NotifierConfig


def gitlab_url(host: str) -> str:
    """Return the base URL for a host, assuming HTTPS when no scheme is given."""

    host = host.strip().rstrip("/")
    if host.startswith(("https://", "http://")):
        return host
    return f"https://{host}"


def build_client(config: NotifierConfig) -> gitlab.Gitlab:
    """Create a python-gitlab client with a bounded request timeout.

    Personal access tokens are accepted by GitLab as bearer tokens, so the
    token is sent in an ``Authorization: Bearer`` header.
    """

    url = gitlab_url(config.gitlab_host)
    logging.getLogger(__name__).info("Initializing GitLab client for %s", url)

    return gitlab.Gitlab(
        url=url,
        oauth_token=config.gitlab_token,
        timeout=config.timeout_secs,
    )
