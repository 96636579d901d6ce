"""Runtime configuration for mr-nag.

Every option can be given on the command line or through the environment
(a local .env file is loaded with python-dotenv), so the same binary works
from an interactive shell and from cron. Parsing happens once; the core only
ever sees the frozen NotifierConfig built here.
"""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence
from urllib.parse import urlparse

from dotenv import load_dotenv

from core.config import DEFAULT_TIMEOUT_SECS, NOTIFICATION_MODES, NotifierConfig
from core.errors import ConfigurationError

PROG = "mr-nag"


@dataclass(frozen=True)
class Settings:
    """Resolved notifier configuration plus process-level options."""

    notifier: NotifierConfig
    verbose: bool = False
    log_file: Optional[str] = None


def build_parser(env: Mapping[str, str]) -> argparse.ArgumentParser:
    """Build the CLI parser, using environment values as defaults."""

    parser = argparse.ArgumentParser(
        prog=PROG,
        description=(
            "Notify a Slack webhook if open merge requests exist for a GitLab project. "
            "Intended to run once per invocation, for example under cron."
        ),
    )
    parser.add_argument(
        "-s",
        "--slack-webhook-url",
        default=env.get("SLACK_WEBHOOK_URL"),
        help="Optional webhook URL to notify if open merge requests are found [env: SLACK_WEBHOOK_URL]",
    )
    parser.add_argument(
        "-t",
        "--gitlab-token",
        default=env.get("GITLAB_TOKEN"),
        help="GitLab token with read_api access to the project [env: GITLAB_TOKEN]",
    )
    parser.add_argument(
        "-g",
        "--gitlab-host",
        default=env.get("GITLAB_HOST"),
        help='GitLab host, e.g. "gitlab.example.com"; HTTPS is assumed [env: GITLAB_HOST]',
    )
    parser.add_argument(
        "-i",
        "--gitlab-project-id",
        default=env.get("GITLAB_PROJECT_ID"),
        help="Numeric GitLab project id to check [env: GITLAB_PROJECT_ID]",
    )
    parser.add_argument(
        "-T",
        "--target-branch",
        default=env.get("TARGET_BRANCH"),
        help="Only notify for merge requests targeting this exact branch [env: TARGET_BRANCH]",
    )
    parser.add_argument(
        "-d",
        "--min-dwell-secs",
        default=env.get("MIN_DWELL_SECS"),
        help="Minimum seconds a merge request must be idle before notifying [env: MIN_DWELL_SECS]",
    )
    parser.add_argument(
        "--timeout",
        default=env.get("MR_NAG_TIMEOUT", str(DEFAULT_TIMEOUT_SECS)),
        help="Network timeout in seconds for GitLab and webhook calls [env: MR_NAG_TIMEOUT]",
    )
    parser.add_argument(
        "--notification-mode",
        choices=NOTIFICATION_MODES,
        default=env.get("MR_NAG_NOTIFICATION_MODE", "per_item"),
        help="One notification per merge request, or a single digest [env: MR_NAG_NOTIFICATION_MODE]",
    )
    parser.add_argument(
        "--abort-on-dispatch-failure",
        action="store_true",
        help="Stop at the first failed webhook delivery instead of continuing",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-file",
        default=env.get("MR_NAG_LOG_FILE"),
        help="Also write logs to this rotating file [env: MR_NAG_LOG_FILE]",
    )
    return parser


def _require(value: Optional[str], flag: str) -> str:
    if value is None or not str(value).strip():
        raise ConfigurationError(f"{flag} is required")
    return str(value).strip()


def _optional(value: Optional[str]) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    return str(value).strip()


def _parse_int(value: str, flag: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{flag} must be an integer, got {value!r}") from exc
    if parsed < 0:
        raise ConfigurationError(f"{flag} must not be negative, got {parsed}")
    return parsed


def _parse_timeout(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:
        raise ConfigurationError(f"--timeout must be a number, got {value!r}") from exc
    if parsed <= 0:
        raise ConfigurationError(f"--timeout must be positive, got {parsed}")
    return parsed


def _validate_webhook_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        # The URL is a secret; only its scheme is echoed back.
        raise ConfigurationError(
            f"--slack-webhook-url must be an absolute http(s) URL (scheme was {parsed.scheme or 'missing'!r})"
        )
    return value


def load_settings(argv: Optional[Sequence[str]] = None, env: Optional[Mapping[str, str]] = None) -> Settings:
    """Parse CLI arguments and environment into validated Settings."""

    if env is None:
        load_dotenv()
        env = os.environ

    args = build_parser(env).parse_args(argv)

    if args.notification_mode not in NOTIFICATION_MODES:
        raise ConfigurationError(f"--notification-mode must be one of {', '.join(NOTIFICATION_MODES)}")

    min_dwell = _optional(args.min_dwell_secs)
    notifier = NotifierConfig(
        gitlab_host=_require(args.gitlab_host, "--gitlab-host"),
        gitlab_token=_require(args.gitlab_token, "--gitlab-token"),
        project_id=_parse_int(_require(args.gitlab_project_id, "--gitlab-project-id"), "--gitlab-project-id"),
        target_branch=_optional(args.target_branch),
        min_dwell_secs=_parse_int(min_dwell, "--min-dwell-secs") if min_dwell is not None else None,
        webhook_url=_validate_webhook_url(_optional(args.slack_webhook_url)),
        timeout_secs=_parse_timeout(str(args.timeout)),
        notification_mode=args.notification_mode,
        abort_on_dispatch_failure=args.abort_on_dispatch_failure,
    )
    return Settings(notifier=notifier, verbose=args.verbose, log_file=_optional(args.log_file))
