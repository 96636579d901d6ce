"""Application entry point for the mr-nag notifier."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional, Sequence

from adapters.console_notifier import ConsoleNotifier
from adapters.gitlab_source import GitLabMergeRequestSource
from adapters.notification_formatting import SlackMessageRenderer
from adapters.slack_webhook_notifier import SlackWebhookNotifier
from client import build_client, gitlab_url
from core.config import NotifierConfig
from core.errors import ConfigurationError, MrNagError
from core.processor import MergeRequestNotifier, RunReport
from settings import Settings, load_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        # Longest first so a secret containing another is fully masked.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _configure_logging(verbose: bool, log_file: Optional[str], secrets: list[str]) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    formatter = _RedactingFormatter(secrets, fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    # stderr only: stdout carries the notifications themselves.
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    if log_file:
        directory = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    if not verbose:
        # urllib3 logs request lines at DEBUG; keep it quiet by default.
        logging.getLogger("urllib3").setLevel(logging.WARNING)


async def run_once(config: NotifierConfig) -> RunReport:
    """Wire adapters from config and run a single notifier pass."""

    source = GitLabMergeRequestSource(build_client(config), host=gitlab_url(config.gitlab_host))

    # Select the sinks up front to keep the core processor independent from
    # delivery details: console always, webhook only when configured.
    webhook: Optional[SlackWebhookNotifier] = None
    notifiers: list = [ConsoleNotifier()]
    if config.webhook_url:
        webhook = SlackWebhookNotifier(config.webhook_url, timeout_secs=config.timeout_secs)
        notifiers.append(webhook)

    processor = MergeRequestNotifier(
        source=source,
        renderer=SlackMessageRenderer(),
        notifiers=notifiers,
        project_id=config.project_id,
        target_branch=config.target_branch,
        policy=config.dwell_policy,
        mode=config.notification_mode,
        abort_on_dispatch_failure=config.abort_on_dispatch_failure,
    )
    try:
        return await processor.run()
    finally:
        if webhook is not None:
            webhook.close()


def _run(settings: Settings) -> int:
    config = settings.notifier
    _configure_logging(settings.verbose, settings.log_file, config.secrets)
    logger = logging.getLogger(__name__)

    logger.info(
        "Checking project %s on %s (target branch: %s, min dwell: %s, webhook: %s)",
        config.project_id,
        gitlab_url(config.gitlab_host),
        config.target_branch or "any",
        f"{config.min_dwell_secs}s" if config.min_dwell_secs is not None else "none",
        "yes" if config.webhook_url else "no",
    )

    try:
        report = asyncio.run(run_once(config))
    except MrNagError as exc:
        logger.error("Run failed: %s", exc)
        return EXIT_FAILURE

    logger.info(
        "Run complete: fetched=%s, qualified=%s, payloads_delivered=%s, failed=%s",
        report.fetched,
        report.qualified,
        report.payloads_delivered,
        len(report.failures),
    )
    return report.exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        settings = load_settings(argv)
    except ConfigurationError as exc:
        print(f"mr-nag: configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG
    return _run(settings)


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
