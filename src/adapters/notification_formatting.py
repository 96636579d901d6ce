"""Shared notification formatting helpers.

Keeping formatting here prevents drift between sinks: the console prints the
plain text line while the webhook sends the same text alongside Slack Block
Kit blocks built from the same merge request.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence
from urllib.parse import urlparse

from core.models import MergeRequestSummary, NotificationPayload

# Slack rejects messages with more than 50 blocks.
MAX_DIGEST_ITEMS = 45


def escape_mrkdwn(value: str) -> str:
    """Escape the characters Slack treats as control sequences in mrkdwn."""

    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def safe_link(url: str) -> Optional[str]:
    """Return the URL when it is an absolute http(s) link, otherwise None."""

    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    # "|" and ">" terminate a Slack link; such URLs cannot be linked safely.
    if any(ch in url for ch in "|<> "):
        return None
    return url


def awaiting_phrase(target_branch: Optional[str], plural: bool = False) -> str:
    verb = "are" if plural else "is"
    if target_branch is None:
        return f"{verb} awaiting merge."
    return f"{verb} awaiting merge to target branch: {target_branch}."


def format_text(mr: MergeRequestSummary, target_branch: Optional[str] = None) -> str:
    """Return the plain one-line notification used by the console."""

    return f'MR #{mr.id} "{mr.title}" {awaiting_phrase(target_branch)}'


def _mr_label(mr: MergeRequestSummary, link: Optional[str]) -> str:
    label = escape_mrkdwn(f"MR #{mr.id} (!{mr.iid}): {mr.title}")
    if link is None:
        return f"*{label}*"
    return f"*<{link}|{label}>*"


def _section(text: str) -> dict[str, Any]:
    return {"type": "section", "text": {"type": "mrkdwn", "text": text}}


def render(mr: MergeRequestSummary, target_branch: Optional[str] = None) -> NotificationPayload:
    """Render one merge request into a notification payload.

    A web_url that cannot be linked only drops the hyperlink; rendering itself
    never fails for a well-formed summary.
    """

    link = safe_link(mr.web_url)
    text = format_text(mr, target_branch)
    blocks = [_section(f"{_mr_label(mr, link)}\n{escape_mrkdwn(awaiting_phrase(target_branch))}")]
    return NotificationPayload(
        text=text,
        title=mr.title,
        link=link,
        blocks=blocks,
        mr_ids=(mr.id,),
    )


def render_digest(mrs: Sequence[MergeRequestSummary], target_branch: Optional[str] = None) -> NotificationPayload:
    """Render all qualifying merge requests into a single aggregated payload."""

    count = len(mrs)
    noun = "MR" if count == 1 else "MRs"
    headline = f"{count} {noun} {awaiting_phrase(target_branch, plural=count != 1)}"

    lines = [headline]
    lines.extend(f'- MR #{mr.id} "{mr.title}"' for mr in mrs)

    blocks = [_section(f"*{escape_mrkdwn(headline)}*")]
    for mr in mrs[:MAX_DIGEST_ITEMS]:
        blocks.append(_section(_mr_label(mr, safe_link(mr.web_url))))
    remaining = count - MAX_DIGEST_ITEMS
    if remaining > 0:
        blocks.append({"type": "context", "elements": [{"type": "mrkdwn", "text": f"...and {remaining} more"}]})

    return NotificationPayload(
        text="\n".join(lines),
        title=headline,
        link=None,
        blocks=blocks,
        mr_ids=tuple(mr.id for mr in mrs),
    )


class SlackMessageRenderer:
    """Renderer used by the pipeline; stateless wrapper around the helpers."""

    def render(self, mr: MergeRequestSummary, target_branch: Optional[str] = None) -> NotificationPayload:
        return render(mr, target_branch)

    def render_digest(
        self, mrs: Sequence[MergeRequestSummary], target_branch: Optional[str] = None
    ) -> NotificationPayload:
        return render_digest(mrs, target_branch)
