"""Console notification adapter.

Prints the plain-text line to standard output so cron mail or a log
collector picks it up. Logging goes to stderr, leaving stdout for these lines.
"""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from core.models import NotificationPayload


class ConsoleNotifier:
    """Notifier adapter that writes notifications to standard output."""

    name = "console"

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    async def send(self, payload: NotificationPayload) -> None:
        """Write the notification text; write errors are not dispatch failures."""

        # Resolve stdout lazily so redirected or captured streams are honored.
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(f"{payload.text}\n")
        stream.flush()
