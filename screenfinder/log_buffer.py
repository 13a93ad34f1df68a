"""Recent screenfinder log records, served by GET /api/logs."""

from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone

PROJECT_LOGGER = "screenfinder"


class BufferHandler(logging.Handler):
    def __init__(self, capacity: int = 200) -> None:
        super().__init__(level=logging.DEBUG)
        self._records: deque[dict[str, str]] = deque(maxlen=capacity)
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            created = datetime.fromtimestamp(record.created, tz=timezone.utc)
            self._records.append(
                {
                    "timestamp": created.strftime("%Y-%m-%d %H:%M:%S UTC"),
                    "level": record.levelname,
                    "logger": record.name,
                    "message": self.format(record),
                }
            )
        except Exception:
            self.handleError(record)

    def entries(self, limit: int = 100) -> list[dict[str, str]]:
        """Newest first."""
        if limit <= 0:
            return []
        return list(reversed(self._records))[:limit]


buffer_handler = BufferHandler()


def install_buffer_handler() -> BufferHandler:
    # screenfinder.sports.* and screenfinder.screenings.* propagate here
    project = logging.getLogger(PROJECT_LOGGER)
    if buffer_handler not in project.handlers:
        project.addHandler(buffer_handler)
    project.setLevel(logging.DEBUG)
    return buffer_handler
