"""Debug logging with an in-memory ring buffer and file export.

Captures Python logging records into a bounded buffer so a long auto-mode
run can be inspected or exported after the fact.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from automaker.core.limits import MAX_LOG_MESSAGE_LENGTH


@dataclass(slots=True)
class LogEntry:
    """A captured log entry."""

    group: str  # Level name (DEBUG, INFO, WARNING, ERROR, etc.)
    message: str
    timestamp: float


MAX_LOG_LINES = 2000
log_buffer: deque[LogEntry] = deque(maxlen=MAX_LOG_LINES)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class DebugLogHandler(logging.Handler):
    """Logging handler that captures logs to the debug buffer."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            if len(msg) > MAX_LOG_MESSAGE_LENGTH:
                msg = msg[:MAX_LOG_MESSAGE_LENGTH] + "... [truncated]"
            log_buffer.append(
                LogEntry(
                    group=record.levelname,
                    message=msg,
                    timestamp=record.created,
                )
            )
        except Exception:
            self.handleError(record)


_logging_initialized: bool = False


def setup_logging(*, verbose: bool = False) -> None:
    """Attach the buffer handler and a stderr handler to the package logger.

    This is idempotent - calling it multiple times only adjusts the level.
    """
    global _logging_initialized

    package_logger = logging.getLogger("automaker")
    package_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if _logging_initialized:
        return

    buffer_handler = DebugLogHandler()
    buffer_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    package_logger.addHandler(buffer_handler)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    stream_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.addHandler(stream_handler)

    _logging_initialized = True
    package_logger.debug("Debug logging initialized")


def export_logs_to_file(file_path: str | Path) -> int:
    """Export all logs from the buffer to a file.

    Returns:
        Number of log entries written
    """
    output_path = Path(file_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    entries = list(log_buffer)
    with output_path.open("w", encoding="utf-8") as f:
        f.write("# Automaker Debug Log Export\n")
        f.write(f"# Total entries: {len(entries)}\n")
        f.write("# " + "=" * 76 + "\n\n")
        for entry in entries:
            ts = datetime.fromtimestamp(entry.timestamp).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
            f.write(f"{ts} [{entry.group}] {entry.message}\n")

    return len(entries)
