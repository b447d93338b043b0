"""
Log trail — capture the records emitted while one artifact is processed.

The captured text is what a failure report carries: the warnings and
errors logged by the stages leading up to the failure.

A trail only keeps records from the thread that opened it, so bundle
children installed side by side each get their own lines.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from parcel.core.observability.logging_config import hold_level

_TRAIL_FORMAT = "[%(levelname)s] %(message)s"


class LogTrail(logging.Handler):
    """In-memory handler that keeps formatted records in order."""

    def __init__(self, level: int = logging.INFO, thread_id: int | None = None):
        super().__init__(level)
        self.lines: list[str] = []
        self.thread_id = threading.get_ident() if thread_id is None else thread_id
        self.setFormatter(logging.Formatter(_TRAIL_FORMAT))

    def filter(self, record: logging.LogRecord) -> bool:
        if record.thread != self.thread_id:
            return False
        return super().filter(record)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.lines.append(self.format(record))
        except Exception:
            self.handleError(record)

    def as_text(self) -> str:
        return "\n".join(self.lines)


@contextmanager
def capture_trail(logger_name: str = "parcel", level: int = logging.INFO) -> Iterator[LogTrail]:
    """Attach a ``LogTrail`` for the current thread to *logger_name*."""
    trail = LogTrail(level)
    with hold_level(logger_name, level) as target:
        target.addHandler(trail)
        try:
            yield trail
        finally:
            target.removeHandler(trail)
