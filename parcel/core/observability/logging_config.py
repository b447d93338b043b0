"""
Logging configuration for the CLI process and for per-install capture.

Every module does ``logger = logging.getLogger(__name__)`` and inherits
what is configured here.

Console level, in precedence order:
    CLI flag  >  PARCEL_LOG_LEVEL env var  >  WARNING (default)

File output is opt-in through PARCEL_LOG_FILE, at PARCEL_LOG_FILE_LEVEL
(or the console level when unset).

While installs run, ``hold_level`` keeps the ``parcel`` logger low enough
for the log trails to see INFO records, whatever the console shows.
Concurrent holders share one saved level; the last one out restores it.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager

ENV_LEVEL = "PARCEL_LOG_LEVEL"
ENV_FILE = "PARCEL_LOG_FILE"
ENV_FILE_LEVEL = "PARCEL_LOG_FILE_LEVEL"

_FMT_CONSOLE = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
}
_FMT_PLAIN = "%(message)s"

_FMT_FILE = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s"
_DATEFMT_FILE = "%Y-%m-%d %H:%M:%S"

# pip and the build backends chatter below WARNING
_NOISY_LOGGERS = ("urllib3", "filelock", "pip", "setuptools", "build")


def cli_level(*, verbose: bool, quiet: bool, debug: bool) -> str:
    """Pick the console level from CLI flags, falling back to the env var."""
    if debug:
        return "DEBUG"
    if verbose:
        return "INFO"
    if quiet:
        return "ERROR"
    return os.environ.get(ENV_LEVEL, "WARNING")


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    quiet_third_party: bool = True,
) -> None:
    """Configure the root logger for the whole process.

    Args:
        level: Console level name.
        log_file: Log file path; ``PARCEL_LOG_FILE`` when not given.
        log_file_level: Level for the file; ``PARCEL_LOG_FILE_LEVEL``,
            then ``level``, when not given.
        quiet_third_party: Keep pip, setuptools and friends at WARNING
            unless running at DEBUG.
    """
    numeric_level = _parse_level(level)
    log_file = log_file or os.environ.get(ENV_FILE)
    log_file_level = log_file_level or os.environ.get(ENV_FILE_LEVEL)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_console_handler(numeric_level))
    lowest = numeric_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else numeric_level
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT_FILE))
        root.addHandler(fh)
        lowest = min(lowest, file_level)

    root.setLevel(lowest)

    if quiet_third_party and numeric_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.raiseExceptions = False


def _console_handler(numeric_level: int) -> logging.Handler:
    fmt, datefmt = _FMT_PLAIN, None
    for threshold in sorted(_FMT_CONSOLE):
        if numeric_level <= threshold:
            fmt, datefmt = _FMT_CONSOLE[threshold]
            break
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(numeric_level)
    console.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    return console


# ── Shared level holds ──────────────────────────────────────────

_holds_lock = threading.Lock()
# logger name -> [holder count, level saved by the first holder]
_holds: dict[str, list[int]] = {}


@contextmanager
def hold_level(logger_name: str, level: int) -> Iterator[logging.Logger]:
    """Keep *logger_name* at *level* or lower until every holder has left.

    The first holder saves the logger's own level; the last one restores
    it. Holders in between only ever lower it.
    """
    target = logging.getLogger(logger_name)
    with _holds_lock:
        hold = _holds.setdefault(logger_name, [0, target.level])
        hold[0] += 1
        if target.getEffectiveLevel() > level:
            target.setLevel(level)
    try:
        yield target
    finally:
        with _holds_lock:
            hold[0] -= 1
            if hold[0] == 0:
                target.setLevel(hold[1])
                del _holds[logger_name]


def _parse_level(level: str | None) -> int:
    """Convert a level name to its numeric constant (WARNING if unknown)."""
    if not level:
        return logging.WARNING
    numeric = getattr(logging, level.upper(), None)
    if not isinstance(numeric, int):
        return logging.WARNING
    return numeric
