"""
Audit ledger — append-only record of lifecycle operations.

Every install, uninstall and self-update run appends one entry to an
NDJSON (newline-delimited JSON) file. Failure reports submitted by the
test-report sink use the same format in a separate file.

Entries are never modified or deleted.
"""

from __future__ import annotations

import json
import logging
import threading
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_FILE = "audit.ndjson"


def new_operation_id() -> str:
    """Short unique id for one CLI-level operation."""
    return uuid.uuid4().hex[:12]


class AuditEntry(BaseModel):
    """A single ledger entry."""

    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    operation_id: str = Field(default_factory=new_operation_id)
    operation_type: str = ""       # install, uninstall, selfupdate, report

    # What was touched
    artifacts: list[str] = Field(default_factory=list)

    # Results
    status: str = ""               # ok, skipped, partial, failed
    total: int = 0
    succeeded: int = 0
    failed: int = 0

    errors: list[str] = Field(default_factory=list)

    # Extensible context
    context: dict[str, Any] = Field(default_factory=dict)


class AuditWriter:
    """Append-only ledger writer.

    Each ``write()`` appends one JSON line. The file and its directory are
    created on first write. Writes from several threads are serialised.
    """

    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def write(self, entry: AuditEntry) -> None:
        """Append *entry* to the ledger. I/O errors are logged, not raised."""
        line = json.dumps(entry.model_dump(mode="json"), ensure_ascii=False) + "\n"

        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("a", encoding="utf-8") as f:
                    f.write(line)
                logger.debug("Ledger entry written: %s/%s", entry.operation_type, entry.operation_id)
            except OSError as e:
                logger.error("Failed to write ledger entry to %s: %s", self._path, e)

    def read_all(self) -> list[AuditEntry]:
        """Read all entries, oldest first. Corrupt lines are skipped."""
        if not self._path.is_file():
            return []

        entries = []
        try:
            with self._path.open("r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, start=1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(AuditEntry.model_validate(json.loads(line)))
                    except ValueError as e:
                        logger.warning("Skipping corrupt ledger entry at line %d: %s", line_num, e)
        except OSError as e:
            logger.error("Failed to read ledger %s: %s", self._path, e)

        return entries

    def read_recent(self, n: int = 20) -> list[AuditEntry]:
        """The most recent *n* entries."""
        return self.read_all()[-n:]
