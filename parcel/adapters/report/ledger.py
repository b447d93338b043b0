"""
Ledger report sink — failure reports appended to an NDJSON file.
"""

from __future__ import annotations

import logging
from typing import Any

from parcel.adapters.base import ReportSink
from parcel.core.models.artifact import Artifact
from parcel.core.persistence.audit import AuditEntry, AuditWriter

logger = logging.getLogger(__name__)


class LedgerReportSink(ReportSink):
    """Writes each report as a ``report`` entry in a ledger."""

    def __init__(self, writer: AuditWriter):
        self._writer = writer

    def submit(
        self,
        artifact: Artifact,
        *,
        failed: bool,
        log_trail: str,
        options: dict[str, Any] | None = None,
    ) -> bool:
        options = options or {}
        entry = AuditEntry(
            operation_type="report",
            artifacts=[artifact.name],
            status="failed" if failed else "ok",
            total=1,
            succeeded=0 if failed else 1,
            failed=1 if failed else 0,
            errors=[line for line in log_trail.splitlines() if line.strip()],
            context={
                "package": artifact.package,
                "version": artifact.version,
                "author": artifact.author.id if artifact.author else "",
                "stage": options.get("stage", ""),
            },
        )
        self._writer.write(entry)
        logger.info("Submitted %s report for '%s'", entry.status, artifact.name)
        return True
