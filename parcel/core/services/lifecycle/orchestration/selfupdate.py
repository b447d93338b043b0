"""
L5 Orchestration — updating parcel's own requirements.

Resolves an update scope to a work list, drops what is already good
enough (unless the latest releases are wanted) and installs the rest in
resolution order. One failed artifact never stops the others.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from parcel.core.models.result import BatchReport
from parcel.core.persistence.audit import AuditEntry
from parcel.core.services.lifecycle.orchestration.orchestrator import LifecycleOrchestrator
from parcel.core.services.lifecycle.resolver.dependency_sets import (
    DependencySetEntry,
    DependencySetResolver,
    UpdateScope,
)

if TYPE_CHECKING:
    from parcel.core.context import OrchestrationContext

logger = logging.getLogger(__name__)


class SelfUpdateDriver:
    """Top-level entry for ``parcel selfupdate``."""

    def __init__(
        self,
        ctx: OrchestrationContext,
        resolver: DependencySetResolver | None = None,
        orchestrator: LifecycleOrchestrator | None = None,
    ):
        self.ctx = ctx
        self.resolver = resolver or DependencySetResolver(ctx)
        self.orchestrator = orchestrator or LifecycleOrchestrator(ctx)

    def work_list(self, update: UpdateScope | str, latest: bool = False) -> list[DependencySetEntry]:
        """Entries *update* would install, in order.

        Raises:
            UnknownFeatureError: If *update* names no scope or feature.
        """
        entries = self.resolver.resolve(update)
        if latest:
            return entries
        return [e for e in entries if not e.is_installed_version_sufficient(self.ctx.index)]

    def selfupdate(
        self,
        update: UpdateScope | str,
        latest: bool = False,
        force: bool | None = None,
    ) -> BatchReport:
        """Install everything *update* resolves to that needs installing.

        Raises:
            UnknownFeatureError: If *update* names no scope or feature.
        """
        force = self.ctx.config.force if force is None else force
        report = BatchReport(operation=f"selfupdate:{update}")

        entries = self.work_list(update, latest=latest)
        if not entries:
            logger.info("Nothing to update for '%s'", update)

        for entry in entries:
            # the mirror's release is what gets installed
            required = max(entry.version_required, entry.artifact.version_spec)
            result = self.orchestrator.install(entry.artifact, force=force, required=required)
            if result.failed:
                logger.error("Failed to update '%s': %s", entry.name, result.error)
            report.results.append(result)

        self._record(update, report, latest=latest, force=force)
        return report

    def _record(self, update: UpdateScope | str, report: BatchReport, *, latest: bool, force: bool) -> None:
        if self.ctx.ledger is None:
            return
        self.ctx.ledger.write(AuditEntry(
            operation_type="selfupdate",
            artifacts=[r.artifact for r in report.results],
            status=report.status,
            total=report.total,
            succeeded=report.succeeded + report.skipped,
            failed=report.failed,
            errors=[f"{r.artifact}: {r.error}" for r in report.results if r.failed],
            context={
                "scope": str(update),
                "latest": latest,
                "force": force,
                "warnings": list(self.resolver.warnings),
            },
        ))
