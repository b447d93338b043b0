"""
L4 Execution — removing an installed artifact from the host.

Files go first, then directories deepest-first. A failed removal is
logged and counted but never stops the rest; the uninstall succeeds only
when nothing failed.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from parcel.core.errors import ErrorKind
from parcel.core.models.artifact import Artifact
from parcel.core.models.result import StageResult
from parcel.core.services.lifecycle.data.constants import UNINSTALL_SCOPES

if TYPE_CHECKING:
    from parcel.core.context import OrchestrationContext

logger = logging.getLogger(__name__)


def _remove_file(path: str) -> None:
    os.remove(path)


def _remove_dir(path: str) -> None:
    # only succeeds on empty directories
    os.rmdir(path)


def uninstall(ctx: OrchestrationContext, artifact: Artifact, scope: str = "all") -> StageResult:
    """Remove every file and directory the installed index attributes to *artifact*."""
    if scope not in UNINSTALL_SCOPES:
        msg = f"Unknown uninstall scope '{scope}'. Valid: {', '.join(UNINSTALL_SCOPES)}"
        logger.error(msg)
        return StageResult.failure(artifact.name, "uninstall", ErrorKind.PRECONDITION_FAILED, msg)

    installed = ctx.index.installed_version(artifact.name)
    if installed is None:
        msg = f"'{artifact.name}' is not installed"
        logger.error(msg)
        return StageResult.failure(artifact.name, "uninstall", ErrorKind.NOT_INSTALLED, msg)

    files = ctx.index.files_of(artifact.name, scope)
    directories = sorted(
        ctx.index.directories_of(artifact.name, scope),
        key=lambda d: len(Path(d).parts),
        reverse=True,
    )

    failures: list[str] = []
    for path in files:
        logger.debug("Unlinking '%s'", path)
        try:
            _remove_file(path)
        except OSError as e:
            logger.error("Could not remove file '%s': %s", path, e)
            failures.append(path)

    for path in directories:
        logger.debug("Removing directory '%s'", path)
        try:
            _remove_dir(path)
        except OSError as e:
            logger.error("Could not remove directory '%s': %s", path, e)
            failures.append(path)

    metadata = {
        "scope": scope,
        "version": str(installed),
        "files": len(files),
        "directories": len(directories),
        "failures": failures,
    }
    if failures:
        artifact.status.uninstalled = False
        msg = f"Uninstalling '{artifact.name}' left {len(failures)} path(s) behind"
        logger.error(msg)
        return StageResult.failure(
            artifact.name, "uninstall", ErrorKind.INSTALL_FAILED, msg, metadata=metadata,
        )

    artifact.status.uninstalled = True
    artifact.status.installed = False
    logger.info("Uninstalled '%s' %s (%s)", artifact.name, installed, scope)
    return StageResult.success(
        artifact.name, "uninstall",
        f"Removed {len(files)} files and {len(directories)} directories",
        metadata=metadata,
    )
