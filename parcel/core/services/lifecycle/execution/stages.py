"""
L4 Execution — pipeline stages for one artifact.

Each stage takes ``(ctx, artifact, ...)``, does its work through the
context's collaborators, records what it did on ``artifact.status`` and
returns a ``StageResult``. Stages never raise: collaborator errors become
failed results.

A stage whose cached result is already present returns ``skipped``
unless ``force`` is set.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from parcel.core.errors import ErrorKind, LifecycleError
from parcel.core.models.artifact import Artifact
from parcel.core.models.result import StageResult
from parcel.core.models.status import (
    BuildTarget,
    Distribution,
    InstallerKind,
    Verification,
)
from parcel.core.observability.log_trail import LogTrail
from parcel.core.services.lifecycle.data.constants import (
    CHECKSUMS_PACKAGE,
    PEP517_DESCRIPTOR,
    README_SUFFIX,
    SETUPTOOLS_DESCRIPTOR,
)
from parcel.core.services.lifecycle.domain.classification import choose_installer

if TYPE_CHECKING:
    from parcel.core.context import OrchestrationContext

logger = logging.getLogger(__name__)


def _precondition(artifact: Artifact, stage: str, missing: str) -> StageResult:
    msg = f"Cannot {stage} '{artifact.name}': {missing}"
    logger.error(msg)
    return StageResult.failure(artifact.name, stage, ErrorKind.PRECONDITION_FAILED, msg)


def submit_report(
    ctx: OrchestrationContext,
    artifact: Artifact,
    *,
    failed: bool,
    trail: LogTrail | None,
    stage: str,
) -> bool:
    """Hand a report to the sink. Sink errors are logged, never raised."""
    if ctx.reports is None:
        return False
    try:
        return ctx.reports.submit(
            artifact,
            failed=failed,
            log_trail=trail.as_text() if trail is not None else "",
            options={"stage": stage, "force": ctx.config.force},
        )
    except Exception as e:
        logger.warning("Failed to send report for '%s': %s", artifact.name, e)
        return False


# ── Fetch ───────────────────────────────────────────────────────


def _checksum_applies(ctx: OrchestrationContext, artifact: Artifact) -> bool:
    return (
        ctx.checksums is not None
        and ctx.config.checksum_required
        and artifact.status.fetch_from is None
        and artifact.package != CHECKSUMS_PACKAGE
    )


def fetch(
    ctx: OrchestrationContext,
    artifact: Artifact,
    *,
    force: bool = False,
    fetch_from: str | Path | None = None,
) -> StageResult:
    """Fetch the archive and, where configured, check its digest."""
    status = artifact.status
    if fetch_from is not None:
        status.fetch_from = Path(fetch_from)

    if status.fetched_path and not force:
        return StageResult.skip(artifact.name, "fetch", f"Already fetched: {status.fetched_path}")

    try:
        path = ctx.fetcher.fetch(
            artifact,
            fetch_dir=ctx.fetch_dir,
            fetch_from=status.fetch_from,
            force=force,
        )
    except LifecycleError as e:
        logger.error("Fetching '%s' failed: %s", artifact.name, e)
        return StageResult.failure(artifact.name, "fetch", e.kind, str(e))
    except OSError as e:
        logger.error("Fetching '%s' failed: %s", artifact.name, e)
        return StageResult.failure(artifact.name, "fetch", ErrorKind.FETCH_ERROR, str(e))

    status.fetched_path = path

    if not _checksum_applies(ctx, artifact):
        status.checksum = Verification.SKIPPED
        return StageResult.success(artifact.name, "fetch", f"Fetched {path}")

    try:
        digest = ctx.checksums.verify(path, artifact)
    except (LifecycleError, OSError) as e:
        logger.error("Checksum check for '%s' raised: %s", artifact.package, e)
        digest = None

    if digest is None:
        # never extract an archive that failed its digest
        status.fetched_path = None
        status.checksum = Verification.FAILED
        msg = f"Checksum mismatch for '{artifact.package}'; not trusting this archive"
        logger.error(msg)
        return StageResult.failure(artifact.name, "fetch", ErrorKind.CHECKSUM_MISMATCH, msg)

    status.checksum = Verification.OK
    status.checksum_value = digest
    return StageResult.success(artifact.name, "fetch", f"Fetched {path} (checksum ok)")


# ── Extract ─────────────────────────────────────────────────────


def extract(ctx: OrchestrationContext, artifact: Artifact, *, force: bool = False) -> StageResult:
    status = artifact.status
    if not status.fetched_path:
        return _precondition(artifact, "extract", "it has not been fetched")
    if status.extracted_path and not force:
        return StageResult.skip(artifact.name, "extract", f"Already extracted: {status.extracted_path}")

    try:
        path = ctx.extractor.extract(status.fetched_path, extract_dir=ctx.extract_dir, force=force)
    except LifecycleError as e:
        logger.error("Extracting '%s' failed: %s", artifact.name, e)
        return StageResult.failure(artifact.name, "extract", e.kind, str(e))
    except OSError as e:
        logger.error("Extracting '%s' failed: %s", artifact.name, e)
        return StageResult.failure(artifact.name, "extract", ErrorKind.EXTRACT_ERROR, str(e))

    status.extracted_path = path
    return StageResult.success(artifact.name, "extract", f"Extracted to {path}")


# ── Classify ────────────────────────────────────────────────────


def classify(ctx: OrchestrationContext, artifact: Artifact, *, force: bool = False) -> StageResult:
    """Decide which builder handles the extracted distribution."""
    status = artifact.status
    if not status.extracted_path:
        return _precondition(artifact, "classify", "it has not been extracted")
    if status.installer_kind is not InstallerKind.NONE and not force:
        return StageResult.skip(artifact.name, "classify", str(status.installer_kind))

    directory = Path(status.extracted_path)
    kind, warning = choose_installer(
        prefer_setuptools=ctx.config.prefer_setuptools,
        has_setuptools=(directory / SETUPTOOLS_DESCRIPTOR).is_file(),
        has_pep517=(directory / PEP517_DESCRIPTOR).is_file(),
        pep517_available=ctx.builders.is_available(InstallerKind.PEP517),
    )
    status.installer_kind = kind

    warnings = []
    if warning:
        logger.warning("'%s': %s", artifact.name, warning)
        warnings.append(f"{ErrorKind.CLASSIFICATION_AMBIGUOUS}: {warning}")
    return StageResult.success(artifact.name, "classify", str(kind), warnings=warnings)


# ── Signature ───────────────────────────────────────────────────


def verify_signature(
    ctx: OrchestrationContext,
    artifact: Artifact,
    *,
    force: bool = False,
    trail: LogTrail | None = None,
) -> StageResult:
    """Check the distribution's signature when the host requires it."""
    status = artifact.status
    if not status.extracted_path:
        return _precondition(artifact, "verify", "it has not been extracted")
    if not ctx.config.signature_required:
        status.signature = Verification.SKIPPED
        return StageResult.skip(artifact.name, "signature", "Signature checks disabled")
    if status.signature is Verification.OK and not force:
        return StageResult.skip(artifact.name, "signature", "Signature already verified")

    verified = False
    if ctx.signatures is None:
        logger.error("Signatures are required but no signature verifier is configured")
    else:
        try:
            verified = ctx.signatures.verify(Path(status.extracted_path))
        except (LifecycleError, OSError) as e:
            logger.error("Signature check for '%s' raised: %s", artifact.name, e)

    if verified:
        status.signature = Verification.OK
        return StageResult.success(artifact.name, "signature", "Signature OK")

    status.signature = Verification.FAILED
    msg = f"Signature check failed for '{artifact.name}'; not trusting this distribution"
    logger.error(msg)
    submit_report(ctx, artifact, failed=True, trail=trail, stage="signature")
    return StageResult.failure(artifact.name, "signature", ErrorKind.UNTRUSTED_ARTIFACT, msg)


# ── Build ───────────────────────────────────────────────────────


def _distribution(artifact: Artifact, kind: str, force: bool) -> Distribution:
    status = artifact.status
    dist = status.dist
    if dist is None or dist.kind != kind or dist.directory != Path(status.extracted_path):
        dist = Distribution(artifact=artifact.name, kind=kind, directory=Path(status.extracted_path))
    if force:
        dist.prepared = dist.created = dist.installed = False
    status.dist = dist
    return dist


def _run_phase(phase: str, call: Any, dist: Distribution, args: dict[str, Any]) -> bool:
    try:
        return bool(call(dist, args))
    except (LifecycleError, OSError) as e:
        logger.error("%s of '%s' raised: %s", phase, dist.artifact, e)
        return False


def build(
    ctx: OrchestrationContext,
    artifact: Artifact,
    target: BuildTarget | str = BuildTarget.CREATE,
    *,
    force: bool = False,
    format: str = "",
    args: dict[str, Any] | None = None,
    trail: LogTrail | None = None,
) -> StageResult:
    """Prepare and, for ``target=create``, build the distribution.

    The backend is *format*, else the host's ``dist_type``, else the
    classified kind. The distribution handle is returned in
    ``result.metadata["dist"]``.
    """
    status = artifact.status
    if status.installer_kind is InstallerKind.NONE:
        return _precondition(artifact, "build", "its build system has not been classified")

    try:
        target = BuildTarget(target)
    except ValueError:
        return _precondition(artifact, "build", f"unknown target '{target}'")
    if target is BuildTarget.INSTALL:
        return _precondition(artifact, "build", "install is not a build target")

    kind = format or ctx.config.dist_type or str(status.installer_kind)
    backend = ctx.builders.get(kind)
    if backend is None:
        msg = f"No builder registered for '{kind}'"
        logger.error(msg)
        return StageResult.failure(artifact.name, "build", ErrorKind.BUILD_FAILED, msg)

    dist = _distribution(artifact, kind, force)
    args = {"skip_test": ctx.config.skip_test, **(args or {})}
    done: list[str] = []

    if force or not status.prepared:
        if not _run_phase("prepare", backend.prepare, dist, args):
            msg = f"Preparing '{artifact.name}' with {kind} failed"
            logger.error(msg)
            return StageResult.failure(
                artifact.name, "build", ErrorKind.BUILD_FAILED, msg, metadata={"dist": dist},
            )
        status.prepared = dist.prepared = True
        done.append("prepared")

    if target is BuildTarget.CREATE and (force or not status.created):
        if not _run_phase("create", backend.create, dist, args):
            msg = f"Building '{artifact.name}' with {kind} failed"
            logger.error(msg)
            if ctx.config.test_reports:
                submit_report(ctx, artifact, failed=True, trail=trail, stage="create")
            return StageResult.failure(
                artifact.name, "build", ErrorKind.BUILD_FAILED, msg,
                output=dist.output, metadata={"dist": dist},
            )
        status.created = dist.created = True
        done.append("created")

    if not done:
        return StageResult.skip(artifact.name, "build", f"Already {target}d", metadata={"dist": dist})
    return StageResult.success(
        artifact.name, "build", f"{' and '.join(done).capitalize()} with {kind}",
        metadata={"dist": dist},
    )


def install_built(
    ctx: OrchestrationContext,
    artifact: Artifact,
    *,
    force: bool = False,
    args: dict[str, Any] | None = None,
) -> StageResult:
    """Install a created distribution into the host."""
    status = artifact.status
    if not status.created or status.dist is None:
        return _precondition(artifact, "install", "it has not been built")
    if status.installed and not force:
        return StageResult.skip(artifact.name, "install", "Already installed")

    dist = status.dist
    backend = ctx.builders.get(dist.kind)
    if backend is None:
        msg = f"No builder registered for '{dist.kind}'"
        logger.error(msg)
        return StageResult.failure(artifact.name, "install", ErrorKind.INSTALL_FAILED, msg)

    if not _run_phase("install", backend.install_built, dist, dict(args or {})):
        status.installed = False
        msg = f"Installing '{artifact.name}' failed"
        logger.error(msg)
        return StageResult.failure(
            artifact.name, "install", ErrorKind.INSTALL_FAILED, msg, output=dist.output,
        )

    status.installed = dist.installed = True
    status.uninstalled = False
    logger.info("Installed '%s' (%s)", artifact.name, artifact.version)
    return StageResult.success(artifact.name, "install", f"Installed {artifact.name}")


# ── Readme ──────────────────────────────────────────────────────


def readme(ctx: OrchestrationContext, artifact: Artifact, *, force: bool = False) -> StageResult:
    """Fetch the ``.readme`` published next to the archive."""
    status = artifact.status
    if status.readme is not None and not force:
        return StageResult.skip(artifact.name, "readme", status.readme)
    if not artifact.package_name:
        return _precondition(artifact, "read", f"'{artifact.package}' is not an archive name")

    side = artifact.clone(
        package=f"{artifact.package_name}-{artifact.package_version}{README_SUFFIX}",
    )
    try:
        path = ctx.fetcher.fetch(side, fetch_dir=ctx.fetch_dir, force=force)
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except LifecycleError as e:
        logger.error("No readme for '%s': %s", artifact.name, e)
        return StageResult.failure(artifact.name, "readme", ErrorKind.FETCH_ERROR, str(e))
    except OSError as e:
        logger.error("Cannot read readme for '%s': %s", artifact.name, e)
        return StageResult.failure(artifact.name, "readme", ErrorKind.FETCH_ERROR, str(e))

    status.readme = text
    return StageResult.success(artifact.name, "readme", text)
