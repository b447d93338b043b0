"""
L5 Orchestration — the lifecycle of one artifact.

``LifecycleOrchestrator.install`` ties the stages together:

    core policy → up-to-date check → fetch → extract → [bundle members]
    → classify → signature → build (prepare/create) → install

Every stage whose cached result is present is skipped; ``force`` re-runs
them all. Nothing here raises for a failed artifact: the caller gets a
``StageResult`` whose ``children`` are the individual stage results.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Any

from parcel.core.errors import ErrorKind, LifecycleError
from parcel.core.models.artifact import Artifact
from parcel.core.models.result import StageResult
from parcel.core.models.status import BuildTarget
from parcel.core.models.version import VersionSpec
from parcel.core.observability.log_trail import LogTrail, capture_trail
from parcel.core.services.lifecycle.domain.core_policy import protected_reason
from parcel.core.services.lifecycle.execution import removal, stages
from parcel.core.services.lifecycle.orchestration.bundle import BundleExpander

if TYPE_CHECKING:
    from parcel.core.context import OrchestrationContext

logger = logging.getLogger(__name__)


class LifecycleOrchestrator:
    """Drives artifacts through the pipeline for one context."""

    def __init__(self, ctx: OrchestrationContext):
        self.ctx = ctx
        self.bundles = BundleExpander(ctx)

    def _force(self, force: bool | None) -> bool:
        return self.ctx.config.force if force is None else force

    # ── Single stages ───────────────────────────────────────────

    def fetch(
        self,
        artifact: Artifact,
        *,
        force: bool | None = None,
        fetch_from: str | Path | None = None,
    ) -> StageResult:
        return stages.fetch(self.ctx, artifact, force=self._force(force), fetch_from=fetch_from)

    def extract(self, artifact: Artifact, *, force: bool | None = None) -> StageResult:
        return stages.extract(self.ctx, artifact, force=self._force(force))

    def classify(self, artifact: Artifact, *, force: bool | None = None) -> StageResult:
        return stages.classify(self.ctx, artifact, force=self._force(force))

    def verify_signature(self, artifact: Artifact, *, force: bool | None = None) -> StageResult:
        return stages.verify_signature(self.ctx, artifact, force=self._force(force))

    def build(
        self,
        artifact: Artifact,
        target: BuildTarget | str = BuildTarget.CREATE,
        *,
        force: bool | None = None,
        format: str = "",
        args: dict[str, Any] | None = None,
    ) -> StageResult:
        return stages.build(
            self.ctx, artifact, target, force=self._force(force), format=format, args=args,
        )

    def readme(self, artifact: Artifact, *, force: bool = False) -> StageResult:
        return stages.readme(self.ctx, artifact, force=force)

    def uninstall(self, artifact: Artifact, scope: str = "all") -> StageResult:
        return removal.uninstall(self.ctx, artifact, scope)

    # ── Install ─────────────────────────────────────────────────

    def install(
        self,
        artifact: Artifact,
        *,
        target: BuildTarget | str = BuildTarget.INSTALL,
        force: bool | None = None,
        skip_test: bool | None = None,
        format: str = "",
        args: dict[str, Any] | None = None,
        required: VersionSpec | str | None = None,
        fetch_from: str | Path | None = None,
    ) -> StageResult:
        """Drive *artifact* up to *target*.

        Args:
            artifact: Catalog artifact to install.
            target: ``prepare``, ``create`` or ``install``.
            force: Re-run every stage. Defaults to the host config.
            skip_test: Skip the test suite during create.
            format: Builder backend to use instead of the classified one.
            args: Extra arguments handed to the builder backend.
            required: Minimum acceptable version; defaults to the
                artifact's declared version.
            fetch_from: Local file or directory to fetch the archive from.

        Returns:
            A ``StageResult`` for stage ``install``. Refusals by policy
            (runtime core artifact, already up to date) are ``skipped``.
        """
        try:
            target = BuildTarget(target)
        except ValueError:
            return StageResult.failure(
                artifact.name, "install", ErrorKind.PRECONDITION_FAILED,
                f"Unknown install target '{target}'",
            )
        force = self._force(force)
        skip_test = self.ctx.config.skip_test if skip_test is None else skip_test
        required = artifact.version_spec if required is None else VersionSpec.parse(required)

        if artifact.is_bundle and not self.ctx.enter_bundle(artifact.name):
            msg = f"Bundle '{artifact.name}' is already being installed; skipping"
            logger.warning(msg)
            return StageResult.skip(artifact.name, "install", msg, warnings=[msg])

        try:
            with capture_trail() as trail:
                return self._install(
                    artifact,
                    target=target,
                    force=force,
                    format=format,
                    args={"skip_test": skip_test, **(args or {})},
                    required=required,
                    fetch_from=fetch_from,
                    trail=trail,
                )
        finally:
            if artifact.is_bundle:
                self.ctx.leave_bundle(artifact.name)

    def _install(
        self,
        artifact: Artifact,
        *,
        target: BuildTarget,
        force: bool,
        format: str,
        args: dict[str, Any],
        required: VersionSpec,
        fetch_from: str | Path | None,
        trail: LogTrail,
    ) -> StageResult:
        status = artifact.status
        installed = self.ctx.index.installed_version(artifact.name)

        # ── Runtime core artifacts: upgrade only, force or not ──
        reason = protected_reason(artifact.name, required, installed, self.ctx.config.core_artifacts)
        if reason:
            logger.warning(reason)
            return StageResult.skip(
                artifact.name, "install", reason,
                error_kind=ErrorKind.PROTECTED_ARTIFACT,
                metadata={"protected": True},
            )

        if target is BuildTarget.INSTALL and not force:
            if status.installed:
                return StageResult.skip(artifact.name, "install", f"'{artifact.name}' is already installed")
            if installed is not None and installed >= required:
                msg = f"'{artifact.name}' {installed} is already up to date; won't install without force"
                logger.info(msg)
                return StageResult.skip(artifact.name, "install", msg)

        if force:
            status.forced = True

        results: list[StageResult] = []

        def failed(result: StageResult) -> StageResult:
            return StageResult.failure(
                artifact.name, "install",
                result.error_kind or ErrorKind.INSTALL_FAILED,
                result.error or f"{result.stage} failed",
                output=result.output,
                children=results,
                warnings=[w for r in results for w in r.warnings],
            )

        steps = (
            lambda: stages.fetch(self.ctx, artifact, force=force, fetch_from=fetch_from),
            lambda: stages.extract(self.ctx, artifact, force=force),
        )
        for step in steps:
            result = step()
            results.append(result)
            if result.failed:
                return failed(result)

        if artifact.is_bundle:
            result = self._install_members(artifact, force=force, skip_test=args["skip_test"])
            results.append(result)
            if result.failed:
                return failed(result)

        steps = (
            lambda: stages.classify(self.ctx, artifact, force=force),
            lambda: stages.verify_signature(self.ctx, artifact, force=force, trail=trail),
            lambda: stages.build(
                self.ctx, artifact,
                BuildTarget.PREPARE if target is BuildTarget.PREPARE else BuildTarget.CREATE,
                force=force, format=format, args=args, trail=trail,
            ),
        )
        for step in steps:
            result = step()
            results.append(result)
            if result.failed:
                return failed(result)

        if target is BuildTarget.INSTALL:
            result = stages.install_built(self.ctx, artifact, force=force, args=args)
            results.append(result)
            if result.failed:
                return failed(result)

        warnings = [w for r in results for w in r.warnings]
        if all(r.skipped for r in results):
            return StageResult.skip(
                artifact.name, "install", f"Nothing to do for '{artifact.name}'",
                children=results, warnings=warnings,
            )
        return StageResult.success(
            artifact.name, "install", f"{target} of '{artifact.name}' complete",
            children=results, warnings=warnings,
        )

    def _install_members(self, bundle: Artifact, *, force: bool, skip_test: bool) -> StageResult:
        """Install every member of *bundle*; all must succeed."""
        try:
            expansion = self.bundles.expand(bundle)
        except LifecycleError as e:
            logger.error(str(e))
            return StageResult.failure(bundle.name, "bundle", e.kind, str(e))

        warnings = list(expansion.warnings)
        if not expansion.artifacts:
            msg = f"Bundle '{bundle.name}' does not list any artifacts to install"
            logger.warning(msg)
            warnings.append(msg)
            return StageResult.success(bundle.name, "bundle", msg, warnings=warnings)

        def install_member(member: Artifact) -> StageResult:
            return self.install(
                member,
                force=force,
                skip_test=skip_test,
                required=expansion.prereqs.get(member.name),
            )

        workers = min(self.ctx.config.bundle_workers, len(expansion.artifacts))
        if workers > 1:
            # leaving the with-block waits for every member
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="bundle") as pool:
                children = list(pool.map(install_member, expansion.artifacts))
        else:
            children = [install_member(member) for member in expansion.artifacts]

        failures = [c for c in children if c.failed]
        if failures:
            msg = (
                f"{len(failures)} of {len(children)} artifact(s) in bundle "
                f"'{bundle.name}' failed: {', '.join(c.artifact for c in failures)}"
            )
            logger.error(msg)
            return StageResult.failure(
                bundle.name, "bundle", ErrorKind.INSTALL_FAILED, msg,
                children=children, warnings=warnings,
            )
        return StageResult.success(
            bundle.name, "bundle", f"Installed {len(children)} bundled artifact(s)",
            children=children, warnings=warnings,
        )

    # ── Convenience targets ─────────────────────────────────────

    def prepare(self, artifact: Artifact, **kwargs: Any) -> StageResult:
        return self.install(artifact, target=BuildTarget.PREPARE, **kwargs)

    def create(self, artifact: Artifact, **kwargs: Any) -> StageResult:
        return self.install(artifact, target=BuildTarget.CREATE, **kwargs)

    def test(self, artifact: Artifact, **kwargs: Any) -> StageResult:
        """Create the artifact with its test suite enabled."""
        kwargs["skip_test"] = False
        return self.install(artifact, target=BuildTarget.CREATE, **kwargs)

    # ── Queries ─────────────────────────────────────────────────

    def installed_version(self, artifact: Artifact) -> VersionSpec | None:
        return self.ctx.index.installed_version(artifact.name)

    def is_uptodate(self, artifact: Artifact, version: VersionSpec | str | None = None) -> bool:
        """Installed and at least *version* (default: the declared version)."""
        installed = self.installed_version(artifact)
        if installed is None:
            return False
        wanted = artifact.version_spec if version is None else VersionSpec.parse(version)
        return installed >= wanted

    def details(self, artifact: Artifact) -> dict[str, str]:
        author = artifact.author
        info = {
            "Author": f"{author.name or author.id} ({author.email})" if author else "Unknown",
            "Package": artifact.package,
            "Description": artifact.description or "None given",
            "Version on mirror": artifact.version,
        }
        installed = self.installed_version(artifact)
        if installed is not None:
            info["Version installed"] = str(installed)
        return info

    def contains(self, artifact: Artifact) -> list[Artifact]:
        """Every artifact shipped in the same package."""
        return self.ctx.catalog.search_package(artifact.package)

    def distributions(self, artifact: Artifact) -> list[Artifact]:
        """Other releases of the same distribution by the same author."""
        if artifact.author is None:
            return []
        return [
            a for a in self.ctx.catalog.by_author(artifact.author.id)
            if a.package_name == artifact.package_name
        ]

    def files(self, artifact: Artifact, scope: str = "all") -> list[str]:
        return self.ctx.index.files_of(artifact.name, scope)

    def directory_tree(self, artifact: Artifact, scope: str = "all") -> list[str]:
        return self.ctx.index.directories_of(artifact.name, scope)

    def validate(self, artifact: Artifact) -> list[str]:
        """Installed files that have gone missing from disk."""
        return [f for f in self.files(artifact) if not Path(f).exists()]
