"""
L0 Data — the artifacts parcel itself needs.

``CORE_REQUIREMENTS`` is parcel; ``DEPENDENCY_REQUIREMENTS`` are its
runtime libraries; ``FEATURES`` lists the optional features, each with
what it needs and whether the host has it switched on.

Versions are minimums. ``"0.0"`` means any version will do.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from parcel.adapters.verify.signature import gpg_available
from parcel.core.services.lifecycle.data.feature_schema import (
    Computed,
    FeatureDescriptor,
    ModuleMap,
    Static,
)

if TYPE_CHECKING:
    from parcel.core.context import OrchestrationContext


CORE_REQUIREMENTS: ModuleMap = {
    "parcel": "0.0",
}

DEPENDENCY_REQUIREMENTS: ModuleMap = {
    "pydantic": "2.0",
    "PyYAML": "6.0",
    "click": "8.0",
    "cryptography": "41.0",
}


# ── Requirement producers ───────────────────────────────────────


def _builder_requirements(ctx: OrchestrationContext) -> ModuleMap:
    if ctx.config.prefer_setuptools:
        return {"setuptools": "61.0"}
    return {"build": "1.0"}


def _dist_type_requirements(ctx: OrchestrationContext) -> ModuleMap | None:
    dist_type = ctx.config.dist_type
    if not dist_type:
        return None
    return {dist_type: "0.0"}


def _signature_requirements(ctx: OrchestrationContext) -> ModuleMap | None:
    # the gpg binary does the job on its own
    if ctx.config.prefer_bin and gpg_available():
        return None
    return {"cryptography": "41.0"}


def _shell_requirements(ctx: OrchestrationContext) -> ModuleMap | None:
    shell = ctx.config.shell
    if not shell:
        return None
    return {shell: "0.0"}


# ── Feature table ───────────────────────────────────────────────

FEATURES: dict[str, FeatureDescriptor] = {
    f.name: f
    for f in (
        FeatureDescriptor(
            name="prefer_setuptools",
            requirements=Computed(_builder_requirements),
            description="Build front-end matching the preferred build system",
        ),
        FeatureDescriptor(
            name="test_reports",
            requirements=Static({"pytest": "7.0"}),
            enabled=lambda ctx: ctx.config.test_reports,
            description="Run test suites and file reports for failed builds",
        ),
        FeatureDescriptor(
            name="dist_type",
            requirements=Computed(_dist_type_requirements),
            enabled=lambda ctx: bool(ctx.config.dist_type),
            description="Alternative distribution builder",
        ),
        FeatureDescriptor(
            name="signature",
            requirements=Computed(_signature_requirements),
            enabled=lambda ctx: ctx.config.signature_required,
            description="Verify distribution signatures",
        ),
        FeatureDescriptor(
            name="shell",
            requirements=Computed(_shell_requirements),
            description="Interactive shell frontend",
        ),
    )
}
