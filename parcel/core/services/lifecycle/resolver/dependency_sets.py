"""
L2 Resolver — which artifacts parcel itself needs.

Maps an update scope (``core``, ``dependencies``, ``enabled_features``,
``features``, ``all``, or a single feature name) to a list of
``DependencySetEntry`` values: a catalog artifact plus the minimum version
this resolution requires of it. The entry wraps the artifact; the catalog
artifact itself is never modified, so the same artifact can carry
different requirements in different resolutions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from parcel.adapters.base import InstalledIndex
from parcel.core.errors import UnknownFeatureError
from parcel.core.models.artifact import Artifact
from parcel.core.models.version import VersionSpec
from parcel.core.services.lifecycle.data.feature_schema import (
    Computed,
    FeatureDescriptor,
    ModuleMap,
    Static,
)
from parcel.core.services.lifecycle.data.features import (
    CORE_REQUIREMENTS,
    DEPENDENCY_REQUIREMENTS,
    FEATURES,
)

if TYPE_CHECKING:
    from parcel.core.context import OrchestrationContext

logger = logging.getLogger(__name__)


class UpdateScope(StrEnum):
    CORE = "core"
    DEPENDENCIES = "dependencies"
    ENABLED_FEATURES = "enabled_features"
    FEATURES = "features"
    ALL = "all"


# Core first: a stale parcel must be fixed before anything that relies on it.
ALL_ORDER: tuple[UpdateScope, ...] = (
    UpdateScope.CORE,
    UpdateScope.DEPENDENCIES,
    UpdateScope.ENABLED_FEATURES,
)


@dataclass(frozen=True)
class DependencySetEntry:
    """A catalog artifact together with the version required of it."""

    artifact: Artifact
    version_required: VersionSpec

    @property
    def name(self) -> str:
        return self.artifact.name

    def installed_version(self, index: InstalledIndex) -> VersionSpec | None:
        return index.installed_version(self.artifact.name)

    def is_installed_version_sufficient(self, index: InstalledIndex) -> bool:
        """Installed, and at least the required version."""
        installed = self.installed_version(index)
        if installed is None:
            return False
        return VersionSpec.is_version_sufficient(installed, self.version_required)

    def __str__(self) -> str:
        return f"{self.name}>={self.version_required}"


class DependencySetResolver:
    """Resolve update scopes against the catalog of one context."""

    def __init__(
        self,
        ctx: OrchestrationContext,
        features: dict[str, FeatureDescriptor] | None = None,
        core: ModuleMap | None = None,
        dependencies: ModuleMap | None = None,
    ):
        self._ctx = ctx
        self._features = FEATURES if features is None else features
        self._core = CORE_REQUIREMENTS if core is None else core
        self._dependencies = DEPENDENCY_REQUIREMENTS if dependencies is None else dependencies
        self.warnings: list[str] = []

    # ── Features ────────────────────────────────────────────────

    def _descriptor(self, name: str) -> FeatureDescriptor:
        try:
            return self._features[name]
        except KeyError:
            raise UnknownFeatureError(
                f"Unknown feature '{name}'. Known: {', '.join(sorted(self._features))}"
            ) from None

    def list_features(self) -> list[str]:
        return list(self._features)

    def is_feature_enabled(self, name: str) -> bool:
        """Configured choice for *name*, else the feature's own predicate."""
        descriptor = self._descriptor(name)
        choices = self._ctx.config.features
        if name in choices:
            return bool(choices[name])
        return bool(descriptor.enabled(self._ctx))

    def list_enabled_features(self) -> list[str]:
        return [name for name in self._features if self.is_feature_enabled(name)]

    def modules_for_feature(self, name: str) -> ModuleMap:
        """Modules *name* needs under the current configuration.

        Empty when the feature needs nothing here.

        Raises:
            UnknownFeatureError: If *name* is not a known feature.
        """
        descriptor = self._descriptor(name)
        match descriptor.requirements:
            case Static(modules):
                return dict(modules)
            case Computed(producer):
                return dict(producer(self._ctx) or {})

    def list_core_dependencies(self) -> ModuleMap:
        return dict(self._dependencies)

    def list_core_modules(self) -> ModuleMap:
        return dict(self._core)

    # ── Resolution ──────────────────────────────────────────────

    def _modules_for_scope(self, scope: UpdateScope) -> ModuleMap:
        if scope is UpdateScope.CORE:
            return self.list_core_modules()
        if scope is UpdateScope.DEPENDENCIES:
            return self.list_core_dependencies()
        names = (
            self.list_enabled_features()
            if scope is UpdateScope.ENABLED_FEATURES
            else self.list_features()
        )
        modules: ModuleMap = {}
        for feature in names:
            for module, version in self.modules_for_feature(feature).items():
                previous = modules.get(module)
                if previous is None or VersionSpec.parse(version) > VersionSpec.parse(previous):
                    modules[module] = version
        return modules

    def _entries(self, modules: ModuleMap) -> list[DependencySetEntry]:
        entries = []
        for name, version in modules.items():
            artifact = self._ctx.catalog.get(name)
            if artifact is None:
                msg = f"'{name}' is not in the catalog; skipping"
                logger.warning(msg)
                self.warnings.append(msg)
                continue
            entries.append(DependencySetEntry(artifact, VersionSpec.parse(version)))
        return entries

    def resolve(self, scope: UpdateScope | str) -> list[DependencySetEntry]:
        """Entries for *scope*, in resolution order.

        ``all`` resolves core, then dependencies, then enabled features.
        An artifact named by several scopes appears once, at its first
        position, with the highest version any of them requires.

        Raises:
            UnknownFeatureError: If *scope* is neither a scope nor a feature.
        """
        self.warnings = []
        try:
            scope = UpdateScope(scope)
        except ValueError:
            logger.debug("Resolving single feature '%s'", scope)
            return self._entries(self.modules_for_feature(str(scope)))

        if scope is not UpdateScope.ALL:
            return self._entries(self._modules_for_scope(scope))

        merged: dict[str, DependencySetEntry] = {}
        for part in ALL_ORDER:
            for entry in self._entries(self._modules_for_scope(part)):
                previous = merged.get(entry.name)
                if previous is None or entry.version_required > previous.version_required:
                    merged[entry.name] = entry
        return list(merged.values())
