"""
ArtifactStatus — per-artifact cache of pipeline results.

One status object belongs to exactly one Artifact and is created lazily
the first time ``Artifact.status`` is read. Every field is write-once
until ``flush()``; writing again simply overwrites. The status performs
no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import StrEnum
from pathlib import Path
from typing import Any


class InstallerKind(StrEnum):
    """Build system used to build an extracted distribution."""

    NONE = "none"
    SETUPTOOLS = "setuptools"   # setup.py
    PEP517 = "pep517"           # pyproject.toml


class Verification(StrEnum):
    """Outcome of a checksum or signature check."""

    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


class BuildTarget(StrEnum):
    """How far ``install`` should drive an artifact."""

    PREPARE = "prepare"
    CREATE = "create"
    INSTALL = "install"


@dataclass
class Distribution:
    """Handle for an artifact being built by one builder backend."""

    artifact: str
    kind: str
    directory: Path
    prepared: bool = False
    created: bool = False
    installed: bool = False
    files: list[str] = field(default_factory=list)
    output: str = ""


# later flag → flags that must already be set
_STAGE_REQUIRES: dict[str, tuple[str, ...]] = {
    "extracted_path": ("fetched_path",),
    "installer_kind": ("extracted_path",),
    "prepared": ("installer_kind",),
    "created": ("prepared",),
    "installed": ("created",),
}


@dataclass
class ArtifactStatus:
    """Mutable cache of what the pipeline has done for one artifact."""

    installer_kind: InstallerKind = InstallerKind.NONE
    fetched_path: Path | None = None
    fetch_from: Path | None = None
    extracted_path: Path | None = None
    prereqs: dict[str, str] = field(default_factory=dict)
    signature: Verification | None = None
    checksum: Verification | None = None
    checksum_value: str | None = None
    dist: Distribution | None = None
    prepared: bool = False
    created: bool = False
    installed: bool = False
    uninstalled: bool | None = None
    readme: str | None = None
    forced: bool = False

    @classmethod
    def stage_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    def record_stage(self, stage: str, value: Any) -> None:
        """Store *value* for *stage*. Last write wins.

        Raises:
            KeyError: If *stage* is not a status field.
        """
        if stage not in self.stage_names():
            raise KeyError(f"Unknown status field: {stage!r}")
        setattr(self, stage, value)

    def flush(self) -> None:
        """Reset every field to its unset state."""
        fresh = ArtifactStatus()
        for f in fields(self):
            setattr(self, f.name, getattr(fresh, f.name))

    def is_set(self, stage: str) -> bool:
        value = getattr(self, stage)
        if isinstance(value, InstallerKind):
            return value is not InstallerKind.NONE
        return bool(value)

    def pipeline_violations(self) -> list[str]:
        """Later-stage flags that are set without their prerequisites.

        A recorded force override bypasses the check.
        """
        if self.forced:
            return []
        violations = []
        for later, required in _STAGE_REQUIRES.items():
            if not self.is_set(later):
                continue
            for earlier in required:
                if not self.is_set(earlier):
                    violations.append(f"{later} without {earlier}")
        return violations

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, Path):
                value = str(value)
            elif isinstance(value, Distribution):
                value = {"kind": value.kind, "directory": str(value.directory)}
            data[f.name] = value
        return data
