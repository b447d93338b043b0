"""
Mock collaborators — recording test doubles for every lifecycle contract.

Each double keeps a ``call_log`` so tests can assert how often a stage
reached its collaborator, and can be told to fail for specific artifacts.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from parcel.adapters.archive.extractor import archive_stem
from parcel.adapters.base import (
    BuilderBackend,
    ChecksumVerifier,
    Extractor,
    FetchProvider,
    InstalledIndex,
    ReportSink,
    SignatureVerifier,
)
from parcel.core.errors import ExtractError, FetchError
from parcel.core.models.artifact import Artifact
from parcel.core.models.status import Distribution
from parcel.core.models.version import VersionSpec


class MockFetchProvider(FetchProvider):
    """Writes a placeholder archive for every fetch."""

    def __init__(self, fetch_dir: Path):
        self._fetch_dir = fetch_dir
        self._failures: set[str] = set()
        self.call_log: list[dict[str, Any]] = []

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    def set_failure(self, package: str) -> None:
        self._failures.add(package)

    def fetch(
        self,
        artifact: Artifact,
        *,
        fetch_dir: Path | None = None,
        fetch_from: Path | None = None,
        force: bool = False,
    ) -> Path:
        self.call_log.append({"package": artifact.package, "fetch_from": fetch_from, "force": force})
        if artifact.package in self._failures:
            raise FetchError(f"[mock] cannot fetch {artifact.package}")
        target = (fetch_dir or self._fetch_dir) / artifact.package
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(f"[mock archive] {artifact.package}\n")
        return target


class MockExtractor(Extractor):
    """Materialises configured file contents instead of unpacking."""

    def __init__(self, extract_dir: Path):
        self._extract_dir = extract_dir
        self._contents: dict[str, dict[str, str]] = {}
        self._failures: set[str] = set()
        self.call_log: list[Path] = []

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    def set_contents(self, package: str, files: dict[str, str]) -> None:
        """Files (relative path → text) that extracting *package* produces."""
        self._contents[package] = files

    def set_failure(self, package: str) -> None:
        self._failures.add(package)

    def extract(
        self,
        archive: Path,
        *,
        extract_dir: Path | None = None,
        force: bool = False,
    ) -> Path:
        self.call_log.append(archive)
        if archive.name in self._failures:
            raise ExtractError(f"[mock] corrupt archive {archive.name}")
        dest = (extract_dir or self._extract_dir) / archive_stem(archive)
        dest.mkdir(parents=True, exist_ok=True)
        files = self._contents.get(archive.name, {"setup.py": "# mock\n"})
        for rel, text in files.items():
            target = dest / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text)
        return dest


class MockChecksumVerifier(ChecksumVerifier):
    """Passes everything except packages marked as tampered."""

    def __init__(self):
        self._tampered: set[str] = set()
        self.call_log: list[str] = []

    def set_tampered(self, package: str) -> None:
        self._tampered.add(package)

    def verify(self, path: Path, artifact: Artifact) -> str | None:
        self.call_log.append(artifact.package)
        if artifact.package in self._tampered:
            return None
        return f"sha256:{'0' * 64}"


class MockSignatureVerifier(SignatureVerifier):
    def __init__(self, ok: bool = True):
        self.ok = ok
        self.call_log: list[Path] = []

    def verify(self, directory: Path) -> bool:
        self.call_log.append(directory)
        return self.ok


class MockBuilder(BuilderBackend):
    """Records every phase call; phases succeed unless told otherwise."""

    def __init__(self, name: str, descriptor: str = "", available: bool = True):
        self._name = name
        self._descriptor = descriptor
        self.available = available
        self._failures: set[tuple[str, str]] = set()
        self.call_log: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def descriptor(self) -> str:
        return self._descriptor

    def calls(self, phase: str) -> list[str]:
        """Artifact names *phase* was called for, in order."""
        return [artifact for p, artifact in self.call_log if p == phase]

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    def set_failure(self, phase: str, artifact: str) -> None:
        self._failures.add((phase, artifact))

    def is_available(self) -> bool:
        return self.available

    def _phase(self, phase: str, dist: Distribution) -> bool:
        self.call_log.append((phase, dist.artifact))
        return (phase, dist.artifact) not in self._failures

    def prepare(self, dist: Distribution, args: dict[str, Any]) -> bool:
        return self._phase("prepare", dist)

    def create(self, dist: Distribution, args: dict[str, Any]) -> bool:
        return self._phase("create", dist)

    def install_built(self, dist: Distribution, args: dict[str, Any]) -> bool:
        return self._phase("install", dist)


class MockInstalledIndex(InstalledIndex):
    """Dictionary-backed installed state."""

    def __init__(self):
        self._versions: dict[str, str] = {}
        self._files: dict[str, list[str]] = {}
        self._dirs: dict[str, list[str]] = {}
        self.call_log: list[tuple[str, str]] = []

    def set_installed(
        self,
        name: str,
        version: str,
        files: list[str] | None = None,
        directories: list[str] | None = None,
    ) -> None:
        self._versions[name] = version
        self._files[name] = list(files or [])
        self._dirs[name] = list(directories or [])

    def remove(self, name: str) -> None:
        self._versions.pop(name, None)

    def installed_version(self, name: str) -> VersionSpec | None:
        self.call_log.append(("installed_version", name))
        version = self._versions.get(name)
        return VersionSpec.parse(version) if version is not None else None

    def files_of(self, name: str, scope: str = "all") -> list[str]:
        self.call_log.append(("files_of", name))
        return list(self._files.get(name, []))

    def directories_of(self, name: str, scope: str = "all") -> list[str]:
        self.call_log.append(("directories_of", name))
        return list(self._dirs.get(name, []))


class MockReportSink(ReportSink):
    def __init__(self, raise_on_submit: bool = False):
        self.raise_on_submit = raise_on_submit
        self.reports: list[dict[str, Any]] = []

    def submit(
        self,
        artifact: Artifact,
        *,
        failed: bool,
        log_trail: str,
        options: dict[str, Any] | None = None,
    ) -> bool:
        if self.raise_on_submit:
            raise ConnectionError("[mock] report endpoint unreachable")
        self.reports.append({
            "artifact": artifact.name,
            "failed": failed,
            "log_trail": log_trail,
            "options": dict(options or {}),
        })
        return True
