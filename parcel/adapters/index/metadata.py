"""
Installed index backed by ``importlib.metadata``.

Reads the RECORD of installed distributions in the running interpreter's
environment. Scopes:

    all   every recorded file
    prog  code and data files
    meta  the ``*.dist-info`` / ``*.egg-info`` metadata files
"""

from __future__ import annotations

import logging
from importlib import metadata
from pathlib import Path

from parcel.adapters.base import InstalledIndex
from parcel.core.models.version import VersionSpec

logger = logging.getLogger(__name__)

SCOPES = ("all", "prog", "meta")


def _is_metadata(parts: tuple[str, ...]) -> bool:
    return any(p.endswith((".dist-info", ".egg-info")) for p in parts)


class MetadataInstalledIndex(InstalledIndex):
    """Read-only view of the current environment's installed distributions."""

    def _distribution(self, name: str) -> metadata.Distribution | None:
        try:
            return metadata.distribution(name)
        except metadata.PackageNotFoundError:
            return None

    def installed_version(self, name: str) -> VersionSpec | None:
        dist = self._distribution(name)
        if dist is None:
            return None
        return VersionSpec.parse(dist.version)

    def installed_file(self, name: str) -> str | None:
        dist = self._distribution(name)
        if dist is None:
            return None
        return str(dist.locate_file(""))

    def files_of(self, name: str, scope: str = "all") -> list[str]:
        if scope not in SCOPES:
            raise ValueError(f"Unknown scope {scope!r}. Valid: {', '.join(SCOPES)}")
        dist = self._distribution(name)
        if dist is None or not dist.files:
            return []

        files = []
        for entry in dist.files:
            is_meta = _is_metadata(entry.parts)
            if scope == "prog" and is_meta:
                continue
            if scope == "meta" and not is_meta:
                continue
            files.append(str(Path(dist.locate_file(entry)).resolve()))
        return sorted(files)

    def directories_of(self, name: str, scope: str = "all") -> list[str]:
        dist = self._distribution(name)
        if dist is None:
            return []
        root = Path(dist.locate_file("")).resolve()

        dirs: set[Path] = set()
        for f in self.files_of(name, scope):
            parent = Path(f).parent
            while parent != root and parent.is_relative_to(root):
                dirs.add(parent)
                parent = parent.parent
        # deepest first so children go before their parents
        return [str(d) for d in sorted(dirs, key=lambda d: (-len(d.parts), str(d)))]

    def missing_files(self, name: str) -> list[str]:
        """Recorded files that are no longer on disk."""
        return [f for f in self.files_of(name) if not Path(f).exists()]
