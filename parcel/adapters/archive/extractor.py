"""
Archive extractor — unpacks .tar.gz / .tgz / .tar.bz2 / .zip archives.

Tar members go through the ``data`` extraction filter; zip members that
would land outside the target directory are rejected.
"""

from __future__ import annotations

import logging
import shutil
import tarfile
import zipfile
from pathlib import Path

from parcel.adapters.base import Extractor
from parcel.core.errors import ExtractError

logger = logging.getLogger(__name__)

_SUFFIXES = (".tar.gz", ".tgz", ".tar.bz2", ".zip")


def archive_stem(archive: Path) -> str:
    """``Foo-1.2`` for ``Foo-1.2.tar.gz``."""
    name = archive.name
    for suffix in _SUFFIXES:
        if name.lower().endswith(suffix):
            return name[: -len(suffix)]
    return archive.stem


class ArchiveExtractor(Extractor):
    """Extractor for the archive formats found on the mirror."""

    def __init__(self, extract_dir: Path):
        self._extract_dir = extract_dir

    def extract(
        self,
        archive: Path,
        *,
        extract_dir: Path | None = None,
        force: bool = False,
    ) -> Path:
        if not archive.is_file():
            raise ExtractError(f"Archive not found: {archive}")

        lower = archive.name.lower()
        if not lower.endswith(_SUFFIXES):
            raise ExtractError(f"Unsupported archive type: {archive.name}")

        dest = (extract_dir or self._extract_dir) / archive_stem(archive)
        if dest.is_dir():
            if not force:
                logger.debug("Already extracted %s to %s", archive.name, dest)
                return _distribution_root(dest)
            shutil.rmtree(dest)
        dest.mkdir(parents=True, exist_ok=True)

        try:
            if lower.endswith(".zip"):
                self._extract_zip(archive, dest)
            else:
                with tarfile.open(archive) as tar:
                    tar.extractall(dest, filter="data")
        except (tarfile.TarError, zipfile.BadZipFile, OSError) as e:
            shutil.rmtree(dest, ignore_errors=True)
            raise ExtractError(f"Could not extract {archive.name}: {e}") from e

        root = _distribution_root(dest)
        logger.info("Extracted %s to %s", archive.name, root)
        return root

    @staticmethod
    def _extract_zip(archive: Path, dest: Path) -> None:
        resolved = dest.resolve()
        with zipfile.ZipFile(archive) as zf:
            for member in zf.namelist():
                target = (dest / member).resolve()
                if not target.is_relative_to(resolved):
                    raise ExtractError(f"Unsafe path in {archive.name}: {member}")
            zf.extractall(dest)


def _distribution_root(dest: Path) -> Path:
    """The single top-level directory of an archive, or *dest* itself."""
    entries = list(dest.iterdir())
    if len(entries) == 1 and entries[0].is_dir():
        return entries[0]
    return dest
