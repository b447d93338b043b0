"""
Mirror fetch provider — copies archives out of a local mirror tree.

Layout: ``<mirror>/<artifact.path>/<artifact.package>``. ``file://`` URLs
are accepted as the mirror root.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from parcel.adapters.base import FetchProvider
from parcel.core.errors import FetchError
from parcel.core.models.artifact import Artifact

logger = logging.getLogger(__name__)


def _as_path(location: str | Path) -> Path:
    text = str(location)
    if text.startswith("file://"):
        text = text[len("file://"):]
    return Path(text)


class MirrorFetcher(FetchProvider):
    """Fetch provider backed by a directory on the local filesystem."""

    def __init__(self, mirror: str | Path, fetch_dir: Path):
        self._mirror = _as_path(mirror)
        self._fetch_dir = fetch_dir

    @property
    def mirror(self) -> Path:
        return self._mirror

    def source_for(self, artifact: Artifact, fetch_from: Path | None = None) -> Path:
        """Where *artifact* is read from."""
        if fetch_from is not None:
            return fetch_from / artifact.package if fetch_from.is_dir() else fetch_from
        return self._mirror / artifact.path / artifact.package

    def fetch(
        self,
        artifact: Artifact,
        *,
        fetch_dir: Path | None = None,
        fetch_from: Path | None = None,
        force: bool = False,
    ) -> Path:
        source = self.source_for(artifact, fetch_from)
        if not source.is_file():
            raise FetchError(f"'{artifact.package}' not found at {source}")

        target_dir = (fetch_dir or self._fetch_dir) / artifact.path
        target = target_dir / artifact.package

        if target.is_file() and not force:
            logger.debug("Already fetched %s to %s", artifact.package, target)
            return target

        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
        except OSError as e:
            raise FetchError(f"Could not copy '{source}' to '{target}': {e}") from e

        logger.info("Fetched %s to %s", artifact.package, target)
        return target
