"""
Catalog — the process-wide name → Artifact map.

Populated once from the mirror's ``index.yml`` and append-only after
that. Lookups are lock-free; inserts (including artifacts resolved late
through a fallback source) take a lock. Two inserts for the same name are
expected to carry identical values, so the last writer wins.

``index.yml`` layout::

    authors:
      - id: KANE
        name: Jos Boumans
        email: kane@example.org
    artifacts:
      - name: Foo
        package: Foo-1.2.tar.gz
        version: "1.2"
        path: authors/K/KANE
        author: KANE
        description: Frobnicates
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path

import yaml

from parcel.core.models.artifact import Artifact, Author

logger = logging.getLogger(__name__)

INDEX_FILE = "index.yml"

ArtifactSource = Callable[[str], "Artifact | None"]


class CatalogError(Exception):
    """Raised when the catalog index cannot be read."""


class Catalog:
    """Name → Artifact lookup shared by every lifecycle operation."""

    def __init__(
        self,
        artifacts: Iterable[Artifact] = (),
        authors: Iterable[Author] = (),
        source: ArtifactSource | None = None,
    ):
        self._artifacts: dict[str, Artifact] = {a.name: a for a in artifacts}
        self._authors: dict[str, Author] = {a.id: a for a in authors}
        self._source = source
        self._lock = threading.Lock()

    def get(self, name: str) -> Artifact | None:
        """Look up *name*, consulting the fallback source on a miss."""
        artifact = self._artifacts.get(name)
        if artifact is not None or self._source is None:
            return artifact
        found = self._source(name)
        if found is None:
            return None
        self.add(found)
        return found

    def add(self, artifact: Artifact) -> None:
        with self._lock:
            self._artifacts[artifact.name] = artifact

    def author(self, author_id: str) -> Author | None:
        return self._authors.get(author_id)

    def search_package(self, package: str) -> list[Artifact]:
        """Every artifact shipped in *package*."""
        return [a for a in self._artifacts.values() if a.package == package]

    def by_author(self, author_id: str) -> list[Artifact]:
        return [
            a for a in self._artifacts.values()
            if a.author is not None and a.author.id == author_id
        ]

    def names(self) -> list[str]:
        return sorted(self._artifacts)

    def __contains__(self, name: object) -> bool:
        return name in self._artifacts

    def __len__(self) -> int:
        return len(self._artifacts)

    def __iter__(self) -> Iterator[Artifact]:
        return iter(list(self._artifacts.values()))


def load_catalog(path: Path) -> Catalog:
    """Build a catalog from an ``index.yml`` file.

    Raises:
        CatalogError: If the file is unreadable or malformed.
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        raise CatalogError(f"Cannot read catalog index {path}: {e}") from e
    except yaml.YAMLError as e:
        raise CatalogError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(f"Expected a YAML mapping in {path}")

    try:
        authors = {a.id: a for a in (Author.model_validate(raw) for raw in data.get("authors", []))}
        artifacts = []
        for raw in data.get("artifacts", []):
            raw = dict(raw)
            author_id = raw.pop("author", None)
            artifact = Artifact.model_validate(raw)
            if author_id is not None:
                if author_id not in authors:
                    authors[author_id] = Author(id=author_id)
                # assigned after validation so every artifact shares one Author
                artifact.author = authors[author_id]
            artifacts.append(artifact)
    except (TypeError, ValueError) as e:
        raise CatalogError(f"Invalid catalog entry in {path}: {e}") from e

    logger.info("Loaded catalog with %d artifacts from %s", len(artifacts), path)
    return Catalog(artifacts, authors.values())
