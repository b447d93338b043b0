"""
Artifact model — a named distribution on the mirror.

Artifacts are built once by the catalog and keep their identity
(name, package) for the life of the catalog. The pipeline state lives
in a separate ``ArtifactStatus`` that is only allocated when someone
asks for it.
"""

from __future__ import annotations

import re

from pydantic import BaseModel, PrivateAttr

from parcel.core.models.status import ArtifactStatus
from parcel.core.models.version import VersionSpec

_PACKAGE_RE = re.compile(r"^(.+)-(.+)\.(tar\.gz|tgz|tar\.bz2|zip)$", re.IGNORECASE)
_BUNDLE_RE = re.compile(r"^bundle(?:-|::|_)", re.IGNORECASE)


class Author(BaseModel):
    """Who uploaded an artifact. Shared between artifacts, never copied."""

    id: str
    name: str = ""
    email: str = ""


class Artifact(BaseModel):
    """A distribution on the mirror plus its lazily created status."""

    name: str
    package: str
    version: str = "0.0"
    path: str = ""               # directory on the mirror, e.g. authors/K/KANE
    description: str = ""
    comment: str = ""
    author: Author | None = None

    _status: ArtifactStatus | None = PrivateAttr(default=None)

    @property
    def status(self) -> ArtifactStatus:
        if self._status is None:
            self._status = ArtifactStatus()
        return self._status

    @property
    def has_status(self) -> bool:
        """Whether a status object has been allocated yet."""
        return self._status is not None

    @property
    def version_spec(self) -> VersionSpec:
        return VersionSpec.parse(self.version)

    @property
    def package_name(self) -> str:
        """``Foo-Bar`` for ``Foo-Bar-1.03.tar.gz``."""
        m = _PACKAGE_RE.match(self.package)
        return m.group(1) if m else ""

    @property
    def package_version(self) -> str:
        m = _PACKAGE_RE.match(self.package)
        return m.group(2) if m else ""

    @property
    def package_extension(self) -> str:
        m = _PACKAGE_RE.match(self.package)
        return m.group(3) if m else ""

    @property
    def is_bundle(self) -> bool:
        return bool(_BUNDLE_RE.match(self.name))

    def clone(self, **update: str) -> Artifact:
        """Copy with a fresh status. The author reference is shared."""
        obj = self.model_copy(update=update)
        obj._status = None
        return obj

    def flush(self) -> None:
        """Drop every cached pipeline result."""
        if self._status is not None:
            self._status.flush()

    def __str__(self) -> str:
        return self.name
