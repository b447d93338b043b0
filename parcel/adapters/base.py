"""
Collaborator contracts — what the lifecycle core expects from the outside.

The core only talks to fetching, unpacking, verification, building and the
host's installed state through these abstract classes. Default
implementations live in the sibling packages; recording test doubles live
in ``parcel.adapters.mock``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from parcel.core.models.artifact import Artifact
from parcel.core.models.status import Distribution
from parcel.core.models.version import VersionSpec


class FetchProvider(ABC):
    """Retrieves artifact archives into a local directory."""

    @abstractmethod
    def fetch(
        self,
        artifact: Artifact,
        *,
        fetch_dir: Path | None = None,
        fetch_from: Path | None = None,
        force: bool = False,
    ) -> Path:
        """Fetch *artifact* and return the local file path.

        ``fetch_from`` overrides the source location (a file, or a
        directory holding ``artifact.package``).

        Raises:
            FetchError: If the artifact cannot be retrieved.
        """


class Extractor(ABC):
    """Unpacks a fetched archive."""

    @abstractmethod
    def extract(
        self,
        archive: Path,
        *,
        extract_dir: Path | None = None,
        force: bool = False,
    ) -> Path:
        """Extract *archive* and return the distribution directory.

        Raises:
            ExtractError: On a corrupt or unsupported archive.
        """


class ChecksumVerifier(ABC):
    """Checks a fetched archive against published digests."""

    @abstractmethod
    def verify(self, path: Path, artifact: Artifact) -> str | None:
        """The published digest (``algo:hex``) if *path* matches it, else None.

        Side-fetches the digest list; never touches *artifact*'s status.
        """


class SignatureVerifier(ABC):
    """Checks the signature shipped inside an extracted distribution."""

    @abstractmethod
    def verify(self, directory: Path) -> bool:
        """True if the distribution in *directory* is validly signed."""


class BuilderBackend(ABC):
    """Builds and installs one kind of distribution.

    Each call is idempotent for a given ``Distribution`` handle.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier, e.g. ``setuptools`` or ``pep517``."""

    @property
    def descriptor(self) -> str:
        """File whose presence marks a distribution of this kind."""
        return ""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the backend can run on this host. Never raises."""

    @abstractmethod
    def prepare(self, dist: Distribution, args: dict[str, Any]) -> bool:
        """Configure the distribution for building."""

    @abstractmethod
    def create(self, dist: Distribution, args: dict[str, Any]) -> bool:
        """Build (and, unless ``args["skip_test"]``, test) the distribution."""

    @abstractmethod
    def install_built(self, dist: Distribution, args: dict[str, Any]) -> bool:
        """Install the built distribution into the host."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class InstalledIndex(ABC):
    """Read-only view of what is installed on the host."""

    @abstractmethod
    def installed_version(self, name: str) -> VersionSpec | None:
        """Installed version of *name*, or None when absent."""

    @abstractmethod
    def files_of(self, name: str, scope: str = "all") -> list[str]:
        """Files owned by *name*. ``scope`` is ``all``, ``prog`` or ``meta``."""

    @abstractmethod
    def directories_of(self, name: str, scope: str = "all") -> list[str]:
        """Directories owned by *name*."""

    def installed_file(self, name: str) -> str | None:
        """Main installed location of *name*, when known."""
        return None


class ReportSink(ABC):
    """Receives build/verification reports. Fire-and-forget."""

    @abstractmethod
    def submit(
        self,
        artifact: Artifact,
        *,
        failed: bool,
        log_trail: str,
        options: dict[str, Any] | None = None,
    ) -> bool:
        """Submit a report; returns whether it was accepted."""
