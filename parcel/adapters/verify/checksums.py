"""
Mirror checksum verifier.

Every author directory on the mirror carries a ``CHECKSUMS`` file, a YAML
(or JSON) mapping of package file name to digest::

    Foo-1.2.tar.gz: "sha256:3b1f..."
    Bar-0.4.zip:
      sha256: 9ac0...
      size: 10240

The CHECKSUMS file is itself fetched through the fetch provider as a
sibling pseudo-artifact of the artifact being checked.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Any

import yaml

from parcel.adapters.base import ChecksumVerifier, FetchProvider
from parcel.core.errors import FetchError
from parcel.core.models.artifact import Artifact

logger = logging.getLogger(__name__)

CHECKSUMS_FILE = "CHECKSUMS"

_ALGORITHMS = ("sha256", "sha512", "sha1", "md5")


def file_digest(path: Path, algo: str = "sha256") -> str:
    """Hex digest of *path*, read in chunks."""
    h = hashlib.new(algo)
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def _normalise_entry(entry: Any) -> str | None:
    """Turn a CHECKSUMS entry into ``algo:hex``."""
    if isinstance(entry, str):
        return entry if ":" in entry else f"sha256:{entry}"
    if isinstance(entry, dict):
        for algo in _ALGORITHMS:
            if entry.get(algo):
                return f"{algo}:{entry[algo]}"
    return None


class MirrorChecksumVerifier(ChecksumVerifier):
    """Checks archives against the author's CHECKSUMS file."""

    def __init__(self, fetcher: FetchProvider, fetch_dir: Path | None = None):
        self._fetcher = fetcher
        self._fetch_dir = fetch_dir

    def _load_checksums(self, artifact: Artifact) -> dict[str, Any]:
        sums = artifact.clone(name=CHECKSUMS_FILE, package=CHECKSUMS_FILE)
        path = self._fetcher.fetch(sums, fetch_dir=self._fetch_dir, force=True)
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            logger.error("Unreadable %s at %s: %s", CHECKSUMS_FILE, path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def expected_digest(self, artifact: Artifact) -> str | None:
        """The digest published for *artifact* (``algo:hex``), or None."""
        try:
            checksums = self._load_checksums(artifact)
        except FetchError as e:
            logger.error("Could not fetch %s for '%s': %s", CHECKSUMS_FILE, artifact.name, e)
            return None
        return _normalise_entry(checksums.get(artifact.package))

    def verify(self, path: Path, artifact: Artifact) -> str | None:
        expected = self.expected_digest(artifact)
        if expected is None:
            logger.error("No checksum published for '%s'", artifact.package)
            return None

        algo, expected_hex = expected.split(":", 1)
        if algo not in _ALGORITHMS:
            logger.error("Unsupported checksum algorithm '%s' for '%s'", algo, artifact.package)
            return None

        actual = file_digest(path, algo)
        if actual.lower() != expected_hex.strip().lower():
            logger.error(
                "Checksum mismatch for '%s': expected %s, got %s",
                artifact.package, expected_hex, actual,
            )
            return None

        logger.debug("Checksum OK for %s (%s)", artifact.package, algo)
        return f"{algo}:{actual}"
