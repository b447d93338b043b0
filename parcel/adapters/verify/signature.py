"""
Manifest signature verifier.

A signed distribution ships two files at its root:

    MANIFEST    one line per file: ``<relative path> <sha256 hex>``
    SIGNATURE   detached signature over the MANIFEST bytes

When ``prefer_bin`` is set and ``gpg`` is on PATH, SIGNATURE is treated as
an OpenPGP detached signature and checked with ``gpg --verify``. Otherwise
SIGNATURE holds a base64 Ed25519 signature checked with ``cryptography``
against the configured trusted keys.

In both cases every MANIFEST entry must match the file on disk, and every
file in the tree other than MANIFEST and SIGNATURE must be listed.
"""

from __future__ import annotations

import base64
import binascii
import logging
import shutil
import subprocess
from pathlib import Path

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from parcel.adapters.base import SignatureVerifier
from parcel.adapters.verify.checksums import file_digest

logger = logging.getLogger(__name__)

MANIFEST_FILE = "MANIFEST"
SIGNATURE_FILE = "SIGNATURE"


def gpg_available() -> bool:
    return shutil.which("gpg") is not None


class ManifestSignatureVerifier(SignatureVerifier):
    """Verifies SIGNATURE over MANIFEST, then MANIFEST over the tree."""

    def __init__(self, trusted_keys: list[str] | None = None, prefer_bin: bool = False):
        self._trusted_keys = list(trusted_keys or [])
        self._prefer_bin = prefer_bin

    def verify(self, directory: Path) -> bool:
        manifest = directory / MANIFEST_FILE
        signature = directory / SIGNATURE_FILE
        if not manifest.is_file() or not signature.is_file():
            logger.error("No %s/%s in %s; distribution is unsigned",
                         MANIFEST_FILE, SIGNATURE_FILE, directory)
            return False

        if self._prefer_bin and gpg_available():
            signed = self._verify_with_gpg(manifest, signature)
        else:
            signed = self._verify_with_library(manifest, signature)
        if not signed:
            return False

        return self._verify_manifest(directory, manifest)

    def _verify_with_gpg(self, manifest: Path, signature: Path) -> bool:
        try:
            result = subprocess.run(
                ["gpg", "--batch", "--verify", str(signature), str(manifest)],
                capture_output=True, text=True, timeout=60,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error("Could not run gpg: %s", e)
            return False
        if result.returncode != 0:
            logger.error("gpg rejected signature: %s", (result.stderr or "").strip()[-500:])
            return False
        return True

    def _verify_with_library(self, manifest: Path, signature: Path) -> bool:
        if not self._trusted_keys:
            logger.error("No trusted keys configured; cannot verify %s", signature)
            return False

        try:
            sig = base64.b64decode(signature.read_text(encoding="ascii").strip(), validate=True)
        except (OSError, ValueError, binascii.Error) as e:
            logger.error("Malformed %s: %s", SIGNATURE_FILE, e)
            return False

        payload = manifest.read_bytes()
        for encoded in self._trusted_keys:
            try:
                key = Ed25519PublicKey.from_public_bytes(base64.b64decode(encoded))
            except (ValueError, binascii.Error) as e:
                logger.warning("Ignoring malformed trusted key: %s", e)
                continue
            try:
                key.verify(sig, payload)
            except InvalidSignature:
                continue
            return True

        logger.error("Signature in %s does not match any trusted key", signature.parent)
        return False

    def _verify_manifest(self, directory: Path, manifest: Path) -> bool:
        ok = True
        listed = {MANIFEST_FILE, SIGNATURE_FILE}
        for line in manifest.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            rel, _, digest = line.rpartition(" ")
            listed.add(Path(rel.strip()).as_posix())
            target = directory / rel.strip()
            if not target.is_file():
                logger.error("MANIFEST lists missing file: %s", rel)
                ok = False
            elif file_digest(target) != digest.lower():
                logger.error("MANIFEST digest mismatch: %s", rel)
                ok = False

        for path in sorted(p for p in directory.rglob("*") if p.is_file()):
            rel = path.relative_to(directory).as_posix()
            if rel not in listed:
                logger.error("File not covered by MANIFEST: %s", rel)
                ok = False
        return ok
