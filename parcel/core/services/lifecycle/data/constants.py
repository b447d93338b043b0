"""
L0 Data — lifecycle constants.
"""

from __future__ import annotations

from parcel.adapters.verify.checksums import CHECKSUMS_FILE

# Catalog entry that is itself a digest list; never checksummed.
CHECKSUMS_PACKAGE = CHECKSUMS_FILE

# ``<package_name>-<package_version>.readme`` sits next to every archive.
README_SUFFIX = ".readme"

# ── Bundle manifests ────────────────────────────────────────────

# Files scanned for a CONTENTS section, in sorted path order.
BUNDLE_MANIFEST_SUFFIXES = (".md", ".rst", ".txt", ".py", ".pm")

CONTENTS_HEADING = "CONTENTS"

# A heading line: markdown ``#``/``##`` or a POD-style ``=head1``.
HEADING_PREFIXES = ("#", "=head")

# ── Uninstall ───────────────────────────────────────────────────

UNINSTALL_SCOPES = ("all", "prog", "meta")

# ── Build descriptors ───────────────────────────────────────────

SETUPTOOLS_DESCRIPTOR = "setup.py"
PEP517_DESCRIPTOR = "pyproject.toml"
