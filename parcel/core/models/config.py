"""
HostConfig model — policy knobs read from parcel.yml.

Every lifecycle operation receives the configuration through the
orchestration context; nothing reads it from a global.
"""

from __future__ import annotations

import sys
from typing import Any

from pydantic import BaseModel, Field


class HostConfig(BaseModel):
    """Host configuration for fetching, verifying and building artifacts."""

    # ── Locations ────────────────────────────────────────────────
    mirror: str = ""             # local mirror root (contains index.yml)
    base_dir: str = ".parcel"    # fetch/extract/ledger directory

    # ── Pipeline policy ──────────────────────────────────────────
    force: bool = False
    verbose: bool = False
    prefer_setuptools: bool = False   # prefer setup.py over pyproject.toml
    prefer_bin: bool = False          # prefer host binaries (gpg) over libraries
    dist_type: str = ""               # builder backend override
    skip_test: bool = False
    bundle_workers: int = Field(default=1, ge=1)
    build_timeout: int = 600
    python: str = Field(default_factory=lambda: sys.executable)

    # ── Verification ─────────────────────────────────────────────
    checksum_required: bool = True
    signature_required: bool = False
    trusted_keys: list[str] = Field(default_factory=list)   # base64 Ed25519 keys

    # ── Reporting / frontends ────────────────────────────────────
    test_reports: bool = False
    shell: str = ""

    # ── Runtime ──────────────────────────────────────────────────
    core_artifacts: dict[str, str] = Field(default_factory=dict)
    features: dict[str, bool] = Field(default_factory=dict)  # feature overrides

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a knob by name."""
        return getattr(self, key, default)
