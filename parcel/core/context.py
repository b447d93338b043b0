"""
Orchestration context — the handle every lifecycle operation receives.

Entry points build exactly one context at startup and pass it down:

    - CLI:    main.py  → create_context(config)
    - Tests:  conftest → OrchestrationContext(...) wired with mocks

Nothing in the lifecycle looks configuration, catalog or collaborators up
from a global; they all come from here.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path

from parcel.adapters.archive.extractor import ArchiveExtractor
from parcel.adapters.base import (
    ChecksumVerifier,
    Extractor,
    FetchProvider,
    InstalledIndex,
    ReportSink,
    SignatureVerifier,
)
from parcel.adapters.build.commands import default_builders
from parcel.adapters.fetch.mirror import MirrorFetcher
from parcel.adapters.index.metadata import MetadataInstalledIndex
from parcel.adapters.registry import BuilderRegistry
from parcel.adapters.report.ledger import LedgerReportSink
from parcel.adapters.verify.checksums import MirrorChecksumVerifier
from parcel.adapters.verify.signature import ManifestSignatureVerifier
from parcel.core.catalog import INDEX_FILE, Catalog, load_catalog
from parcel.core.models.config import HostConfig
from parcel.core.persistence.audit import DEFAULT_AUDIT_FILE, AuditWriter

logger = logging.getLogger(__name__)

REPORTS_FILE = "reports.ndjson"


@dataclass
class OrchestrationContext:
    """Configuration, catalog and collaborators for one process."""

    config: HostConfig
    catalog: Catalog
    fetcher: FetchProvider
    extractor: Extractor
    builders: BuilderRegistry
    index: InstalledIndex
    checksums: ChecksumVerifier | None = None
    signatures: SignatureVerifier | None = None
    reports: ReportSink | None = None
    ledger: AuditWriter | None = None

    # names of bundles currently being installed (cycle guard)
    in_progress: set[str] = field(default_factory=set)
    lock: threading.Lock = field(default_factory=threading.Lock)

    @property
    def base_dir(self) -> Path:
        return Path(self.config.base_dir)

    @property
    def fetch_dir(self) -> Path:
        return self.base_dir / "fetch"

    @property
    def extract_dir(self) -> Path:
        return self.base_dir / "build"

    def enter_bundle(self, name: str) -> bool:
        """Mark *name* in progress. False if it already was."""
        with self.lock:
            if name in self.in_progress:
                return False
            self.in_progress.add(name)
            return True

    def leave_bundle(self, name: str) -> None:
        with self.lock:
            self.in_progress.discard(name)


def create_context(config: HostConfig, catalog: Catalog | None = None) -> OrchestrationContext:
    """Wire the default collaborators for *config*.

    The catalog is read from ``<mirror>/index.yml`` unless one is given.
    """
    base = Path(config.base_dir)
    fetch_dir = base / "fetch"

    if catalog is None:
        index_path = Path(config.mirror) / INDEX_FILE
        if index_path.is_file():
            catalog = load_catalog(index_path)
        else:
            logger.warning("No %s in mirror '%s'; starting with an empty catalog", INDEX_FILE, config.mirror)
            catalog = Catalog()

    fetcher = MirrorFetcher(config.mirror, fetch_dir)
    ctx = OrchestrationContext(
        config=config,
        catalog=catalog,
        fetcher=fetcher,
        extractor=ArchiveExtractor(base / "build"),
        builders=BuilderRegistry(default_builders(config.python, config.build_timeout)),
        index=MetadataInstalledIndex(),
        checksums=MirrorChecksumVerifier(fetcher, fetch_dir),
        signatures=ManifestSignatureVerifier(config.trusted_keys, prefer_bin=config.prefer_bin),
        reports=LedgerReportSink(AuditWriter(base / REPORTS_FILE)),
        ledger=AuditWriter(base / DEFAULT_AUDIT_FILE),
    )
    logger.debug("Context ready: mirror=%s base_dir=%s", config.mirror, base)
    return ctx
