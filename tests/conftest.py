"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from parcel.adapters.mock import (
    MockBuilder,
    MockChecksumVerifier,
    MockExtractor,
    MockFetchProvider,
    MockInstalledIndex,
    MockReportSink,
    MockSignatureVerifier,
)
from parcel.adapters.registry import BuilderRegistry
from parcel.core.catalog import Catalog
from parcel.core.context import OrchestrationContext
from parcel.core.models.artifact import Artifact, Author
from parcel.core.models.config import HostConfig
from parcel.core.persistence.audit import AuditWriter


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def author() -> Author:
    return Author(id="KANE", name="Jos Boumans", email="kane@example.org")


@pytest.fixture
def catalog(author: Author) -> Catalog:
    """A small catalog: three plain artifacts and one bundle."""
    return Catalog(
        [
            Artifact(name="Foo", package="Foo-1.2.tar.gz", version="1.2",
                     path="authors/K/KANE", author=author, description="Frobnicates"),
            Artifact(name="Bar", package="Bar-0.4.tar.gz", version="0.4",
                     path="authors/K/KANE", author=author),
            Artifact(name="Baz", package="Baz-2.0.tar.gz", version="2.0",
                     path="authors/K/KANE", author=author),
            Artifact(name="Bundle-Tools", package="Bundle-Tools-1.0.tar.gz", version="1.0",
                     path="authors/K/KANE", author=author),
        ],
        [author],
    )


@pytest.fixture
def config(tmp_path: Path) -> HostConfig:
    return HostConfig(
        mirror=str(tmp_path / "mirror"),
        base_dir=str(tmp_path / ".parcel"),
    )


@pytest.fixture
def octx(tmp_path: Path, config: HostConfig, catalog: Catalog) -> OrchestrationContext:
    """A context wired entirely with recording mocks."""
    base = tmp_path / ".parcel"
    return OrchestrationContext(
        config=config,
        catalog=catalog,
        fetcher=MockFetchProvider(base / "fetch"),
        extractor=MockExtractor(base / "build"),
        builders=BuilderRegistry([
            MockBuilder("setuptools", "setup.py"),
            MockBuilder("pep517", "pyproject.toml"),
        ]),
        index=MockInstalledIndex(),
        checksums=MockChecksumVerifier(),
        signatures=MockSignatureVerifier(),
        reports=MockReportSink(),
        ledger=AuditWriter(base / "audit.ndjson"),
    )


@pytest.fixture
def setuptools(octx: OrchestrationContext) -> MockBuilder:
    return octx.builders.get("setuptools")


@pytest.fixture
def pep517(octx: OrchestrationContext) -> MockBuilder:
    return octx.builders.get("pep517")
