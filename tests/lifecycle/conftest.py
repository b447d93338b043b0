"""
Fixtures for self-update resolution: a catalog holding parcel's own stack.
"""

import pytest

from parcel.core.catalog import Catalog
from parcel.core.models.artifact import Artifact

SELF_STACK = {
    "parcel": "0.1.0",
    "pydantic": "2.7",
    "PyYAML": "6.0.1",
    "click": "8.1",
    "cryptography": "42.0",
    "build": "1.2",
    "setuptools": "69.0",
    "pytest": "8.0",
}


class RecordingCatalog(Catalog):
    """Catalog that remembers the order of lookups."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.lookups: list[str] = []

    def get(self, name):
        self.lookups.append(name)
        return super().get(name)


@pytest.fixture
def self_catalog(author) -> RecordingCatalog:
    return RecordingCatalog(
        [
            Artifact(name=name, package=f"{name}-{version}.tar.gz", version=version,
                     path="authors/P/PYPA", author=author)
            for name, version in SELF_STACK.items()
        ],
        [author],
    )


@pytest.fixture
def self_octx(octx, self_catalog):
    octx.catalog = self_catalog
    return octx
