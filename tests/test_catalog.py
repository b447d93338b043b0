"""
Tests for the artifact catalog.
"""

import textwrap
import threading
from pathlib import Path

import pytest

from parcel.core.catalog import Catalog, CatalogError, load_catalog
from parcel.core.models.artifact import Artifact


class TestCatalog:
    def test_get(self, catalog: Catalog):
        assert catalog.get("Foo").package == "Foo-1.2.tar.gz"
        assert catalog.get("Nope") is None

    def test_contains_and_len(self, catalog: Catalog):
        assert "Foo" in catalog
        assert len(catalog) == 4

    def test_search_package(self, catalog: Catalog):
        catalog.add(Artifact(name="Foo::Util", package="Foo-1.2.tar.gz", version="1.2"))
        assert sorted(a.name for a in catalog.search_package("Foo-1.2.tar.gz")) == ["Foo", "Foo::Util"]

    def test_by_author(self, catalog: Catalog):
        catalog.add(Artifact(name="Orphan", package="Orphan-1.0.tar.gz"))
        names = {a.name for a in catalog.by_author("KANE")}
        assert names == {"Foo", "Bar", "Baz", "Bundle-Tools"}

    def test_source_fallback_inserts(self):
        calls = []

        def source(name: str):
            calls.append(name)
            if name == "Late":
                return Artifact(name="Late", package="Late-0.1.tar.gz")
            return None

        catalog = Catalog(source=source)
        assert catalog.get("Late").name == "Late"
        assert catalog.get("Late").name == "Late"
        assert catalog.get("Never") is None
        assert calls == ["Late", "Never"]
        assert "Late" in catalog

    def test_concurrent_adds(self):
        catalog = Catalog()

        def add(i: int):
            for j in range(50):
                catalog.add(Artifact(name=f"A{i}-{j}", package=f"A{i}-{j}-1.0.tar.gz"))

        threads = [threading.Thread(target=add, args=(i,)) for i in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(catalog) == 200


class TestLoadCatalog:
    def _write(self, tmp_path: Path, content: str) -> Path:
        path = tmp_path / "index.yml"
        path.write_text(textwrap.dedent(content))
        return path

    def test_load(self, tmp_path: Path):
        path = self._write(tmp_path, """\
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
              - name: Bar
                package: Bar-0.4.tar.gz
                version: "0.4"
                author: KANE
        """)
        catalog = load_catalog(path)
        foo, bar = catalog.get("Foo"), catalog.get("Bar")
        assert foo.version == "1.2"
        assert foo.author.email == "kane@example.org"
        assert foo.author is bar.author
        assert catalog.author("KANE").name == "Jos Boumans"

    def test_unknown_author_is_created(self, tmp_path: Path):
        path = self._write(tmp_path, """\
            artifacts:
              - name: Foo
                package: Foo-1.2.tar.gz
                author: NEWBIE
        """)
        assert load_catalog(path).get("Foo").author.id == "NEWBIE"

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(CatalogError):
            load_catalog(tmp_path / "index.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        path = self._write(tmp_path, "artifacts: [\n")
        with pytest.raises(CatalogError, match="Invalid YAML"):
            load_catalog(path)

    def test_invalid_entry(self, tmp_path: Path):
        path = self._write(tmp_path, """\
            artifacts:
              - name: Foo
        """)
        with pytest.raises(CatalogError, match="Invalid catalog entry"):
            load_catalog(path)
