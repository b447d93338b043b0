"""
Tests for collaborator implementations, the builder registry and the mocks.
"""

import base64
import io
import sys
import tarfile
import zipfile
from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from parcel.adapters.archive.extractor import ArchiveExtractor, archive_stem
from parcel.adapters.build.commands import BuildCommands, CommandBuilder, default_builders
from parcel.adapters.build.runner import run_command
from parcel.adapters.fetch.mirror import MirrorFetcher
from parcel.adapters.index.metadata import MetadataInstalledIndex
from parcel.adapters.mock import MockBuilder, MockExtractor, MockFetchProvider
from parcel.adapters.registry import BuilderRegistry
from parcel.adapters.verify.checksums import MirrorChecksumVerifier, file_digest
from parcel.adapters.verify.signature import ManifestSignatureVerifier
from parcel.core.errors import ErrorKind, ExtractError, FetchError
from parcel.core.models.artifact import Artifact
from parcel.core.models.status import Distribution


def _foo() -> Artifact:
    return Artifact(name="Foo", package="Foo-1.2.tar.gz", version="1.2", path="authors/K/KANE")


def _make_tarball(path: Path, files: dict[str, str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as tar:
        for name, text in files.items():
            data = text.encode()
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return path


# ── Builder registry ─────────────────────────────────────────────────


class _BrokenBuilder(MockBuilder):
    def is_available(self) -> bool:
        raise RuntimeError("availability check exploded")


class TestBuilderRegistry:
    def test_register_and_get(self):
        registry = BuilderRegistry([MockBuilder("setuptools")])
        assert registry.get("setuptools").name == "setuptools"
        assert registry.get("pep517") is None
        assert registry.names() == ["setuptools"]

    def test_register_replaces(self):
        first, second = MockBuilder("setuptools"), MockBuilder("setuptools")
        registry = BuilderRegistry([first])
        registry.register(second)
        assert registry.get("setuptools") is second

    def test_unregister(self):
        registry = BuilderRegistry([MockBuilder("pep517")])
        registry.unregister("pep517")
        assert not registry.is_available("pep517")

    def test_availability(self):
        registry = BuilderRegistry([
            MockBuilder("setuptools"),
            MockBuilder("pep517", available=False),
        ])
        assert registry.available() == ["setuptools"]

    def test_availability_error_means_unavailable(self):
        registry = BuilderRegistry([_BrokenBuilder("pep517")])
        assert registry.is_available("pep517") is False

    def test_backend_status(self):
        status = BuilderRegistry([MockBuilder("setuptools", "setup.py")]).backend_status()
        assert status["setuptools"] == {
            "name": "setuptools",
            "available": True,
            "descriptor": "setup.py",
            "type": "MockBuilder",
        }


# ── Mirror fetcher ───────────────────────────────────────────────────


class TestMirrorFetcher:
    def test_fetch_copies_from_mirror(self, tmp_path: Path):
        mirror = tmp_path / "mirror"
        source = mirror / "authors/K/KANE/Foo-1.2.tar.gz"
        source.parent.mkdir(parents=True)
        source.write_bytes(b"archive")

        fetched = MirrorFetcher(mirror, tmp_path / "fetch").fetch(_foo())
        assert fetched == tmp_path / "fetch/authors/K/KANE/Foo-1.2.tar.gz"
        assert fetched.read_bytes() == b"archive"

    def test_file_url_mirror(self, tmp_path: Path):
        source = tmp_path / "mirror/authors/K/KANE/Foo-1.2.tar.gz"
        source.parent.mkdir(parents=True)
        source.write_bytes(b"x")
        fetcher = MirrorFetcher(f"file://{tmp_path / 'mirror'}", tmp_path / "fetch")
        assert fetcher.fetch(_foo()).is_file()

    def test_missing_raises(self, tmp_path: Path):
        with pytest.raises(FetchError) as exc:
            MirrorFetcher(tmp_path, tmp_path / "fetch").fetch(_foo())
        assert exc.value.kind is ErrorKind.FETCH_ERROR

    def test_fetch_from_directory(self, tmp_path: Path):
        override = tmp_path / "local"
        override.mkdir()
        (override / "Foo-1.2.tar.gz").write_bytes(b"local copy")
        fetched = MirrorFetcher(tmp_path / "mirror", tmp_path / "fetch").fetch(_foo(), fetch_from=override)
        assert fetched.read_bytes() == b"local copy"

    def test_reuses_fetched_file_unless_forced(self, tmp_path: Path):
        source = tmp_path / "mirror/authors/K/KANE/Foo-1.2.tar.gz"
        source.parent.mkdir(parents=True)
        source.write_bytes(b"v1")
        fetcher = MirrorFetcher(tmp_path / "mirror", tmp_path / "fetch")
        fetcher.fetch(_foo())

        source.write_bytes(b"v2")
        assert fetcher.fetch(_foo()).read_bytes() == b"v1"
        assert fetcher.fetch(_foo(), force=True).read_bytes() == b"v2"


# ── Archive extractor ────────────────────────────────────────────────


class TestArchiveExtractor:
    def test_archive_stem(self):
        assert archive_stem(Path("Foo-1.2.tar.gz")) == "Foo-1.2"
        assert archive_stem(Path("Foo-1.2.ZIP")) == "Foo-1.2"

    def test_extract_tarball(self, tmp_path: Path):
        archive = _make_tarball(tmp_path / "Foo-1.2.tar.gz", {"Foo-1.2/setup.py": "# setup\n"})
        root = ArchiveExtractor(tmp_path / "build").extract(archive)
        assert root.name == "Foo-1.2"
        assert (root / "setup.py").read_text() == "# setup\n"

    def test_extract_zip(self, tmp_path: Path):
        archive = tmp_path / "Foo-1.2.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("Foo-1.2/pyproject.toml", "[project]\n")
        root = ArchiveExtractor(tmp_path / "build").extract(archive)
        assert (root / "pyproject.toml").is_file()

    def test_zip_traversal_rejected(self, tmp_path: Path):
        archive = tmp_path / "Evil-1.0.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../evil.py", "boom")
        with pytest.raises(ExtractError, match="Unsafe"):
            ArchiveExtractor(tmp_path / "build").extract(archive)

    def test_unsupported_type(self, tmp_path: Path):
        archive = tmp_path / "Foo-1.2.rar"
        archive.write_bytes(b"rar")
        with pytest.raises(ExtractError, match="Unsupported"):
            ArchiveExtractor(tmp_path / "build").extract(archive)
        assert not (tmp_path / "build").exists()

    def test_corrupt_archive(self, tmp_path: Path):
        archive = tmp_path / "Foo-1.2.tar.gz"
        archive.write_bytes(b"definitely not gzip")
        with pytest.raises(ExtractError) as exc:
            ArchiveExtractor(tmp_path / "build").extract(archive)
        assert exc.value.kind is ErrorKind.EXTRACT_ERROR


# ── Checksums ────────────────────────────────────────────────────────


class TestMirrorChecksumVerifier:
    def _mirror(self, tmp_path: Path, checksums: str) -> tuple[MirrorFetcher, Path]:
        author_dir = tmp_path / "mirror/authors/K/KANE"
        author_dir.mkdir(parents=True)
        archive = author_dir / "Foo-1.2.tar.gz"
        archive.write_bytes(b"the real archive")
        (author_dir / "CHECKSUMS").write_text(checksums.format(digest=file_digest(archive)))
        return MirrorFetcher(tmp_path / "mirror", tmp_path / "fetch"), archive

    def test_match(self, tmp_path: Path):
        fetcher, archive = self._mirror(tmp_path, 'Foo-1.2.tar.gz: "sha256:{digest}"\n')
        verifier = MirrorChecksumVerifier(fetcher, tmp_path / "fetch")
        assert verifier.verify(archive, _foo()) == f"sha256:{file_digest(archive)}"

    def test_checksums_fetched_once(self, tmp_path: Path):
        fetcher, archive = self._mirror(tmp_path, 'Foo-1.2.tar.gz: "sha256:{digest}"\n')
        fetched: list[str] = []
        fetch = fetcher.fetch

        def counting_fetch(artifact, **kwargs):
            fetched.append(artifact.package)
            return fetch(artifact, **kwargs)

        fetcher.fetch = counting_fetch
        assert MirrorChecksumVerifier(fetcher).verify(archive, _foo())
        assert fetched == ["CHECKSUMS"]

    def test_mapping_entry(self, tmp_path: Path):
        fetcher, archive = self._mirror(tmp_path, "Foo-1.2.tar.gz:\n  sha256: {digest}\n  size: 16\n")
        assert MirrorChecksumVerifier(fetcher).verify(archive, _foo())

    def test_mismatch(self, tmp_path: Path):
        fetcher, archive = self._mirror(tmp_path, 'Foo-1.2.tar.gz: "sha256:{digest}"\n')
        archive.write_bytes(b"tampered")
        assert not MirrorChecksumVerifier(fetcher).verify(archive, _foo())

    def test_unlisted_package(self, tmp_path: Path):
        fetcher, archive = self._mirror(tmp_path, 'Other-1.0.tar.gz: "{digest}"\n')
        assert not MirrorChecksumVerifier(fetcher).verify(archive, _foo())

    def test_missing_checksums_file(self, tmp_path: Path):
        archive = tmp_path / "Foo-1.2.tar.gz"
        archive.write_bytes(b"x")
        fetcher = MirrorFetcher(tmp_path / "mirror", tmp_path / "fetch")
        assert not MirrorChecksumVerifier(fetcher).verify(archive, _foo())


# ── Signatures ───────────────────────────────────────────────────────


class TestManifestSignatureVerifier:
    def _signed_dist(self, tmp_path: Path) -> tuple[Path, str]:
        dist = tmp_path / "Foo-1.2"
        (dist / "foo").mkdir(parents=True)
        module = dist / "foo" / "__init__.py"
        module.write_text("VERSION = '1.2'\n")

        key = Ed25519PrivateKey.generate()
        manifest = f"foo/__init__.py {file_digest(module)}\n"
        (dist / "MANIFEST").write_text(manifest)
        (dist / "SIGNATURE").write_text(base64.b64encode(key.sign(manifest.encode())).decode())

        public = key.public_key().public_bytes(
            serialization.Encoding.Raw, serialization.PublicFormat.Raw,
        )
        return dist, base64.b64encode(public).decode()

    def test_valid_signature(self, tmp_path: Path):
        dist, trusted = self._signed_dist(tmp_path)
        assert ManifestSignatureVerifier([trusted]).verify(dist)

    def test_untrusted_key(self, tmp_path: Path):
        dist, _ = self._signed_dist(tmp_path)
        other = Ed25519PrivateKey.generate().public_key().public_bytes(
            serialization.Encoding.Raw, serialization.PublicFormat.Raw,
        )
        assert not ManifestSignatureVerifier([base64.b64encode(other).decode()]).verify(dist)

    def test_tampered_file(self, tmp_path: Path):
        dist, trusted = self._signed_dist(tmp_path)
        (dist / "foo" / "__init__.py").write_text("VERSION = 'evil'\n")
        assert not ManifestSignatureVerifier([trusted]).verify(dist)

    def test_unlisted_file_rejected(self, tmp_path: Path):
        dist, trusted = self._signed_dist(tmp_path)
        (dist / "setup.py").write_text("import os; os.system('boom')\n")
        assert not ManifestSignatureVerifier([trusted]).verify(dist)

    def test_unsigned(self, tmp_path: Path):
        assert not ManifestSignatureVerifier(["abc"]).verify(tmp_path)

    def test_no_trusted_keys(self, tmp_path: Path):
        dist, _ = self._signed_dist(tmp_path)
        assert not ManifestSignatureVerifier([]).verify(dist)


# ── Command builders ─────────────────────────────────────────────────


class TestRunCommand:
    def test_success(self):
        result = run_command([sys.executable, "-c", "print('hi')"])
        assert result["ok"]
        assert result["stdout"].strip() == "hi"

    def test_failure(self):
        result = run_command([sys.executable, "-c", "import sys; sys.exit(3)"])
        assert not result["ok"]
        assert "exit 3" in result["error"]

    def test_missing_binary(self):
        result = run_command(["definitely-not-a-binary-xyz"])
        assert not result["ok"]
        assert "Could not run" in result["error"]


class TestCommandBuilder:
    def _builder(self, **commands) -> CommandBuilder:
        return CommandBuilder(
            "setuptools",
            BuildCommands(descriptor="setup.py", **commands),
            python=sys.executable,
            timeout=60,
        )

    def _dist(self, tmp_path: Path) -> Distribution:
        (tmp_path / "setup.py").write_text("# setup\n")
        return Distribution(artifact="Foo", kind="setuptools", directory=tmp_path)

    def test_phases_run_commands(self, tmp_path: Path):
        builder = self._builder(
            prepare=["{python}", "-c", "print('prepared {name}')"],
            create=["{python}", "-c", "print('built')"],
            install=["{python}", "-c", "print('installed')"],
        )
        dist = self._dist(tmp_path)
        assert builder.prepare(dist, {})
        assert "prepared Foo" in dist.output
        assert builder.create(dist, {"skip_test": True})
        assert builder.install_built(dist, {})
        assert dist.prepared and dist.created and dist.installed

    def test_failed_create(self, tmp_path: Path):
        builder = self._builder(create=["{python}", "-c", "import sys; sys.exit(1)"])
        dist = self._dist(tmp_path)
        assert not builder.create(dist, {})
        assert not dist.created

    def test_tests_run_when_present(self, tmp_path: Path):
        builder = self._builder(test=["{python}", "-c", "import sys; sys.exit(1)"])
        dist = self._dist(tmp_path)
        (tmp_path / "tests").mkdir()
        assert not builder.create(dist, {"skip_test": False})
        assert builder.create(dist, {"skip_test": True})

    def test_prepare_needs_descriptor(self, tmp_path: Path):
        dist = Distribution(artifact="Foo", kind="setuptools", directory=tmp_path)
        assert not self._builder().prepare(dist, {})

    def test_idempotent_per_handle(self, tmp_path: Path):
        builder = self._builder(prepare=["{python}", "-c", "import sys; sys.exit(1)"])
        dist = self._dist(tmp_path)
        dist.prepared = True
        assert builder.prepare(dist, {})

    def test_availability(self):
        assert self._builder(requires_module="json").is_available()
        assert not self._builder(requires_module="no_such_module_xyz").is_available()

    def test_default_builders(self):
        names = [b.name for b in default_builders(sys.executable)]
        assert names == ["setuptools", "pep517"]


# ── Installed index ──────────────────────────────────────────────────


class TestMetadataInstalledIndex:
    def test_installed(self):
        index = MetadataInstalledIndex()
        assert index.installed_version("pytest") is not None
        assert index.installed_file("pytest")

    def test_absent(self):
        index = MetadataInstalledIndex()
        assert index.installed_version("no-such-dist-xyz") is None
        assert index.files_of("no-such-dist-xyz") == []
        assert index.directories_of("no-such-dist-xyz") == []

    def test_meta_scope(self):
        files = MetadataInstalledIndex().files_of("pytest", "meta")
        assert files
        assert all(".dist-info" in f or ".egg-info" in f for f in files)

    def test_prog_excludes_meta(self):
        files = MetadataInstalledIndex().files_of("pytest", "prog")
        assert not any(".dist-info" in f for f in files)

    def test_directories_deepest_first(self):
        dirs = MetadataInstalledIndex().directories_of("pytest")
        depths = [len(Path(d).parts) for d in dirs]
        assert depths == sorted(depths, reverse=True)

    def test_bad_scope(self):
        with pytest.raises(ValueError):
            MetadataInstalledIndex().files_of("pytest", "docs")


# ── Mocks ────────────────────────────────────────────────────────────


class TestMocks:
    def test_fetch_provider_records_calls(self, tmp_path: Path):
        fetcher = MockFetchProvider(tmp_path)
        path = fetcher.fetch(_foo())
        assert path.is_file()
        assert fetcher.call_count == 1

    def test_fetch_provider_failure(self, tmp_path: Path):
        fetcher = MockFetchProvider(tmp_path)
        fetcher.set_failure("Foo-1.2.tar.gz")
        with pytest.raises(FetchError):
            fetcher.fetch(_foo())

    def test_extractor_writes_contents(self, tmp_path: Path):
        extractor = MockExtractor(tmp_path / "build")
        extractor.set_contents("Foo-1.2.tar.gz", {"docs/README.md": "# hi\n"})
        root = extractor.extract(tmp_path / "Foo-1.2.tar.gz")
        assert (root / "docs" / "README.md").read_text() == "# hi\n"

    def test_builder_phase_log(self, tmp_path: Path):
        builder = MockBuilder("setuptools")
        dist = Distribution(artifact="Foo", kind="setuptools", directory=tmp_path)
        builder.prepare(dist, {})
        builder.set_failure("create", "Foo")
        assert not builder.create(dist, {})
        assert builder.calls("prepare") == ["Foo"]
        assert builder.call_count == 2
