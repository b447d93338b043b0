"""
Bundle manifests: CONTENTS parsing and member resolution.
"""

import pytest

from parcel.core.errors import ErrorKind, LifecycleError
from parcel.core.services.lifecycle import BundleExpander, LifecycleOrchestrator
from parcel.core.services.lifecycle.domain import parse_contents

README = """\
# Bundle-Tools

Everything you need.

## CONTENTS

Foo 1.2 - the foo library
Bar
Nope 3.0

## AUTHOR

Jos
"""


class TestParseContents:
    def test_markdown_section(self):
        assert parse_contents(README) == [("Foo", "1.2"), ("Bar", "0"), ("Nope", "3.0")]

    def test_dash_means_any_version(self):
        assert parse_contents("## CONTENTS\nFoo - frobs\n") == [("Foo", "0")]

    def test_pod_section(self):
        text = "=head1 NAME\n\nBundle\n\n=head1 CONTENTS\n\nFoo 1.0\n\n=cut\n\n=head1 SEE ALSO\nBar\n"
        assert parse_contents(text) == [("Foo", "1.0")]

    def test_no_section(self):
        assert parse_contents("# Title\nFoo 1.0\n") == []

    def test_heading_is_case_insensitive(self):
        assert parse_contents("### Contents\nBaz 2\n") == [("Baz", "2")]


def _extract_bundle(octx, catalog, files):
    bundle = catalog.get("Bundle-Tools")
    octx.extractor.set_contents("Bundle-Tools-1.0.tar.gz", files)
    orch = LifecycleOrchestrator(octx)
    orch.fetch(bundle)
    orch.extract(bundle)
    return bundle


class TestBundleExpander:
    def test_resolves_members_in_order(self, octx, catalog):
        bundle = _extract_bundle(octx, catalog, {"README.md": README})
        expansion = BundleExpander(octx).expand(bundle)

        assert [a.name for a in expansion.artifacts] == ["Foo", "Bar"]
        assert bundle.status.prereqs == {"Foo": "1.2", "Bar": "0"}

    def test_unknown_member_warns(self, octx, catalog):
        bundle = _extract_bundle(octx, catalog, {"README.md": README})
        expansion = BundleExpander(octx).expand(bundle)
        assert expansion.warnings == [
            "Cannot find bundled artifact 'Nope'; it does not seem to exist",
        ]

    def test_duplicates_keep_first(self, octx, catalog):
        bundle = _extract_bundle(octx, catalog, {
            "a.txt": "## CONTENTS\nBaz 1.0\n",
            "b.txt": "## CONTENTS\nBaz 2.0\nFoo\n",
        })
        expansion = BundleExpander(octx).expand(bundle)
        assert [a.name for a in expansion.artifacts] == ["Baz", "Foo"]
        assert expansion.prereqs["Baz"] == "1.0"

    def test_ignores_other_file_types(self, octx, catalog):
        bundle = _extract_bundle(octx, catalog, {"data.json": "## CONTENTS\nFoo\n"})
        assert BundleExpander(octx).expand(bundle).artifacts == []

    def test_not_a_bundle(self, octx, catalog):
        with pytest.raises(LifecycleError) as exc:
            BundleExpander(octx).expand(catalog.get("Foo"))
        assert exc.value.kind is ErrorKind.PRECONDITION_FAILED

    def test_not_extracted(self, octx, catalog):
        with pytest.raises(LifecycleError, match="has not been extracted"):
            BundleExpander(octx).expand(catalog.get("Bundle-Tools"))
