"""
L1 Domain — bundle manifest parsing (pure).

A bundle ships a CONTENTS section listing its members, one per line::

    ## CONTENTS

    Foo 1.2 - the foo library
    Bar
    Baz - no version, any will do

The section ends at the next heading. No I/O; callers hand in the text.
"""

from __future__ import annotations

from parcel.core.services.lifecycle.data.constants import CONTENTS_HEADING, HEADING_PREFIXES


def _heading_text(line: str) -> str | None:
    """Text of a heading line, or None when *line* is not a heading."""
    if line.startswith("=head"):
        # =head1 CONTENTS
        _, _, text = line.partition(" ")
        return text.strip()
    if line.startswith("#"):
        return line.lstrip("#").strip()
    return None


def parse_contents(text: str) -> list[tuple[str, str]]:
    """``(name, version)`` pairs from every CONTENTS section in *text*.

    A missing version, or a bare ``-``, becomes ``"0"``. Order is kept and
    duplicates are left to the caller.
    """
    entries: list[tuple[str, str]] = []
    in_contents = False
    for raw in text.splitlines():
        line = raw.rstrip()
        if line.startswith(HEADING_PREFIXES):
            in_contents = (_heading_text(line) or "").upper() == CONTENTS_HEADING
            continue
        if not in_contents or not line.strip() or line.startswith("="):
            continue

        tokens = line.split()
        name = tokens[0]
        version = tokens[1] if len(tokens) > 1 and tokens[1] != "-" else "0"
        entries.append((name, version))
    return entries
