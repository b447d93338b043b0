"""
L5 Orchestration — bundle expansion.

A bundle is an artifact whose only job is to pull in others. Its members
are listed in a CONTENTS section of one of the text files it ships; they
only become known after the bundle has been extracted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from parcel.core.errors import ErrorKind, LifecycleError
from parcel.core.models.artifact import Artifact
from parcel.core.services.lifecycle.data.constants import BUNDLE_MANIFEST_SUFFIXES
from parcel.core.services.lifecycle.domain.bundle_manifest import parse_contents

if TYPE_CHECKING:
    from parcel.core.context import OrchestrationContext

logger = logging.getLogger(__name__)


@dataclass
class BundleExpansion:
    """Members of one bundle, in the order they were listed."""

    artifacts: list[Artifact] = field(default_factory=list)
    prereqs: dict[str, str] = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)


class BundleExpander:
    """Reads a bundle's member list out of its extracted tree."""

    def __init__(self, ctx: OrchestrationContext):
        self._ctx = ctx

    @staticmethod
    def manifest_files(directory: Path) -> list[Path]:
        return sorted(
            p for p in directory.rglob("*")
            if p.is_file() and p.suffix.lower() in BUNDLE_MANIFEST_SUFFIXES
        )

    def expand(self, artifact: Artifact) -> BundleExpansion:
        """Resolve the members of *artifact* and record them as its prereqs.

        Members missing from the catalog are skipped with a warning; a
        member listed twice keeps its first entry.

        Raises:
            LifecycleError: ``PRECONDITION_FAILED`` if *artifact* is not a
                bundle or has not been extracted.
        """
        if not artifact.is_bundle:
            raise LifecycleError(
                f"'{artifact.name}' is not a bundle", ErrorKind.PRECONDITION_FAILED,
            )
        extracted = artifact.status.extracted_path
        if not extracted:
            raise LifecycleError(
                f"Bundle '{artifact.name}' has not been extracted", ErrorKind.PRECONDITION_FAILED,
            )

        expansion = BundleExpansion()
        seen: set[str] = set()
        for path in self.manifest_files(Path(extracted)):
            try:
                text = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.warning("Cannot read %s: %s", path, e)
                continue

            for name, version in parse_contents(text):
                member = self._ctx.catalog.get(name)
                if member is None:
                    msg = f"Cannot find bundled artifact '{name}'; it does not seem to exist"
                    logger.warning(msg)
                    expansion.warnings.append(msg)
                    continue
                if member.name in seen:
                    continue
                seen.add(member.name)
                expansion.artifacts.append(member)
                expansion.prereqs[name] = version

        artifact.status.prereqs = dict(expansion.prereqs)
        logger.debug(
            "Bundle '%s' lists %d artifact(s): %s",
            artifact.name, len(expansion.artifacts),
            ", ".join(a.name for a in expansion.artifacts),
        )
        return expansion
