"""
Domain models — artifacts, their status, versions and results.

All models are re-exported here for convenient access:

    from parcel.core.models import Artifact, ArtifactStatus, VersionSpec, StageResult
"""

from parcel.core.models.artifact import Artifact, Author
from parcel.core.models.config import HostConfig
from parcel.core.models.result import BatchReport, StageResult
from parcel.core.models.status import (
    ArtifactStatus,
    BuildTarget,
    Distribution,
    InstallerKind,
    Verification,
)
from parcel.core.models.version import VersionSpec

__all__ = [
    # artifact.py
    "Artifact",
    "ArtifactStatus",
    "Author",
    # result.py
    "BatchReport",
    "BuildTarget",
    "Distribution",
    # config.py
    "HostConfig",
    "InstallerKind",
    "StageResult",
    # status.py
    "Verification",
    # version.py
    "VersionSpec",
]
