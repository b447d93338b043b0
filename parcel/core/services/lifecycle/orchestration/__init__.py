"""
L5 Orchestration — top-level coordinators.

These tie everything together: the per-artifact pipeline, bundle
expansion and self-update.
"""

from parcel.core.services.lifecycle.orchestration.bundle import (  # noqa: F401
    BundleExpander,
    BundleExpansion,
)
from parcel.core.services.lifecycle.orchestration.orchestrator import (  # noqa: F401
    LifecycleOrchestrator,
)
from parcel.core.services.lifecycle.orchestration.selfupdate import (  # noqa: F401
    SelfUpdateDriver,
)
