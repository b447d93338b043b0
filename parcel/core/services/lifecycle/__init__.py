"""
Artifact lifecycle service — package re-exports.

Each symbol lives in its single-responsibility module inside the
appropriate onion layer (data → domain → resolver → execution →
orchestration)::

    from parcel.core.services.lifecycle import LifecycleOrchestrator
"""

# ── L0: Data ──
from parcel.core.services.lifecycle.data.features import FEATURES  # noqa: F401

# ── L1: Domain ──
from parcel.core.services.lifecycle.domain.classification import choose_installer  # noqa: F401

# ── L2: Resolver ──
from parcel.core.services.lifecycle.resolver.dependency_sets import (  # noqa: F401
    DependencySetEntry,
    DependencySetResolver,
    UpdateScope,
)

# ── L5: Orchestration ──
from parcel.core.services.lifecycle.orchestration.bundle import BundleExpander  # noqa: F401
from parcel.core.services.lifecycle.orchestration.orchestrator import (  # noqa: F401
    LifecycleOrchestrator,
)
from parcel.core.services.lifecycle.orchestration.selfupdate import SelfUpdateDriver  # noqa: F401
