"""
L2 Resolver — turns update scopes into artifact work lists.
"""

from parcel.core.services.lifecycle.resolver.dependency_sets import (  # noqa: F401
    ALL_ORDER,
    DependencySetEntry,
    DependencySetResolver,
    UpdateScope,
)
