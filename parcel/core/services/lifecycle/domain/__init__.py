"""
L1 Domain — ``__init__.py`` re-exports all pure domain functions.

These functions have NO subprocess calls, NO filesystem access,
NO network calls. Pure input→output.
"""

from parcel.core.services.lifecycle.domain.bundle_manifest import parse_contents  # noqa: F401
from parcel.core.services.lifecycle.domain.classification import choose_installer  # noqa: F401
from parcel.core.services.lifecycle.domain.core_policy import protected_reason  # noqa: F401
