"""
L0 Data — constants and the self-update feature table.

Pure data: no I/O at import time.
"""

from parcel.core.services.lifecycle.data.constants import (  # noqa: F401
    BUNDLE_MANIFEST_SUFFIXES,
    CONTENTS_HEADING,
    README_SUFFIX,
    UNINSTALL_SCOPES,
)
from parcel.core.services.lifecycle.data.feature_schema import (  # noqa: F401
    Computed,
    FeatureDescriptor,
    Requirements,
    Static,
)
from parcel.core.services.lifecycle.data.features import (  # noqa: F401
    CORE_REQUIREMENTS,
    DEPENDENCY_REQUIREMENTS,
    FEATURES,
)
