"""
L4 Execution — ``__init__.py`` re-exports all stage functions.

These functions WRITE to the system: fetched archives, extracted trees,
builds, installs and removals.
"""

from parcel.core.services.lifecycle.execution.removal import uninstall  # noqa: F401
from parcel.core.services.lifecycle.execution.stages import (  # noqa: F401
    build,
    classify,
    extract,
    fetch,
    install_built,
    readme,
    submit_report,
    verify_signature,
)
