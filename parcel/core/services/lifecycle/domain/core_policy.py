"""
L1 Domain — runtime-core artifact policy (pure).

Artifacts bundled with the Python runtime belong to the runtime. parcel
only ever upgrades them; it never reinstalls or downgrades one whose
installed version already satisfies the requirement.
"""

from __future__ import annotations

from parcel.core.models.version import VersionSpec


def protected_reason(
    name: str,
    required: VersionSpec,
    installed: VersionSpec | None,
    core_artifacts: dict[str, str],
) -> str | None:
    """Why installing *name* must be refused, or None if it may proceed.

    An absent installed version of a core artifact means the copy bundled
    with the runtime, as listed in *core_artifacts*.
    """
    if name not in core_artifacts:
        return None

    effective = installed if installed is not None else VersionSpec.parse(core_artifacts[name])
    if effective > required:
        return (
            f"'{name}' is a runtime core artifact and the installed version "
            f"{effective} is newer than {required}; not touching it"
        )
    if effective == required:
        return (
            f"'{name}' is a runtime core artifact and version {effective} "
            f"is already installed; not touching it"
        )
    return None
