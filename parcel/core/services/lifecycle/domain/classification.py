"""
L1 Domain — build-system classification (pure).

Decides which builder backend handles an extracted distribution from
which descriptor files it ships. No I/O.
"""

from __future__ import annotations

from parcel.core.models.status import InstallerKind


def choose_installer(
    prefer_setuptools: bool,
    has_setuptools: bool,
    has_pep517: bool,
    pep517_available: bool,
) -> tuple[InstallerKind, str | None]:
    """Pick the installer kind for a distribution.

    Rules, first match wins:

    1. setuptools not preferred and ``pyproject.toml`` present → pep517
    2. ``pyproject.toml`` present and no ``setup.py``          → pep517
    3. setuptools preferred and ``setup.py`` present           → setuptools
    4. ``setup.py`` present and no ``pyproject.toml``          → setuptools
    5. neither descriptor present → setuptools, with a warning

    A pep517 pick on a host without the PEP 517 front-end falls back to
    setuptools, with a warning.

    Args:
        prefer_setuptools: Host preference for ``setup.py`` builds.
        has_setuptools: ``setup.py`` exists in the distribution.
        has_pep517: ``pyproject.toml`` exists in the distribution.
        pep517_available: The PEP 517 builder can run on this host.

    Returns:
        ``(kind, warning)``; *warning* is None when the choice was clean.
    """
    if not prefer_setuptools and has_pep517:
        kind = InstallerKind.PEP517
    elif has_pep517 and not has_setuptools:
        kind = InstallerKind.PEP517
    elif prefer_setuptools and has_setuptools:
        kind = InstallerKind.SETUPTOOLS
    elif has_setuptools and not has_pep517:
        kind = InstallerKind.SETUPTOOLS
    else:
        return (
            InstallerKind.SETUPTOOLS,
            "No setup.py or pyproject.toml found; assuming a setuptools build",
        )

    if kind is InstallerKind.PEP517 and not pep517_available:
        return (
            InstallerKind.SETUPTOOLS,
            "pyproject.toml build requested but the PEP 517 builder is not "
            "available; falling back to setuptools",
        )
    return kind, None
