"""
Builder registry — lookup of builder backends by name.

The lifecycle never instantiates a backend itself: classification picks a
kind, and the registry answers which backend builds it and whether that
backend can run on this host.
"""

from __future__ import annotations

import logging
from typing import Any

from parcel.adapters.base import BuilderBackend

logger = logging.getLogger(__name__)


class BuilderRegistry:
    """Central registry of builder backends."""

    def __init__(self, backends: list[BuilderBackend] | None = None):
        self._backends: dict[str, BuilderBackend] = {}
        for backend in backends or []:
            self.register(backend)

    def register(self, backend: BuilderBackend) -> None:
        """Register *backend* under its name, replacing any previous one."""
        name = backend.name
        if name in self._backends:
            logger.warning("Overwriting existing builder backend: %s", name)
        self._backends[name] = backend
        logger.debug("Registered builder backend: %s", name)

    def unregister(self, name: str) -> None:
        self._backends.pop(name, None)

    def get(self, name: str) -> BuilderBackend | None:
        return self._backends.get(name)

    def names(self) -> list[str]:
        return list(self._backends.keys())

    def is_available(self, name: str) -> bool:
        """Whether *name* is registered and runnable on this host."""
        backend = self._backends.get(name)
        if backend is None:
            return False
        try:
            return backend.is_available()
        except Exception as e:
            logger.debug("Availability check for %s raised: %s", name, e)
            return False

    def available(self) -> list[str]:
        """Names of the backends that can run here."""
        return [name for name in self._backends if self.is_available(name)]

    def backend_status(self) -> dict[str, dict[str, Any]]:
        return {
            name: {
                "name": name,
                "available": self.is_available(name),
                "descriptor": backend.descriptor,
                "type": backend.__class__.__name__,
            }
            for name, backend in self._backends.items()
        }
