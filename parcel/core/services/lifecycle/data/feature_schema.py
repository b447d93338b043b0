"""
L0 Data — shape of a self-update feature.

A feature's requirements are either a fixed module map or a function of
the orchestration context. The two cases are separate types and callers
resolve them with ``match``:

    match descriptor.requirements:
        case Static(modules):
            ...
        case Computed(producer):
            ...
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from parcel.core.context import OrchestrationContext

ModuleMap = dict[str, str]   # artifact name → minimum version


@dataclass(frozen=True)
class Static:
    """Requirements that never depend on configuration."""

    modules: ModuleMap = field(default_factory=dict)


@dataclass(frozen=True)
class Computed:
    """Requirements derived from the context; None means "needs nothing"."""

    producer: Callable[[OrchestrationContext], ModuleMap | None]


Requirements = Union[Static, Computed]

EnabledPredicate = Callable[["OrchestrationContext"], bool]


def _always(ctx: OrchestrationContext) -> bool:
    return True


@dataclass(frozen=True)
class FeatureDescriptor:
    """One optional feature of parcel itself."""

    name: str
    requirements: Requirements
    enabled: EnabledPredicate = _always
    description: str = ""
