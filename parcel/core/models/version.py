"""
VersionSpec — comparable version values.

Versions on the mirror are loose dotted strings (``1.2``, ``0.04``,
``v2.0.1``, ``1.2_01``). They are reduced to a tuple of integers so that
any two values are orderable. Anything that yields no digits compares as
the minimum.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import ClassVar

_DIGITS_RE = re.compile(r"\d+")


def _normalise(parts: tuple[int, ...]) -> tuple[int, ...]:
    """Strip trailing zeros so ``1.0`` and ``1`` compare equal."""
    end = len(parts)
    while end > 0 and parts[end - 1] == 0:
        end -= 1
    return parts[:end]


@total_ordering
@dataclass(frozen=True)
class VersionSpec:
    """An immutable, totally ordered version number."""

    parts: tuple[int, ...] = ()
    raw: str = ""

    ZERO: ClassVar[VersionSpec]

    @classmethod
    def parse(cls, value: str | int | float | VersionSpec | None) -> VersionSpec:
        """Parse a loose version string. ``None`` and junk become ``ZERO``."""
        if isinstance(value, VersionSpec):
            return value
        if value is None:
            return cls.ZERO
        text = str(value).strip()
        digits = tuple(int(d) for d in _DIGITS_RE.findall(text))
        return cls(parts=_normalise(digits), raw=text)

    @staticmethod
    def is_version_sufficient(
        installed: VersionSpec | str | None,
        required: VersionSpec | str | None,
    ) -> bool:
        """True iff *installed* >= *required*; absent installed counts as zero."""
        return VersionSpec.parse(installed) >= VersionSpec.parse(required)

    @property
    def is_zero(self) -> bool:
        return not self.parts

    def _key(self) -> tuple[int, ...]:
        return self.parts

    def __eq__(self, other: object) -> bool:
        if isinstance(other, (str, int, float)) or other is None:
            other = VersionSpec.parse(other)
        if not isinstance(other, VersionSpec):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: object) -> bool:
        if isinstance(other, (str, int, float)) or other is None:
            other = VersionSpec.parse(other)
        if not isinstance(other, VersionSpec):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        if self.raw:
            return self.raw
        return ".".join(str(p) for p in self.parts) or "0"

    def __repr__(self) -> str:
        return f"VersionSpec({str(self)!r})"


VersionSpec.ZERO = VersionSpec()
