"""
StageResult and BatchReport — the outcome contract of the lifecycle.

Stages return results, they never raise. A result is ``ok``,
``skipped`` (the cached result already satisfied the request, or policy
declined to act) or ``failed``. Skipped results count as success.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from parcel.core.errors import ErrorKind


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StageResult(BaseModel):
    """Result of running one stage (or a whole install) for one artifact."""

    artifact: str
    stage: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    finished_at: str = Field(default_factory=_now_iso)

    output: str = ""
    error: str | None = None
    error_kind: ErrorKind | None = None
    warnings: list[str] = Field(default_factory=list)
    children: list[StageResult] = Field(default_factory=list)

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @property
    def succeeded(self) -> bool:
        """Anything that is not a failure."""
        return not self.failed

    @classmethod
    def success(
        cls,
        artifact: str,
        stage: str,
        output: str = "",
        **kwargs: Any,
    ) -> StageResult:
        return cls(artifact=artifact, stage=stage, status="ok", output=output, **kwargs)

    @classmethod
    def failure(
        cls,
        artifact: str,
        stage: str,
        kind: ErrorKind,
        error: str,
        **kwargs: Any,
    ) -> StageResult:
        return cls(
            artifact=artifact,
            stage=stage,
            status="failed",
            error=error,
            error_kind=kind,
            **kwargs,
        )

    @classmethod
    def skip(
        cls,
        artifact: str,
        stage: str,
        reason: str = "",
        **kwargs: Any,
    ) -> StageResult:
        return cls(artifact=artifact, stage=stage, status="skipped", output=reason, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"metadata"})
        data["metadata"] = {
            k: v for k, v in self.metadata.items()
            if isinstance(v, (str, int, float, bool, list, dict, type(None)))
        }
        return data


@dataclass
class BatchReport:
    """Aggregate of several install attempts (self-update, bundle)."""

    operation: str = ""
    results: list[StageResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.skipped)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def all_ok(self) -> bool:
        return self.failed == 0

    @property
    def status(self) -> str:
        if self.failed == 0:
            return "ok"
        if self.succeeded > 0:
            return "partial"
        return "failed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.operation,
            "status": self.status,
            "total": self.total,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }
