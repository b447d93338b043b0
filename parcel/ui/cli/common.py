"""
Shared helpers for CLI commands — context loading and result output.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from parcel.core.models.result import BatchReport, StageResult
from parcel.core.persistence.audit import AuditEntry

_ICONS = {"ok": "✅", "skipped": "⏭️ ", "failed": "❌"}
_COLORS = {"ok": "green", "skipped": "yellow", "failed": "red", "partial": "yellow"}


def get_context(ctx: click.Context):
    """The orchestration context for this invocation.

    Built once from the config file (``--config`` or auto-detected) and
    cached on the click context. Tests can pre-seed ``obj["context"]``.
    """
    from parcel.core.config.loader import ConfigError, load_or_default
    from parcel.core.context import create_context

    if ctx.obj.get("context") is not None:
        return ctx.obj["context"]

    config_path: Path | None = ctx.obj.get("config_path")
    try:
        config = load_or_default(config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    ctx.obj["context"] = create_context(config)
    return ctx.obj["context"]


def echo_result(result: StageResult, quiet: bool = False) -> None:
    icon = _ICONS.get(result.status, "•")
    color = _COLORS.get(result.status, "white")
    message = result.error if result.failed else result.output
    if result.skipped and quiet:
        return
    click.secho(f"{icon} {result.artifact}: {message}", fg=color)
    for warning in result.warnings:
        click.secho(f"   ⚠️  {warning}", fg="yellow")


def echo_report(report: BatchReport, as_json: bool, quiet: bool = False) -> None:
    """Print *report* and exit 1 if anything failed."""
    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        for result in report.results:
            echo_result(result, quiet=quiet)
        if not quiet:
            click.echo()
            click.secho(
                f"{report.operation}: {report.succeeded} ok, {report.skipped} skipped, "
                f"{report.failed} failed",
                fg=_COLORS.get(report.status, "white"),
                bold=True,
            )
    if not report.all_ok:
        sys.exit(1)


def record(octx, report: BatchReport, context: dict | None = None) -> None:
    """Write one ledger entry for a CLI operation."""
    if octx.ledger is None:
        return
    octx.ledger.write(AuditEntry(
        operation_type=report.operation,
        artifacts=[r.artifact for r in report.results],
        status=report.status,
        total=report.total,
        succeeded=report.succeeded + report.skipped,
        failed=report.failed,
        errors=[f"{r.artifact}: {r.error}" for r in report.results if r.failed],
        context=context or {},
    ))
