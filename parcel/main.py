"""
parcel — CLI entrypoint.

Usage:
    python -m parcel.main --help
    parcel install Foo Bar
    parcel uninstall Foo --scope prog
    parcel selfupdate all --latest
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from parcel import __version__
from parcel.core.observability.logging_config import cli_level, setup_logging
from parcel.ui.cli.common import echo_report, echo_result, get_context, record


@click.group()
@click.version_option(version=__version__, prog_name="parcel")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to parcel.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """parcel — fetch, build and install distributions from a local mirror."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=cli_level(verbose=verbose, quiet=quiet, debug=debug),
        quiet_third_party=not debug,
    )


def _lookup(octx, names: tuple[str, ...]):
    """Catalog artifacts for *names*; unknown names are reported as failures."""
    from parcel.core.errors import ErrorKind
    from parcel.core.models.result import StageResult

    found, missing = [], []
    for name in names:
        artifact = octx.catalog.get(name)
        if artifact is None:
            missing.append(StageResult.failure(
                name, "lookup", ErrorKind.PRECONDITION_FAILED,
                f"'{name}' is not in the catalog",
            ))
        else:
            found.append(artifact)
    return found, missing


# ── Install ─────────────────────────────────────────────────────


@cli.command()
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--target",
    type=click.Choice(["prepare", "create", "install"]),
    default="install",
    show_default=True,
    help="How far to take each artifact.",
)
@click.option("--force", is_flag=True, help="Re-run every stage.")
@click.option("--skip-test", is_flag=True, help="Do not run test suites.")
@click.option("--format", "dist_format", default="", help="Builder backend to use.")
@click.option(
    "--from", "fetch_from", type=click.Path(exists=True), default=None,
    help="Fetch the archive from this file or directory instead of the mirror.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    names: tuple[str, ...],
    target: str,
    force: bool,
    skip_test: bool,
    dist_format: str,
    fetch_from: str | None,
    as_json: bool,
) -> None:
    """Install one or more artifacts.

    Examples::

        parcel install Foo
        parcel install Foo --target create --skip-test
        parcel install Bundle-Tools --force
    """
    from parcel.core.models.result import BatchReport
    from parcel.core.services.lifecycle import LifecycleOrchestrator

    octx = get_context(ctx)
    orchestrator = LifecycleOrchestrator(octx)
    artifacts, missing = _lookup(octx, names)

    report = BatchReport(operation="install", results=list(missing))
    for artifact in artifacts:
        report.results.append(orchestrator.install(
            artifact,
            target=target,
            force=force or None,
            skip_test=skip_test or None,
            format=dist_format,
            fetch_from=fetch_from,
        ))

    record(octx, report, {"target": target, "force": force})
    echo_report(report, as_json, quiet=ctx.obj.get("quiet", False))


# ── Uninstall ───────────────────────────────────────────────────


@cli.command()
@click.argument("names", nargs=-1, required=True)
@click.option(
    "--scope",
    type=click.Choice(["all", "prog", "meta"]),
    default="all",
    show_default=True,
    help="Which files to remove.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def uninstall(ctx: click.Context, names: tuple[str, ...], scope: str, as_json: bool) -> None:
    """Remove installed artifacts."""
    from parcel.core.models.result import BatchReport
    from parcel.core.services.lifecycle import LifecycleOrchestrator

    octx = get_context(ctx)
    orchestrator = LifecycleOrchestrator(octx)
    artifacts, missing = _lookup(octx, names)

    report = BatchReport(operation="uninstall", results=list(missing))
    for artifact in artifacts:
        report.results.append(orchestrator.uninstall(artifact, scope))

    record(octx, report, {"scope": scope})
    echo_report(report, as_json, quiet=ctx.obj.get("quiet", False))


# ── Self-update ─────────────────────────────────────────────────


@cli.command()
@click.argument("update", default="all")
@click.option("--latest", is_flag=True, help="Install the latest releases, not just what is required.")
@click.option("--force", is_flag=True, help="Re-run every stage.")
@click.option("--dry-run", is_flag=True, help="Show the work list without installing.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def selfupdate(
    ctx: click.Context,
    update: str,
    latest: bool,
    force: bool,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Update parcel's own requirements.

    UPDATE is core, dependencies, enabled_features, features, all, or
    the name of a single feature.
    """
    from parcel.core.errors import UnknownFeatureError
    from parcel.core.services.lifecycle import SelfUpdateDriver

    driver = SelfUpdateDriver(get_context(ctx))
    try:
        if dry_run:
            entries = driver.work_list(update, latest=latest)
        else:
            report = driver.selfupdate(update, latest=latest, force=force or None)
    except UnknownFeatureError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if dry_run:
        if as_json:
            click.echo(json.dumps(
                [{"name": e.name, "required": str(e.version_required)} for e in entries],
                indent=2,
            ))
        elif not entries:
            click.echo("Nothing to update.")
        else:
            for entry in entries:
                click.echo(f"  • {entry.name} >= {entry.version_required}")
        return

    echo_report(report, as_json, quiet=ctx.obj.get("quiet", False))


# ── Queries ─────────────────────────────────────────────────────


@cli.command()
@click.argument("name")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def details(ctx: click.Context, name: str, as_json: bool) -> None:
    """Show what the catalog and the host know about NAME."""
    from parcel.core.services.lifecycle import LifecycleOrchestrator

    octx = get_context(ctx)
    artifact = octx.catalog.get(name)
    if artifact is None:
        click.secho(f"❌ '{name}' is not in the catalog", fg="red", err=True)
        sys.exit(1)

    info = LifecycleOrchestrator(octx).details(artifact)
    if as_json:
        click.echo(json.dumps(info, indent=2))
        return

    click.secho(f"\n📦 {artifact.name}", fg="cyan", bold=True)
    width = max(len(k) for k in info)
    for key, value in info.items():
        click.echo(f"   {key:<{width}}  {value}")


@cli.command()
@click.argument("name")
@click.pass_context
def readme(ctx: click.Context, name: str) -> None:
    """Print the readme published for NAME."""
    from parcel.core.services.lifecycle import LifecycleOrchestrator

    octx = get_context(ctx)
    artifact = octx.catalog.get(name)
    if artifact is None:
        click.secho(f"❌ '{name}' is not in the catalog", fg="red", err=True)
        sys.exit(1)

    result = LifecycleOrchestrator(octx).readme(artifact)
    if result.failed:
        echo_result(result)
        sys.exit(1)
    click.echo(result.output)


# ── Register command groups ─────────────────────────────────────

from parcel.ui.cli.features import features  # noqa: E402

cli.add_command(features)


def main() -> None:
    """Entry point for ``python -m parcel.main``."""
    cli(obj={})


if __name__ == "__main__":
    main()
