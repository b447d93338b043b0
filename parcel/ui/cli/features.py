"""
CLI commands for parcel's optional features.

Usage::

    parcel features list
    parcel features list --json
    parcel features modules signature
"""

from __future__ import annotations

import json
import sys

import click

from parcel.ui.cli.common import get_context


@click.group()
def features() -> None:
    """Features — what parcel can do and what each one needs."""


@features.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_features(ctx: click.Context, as_json: bool) -> None:
    """List features, whether they are enabled, and their modules."""
    from parcel.core.services.lifecycle import FEATURES, DependencySetResolver

    resolver = DependencySetResolver(get_context(ctx))
    rows = [
        {
            "name": name,
            "enabled": resolver.is_feature_enabled(name),
            "modules": resolver.modules_for_feature(name),
            "description": FEATURES[name].description,
        }
        for name in resolver.list_features()
    ]

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    for row in rows:
        marker = click.style("on ", fg="green") if row["enabled"] else click.style("off", fg="white")
        modules = ", ".join(f"{m}>={v}" for m, v in row["modules"].items()) or "nothing"
        click.echo(f"  [{marker}] {row['name']:<18} {row['description']}")
        click.echo(f"        needs: {modules}")


@features.command("modules")
@click.argument("name")
@click.pass_context
def feature_modules(ctx: click.Context, name: str) -> None:
    """Show the modules feature NAME needs under the current configuration."""
    from parcel.core.errors import UnknownFeatureError
    from parcel.core.services.lifecycle import DependencySetResolver

    resolver = DependencySetResolver(get_context(ctx))
    try:
        modules = resolver.modules_for_feature(name)
    except UnknownFeatureError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if not modules:
        click.echo(f"'{name}' needs nothing under the current configuration.")
        return
    for module, version in modules.items():
        click.echo(f"  {module:<20} >= {version}")
