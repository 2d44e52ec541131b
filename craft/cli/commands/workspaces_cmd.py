from __future__ import annotations

import typer

from craft.cli.commands._common import exit_on_error, exit_with
from craft.cli.context import build_context
from craft.core.errors import ErrorCode
from craft.output.console import Style
from craft.workspaces.discovery import discover
from craft.workspaces.graph import filter_packages, topological_sort


def workspaces(
    include: str | None = typer.Option(None, "--include", help="Only packages matching"),
    exclude: str | None = typer.Option(None, "--exclude", help="Skip packages matching"),
) -> None:
    """List workspace packages in publish order."""
    cli = build_context(stderr=True)

    discovery = discover(cli.root)
    cli.console.print(f"workspace type: {discovery.type}", Style.DIM)

    try:
        packages = filter_packages(discovery.packages, include, exclude)
    except ValueError as e:
        exit_with(str(e), code=ErrorCode.CONFIG_ERROR)

    ordered = exit_on_error(topological_sort(packages), cli)
    for package in ordered:
        suffix = " (private)" if package.is_private else ""
        typer.echo(f"{package.name}{suffix}")
