from __future__ import annotations

import typer

from craft.cli.commands._common import exit_on_error
from craft.cli.context import build_context
from craft.output.console import Style
from craft.publish.orchestrator import expand_targets


def targets() -> None:
    """List the configured publish targets (workspaces expanded)."""
    cli = build_context(stderr=True)

    expanded = exit_on_error(expand_targets(cli.execution, cli.config.targets, cli.root), cli)
    if not expanded:
        cli.console.warning("no targets configured")
        return

    for target in expanded:
        typer.echo(target.display_id)
        prefix = target.option_str("tag_prefix")
        if prefix:
            cli.console.print(f"  tag prefix: {prefix}", Style.DIM)
