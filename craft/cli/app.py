from __future__ import annotations

import os
from pathlib import Path

import typer

from craft import __version__
from craft.cli.commands.changelog_cmd import changelog
from craft.cli.commands.prepare_cmd import prepare
from craft.cli.commands.publish_cmd import publish
from craft.cli.commands.targets_cmd import targets
from craft.cli.commands.workspaces_cmd import workspaces
from craft.cli.context import CONFIG_ENV, DRY_RUN_ENV, NO_INPUT_ENV
from craft.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(prepare)
app.command()(publish)
app.command()(changelog)
app.command()(targets)
app.command()(workspaces)


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True, callback=_show_version
    ),
    config: Path | None = typer.Option(
        None, "--config", help="Configuration file (default: ./.craft.toml)"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", envvar=DRY_RUN_ENV, help="Log mutations instead of performing them"
    ),
    no_input: bool = typer.Option(
        False, "--no-input", envvar=NO_INPUT_ENV, help="Never prompt; assume yes"
    ),
) -> None:
    if config is not None:
        try:
            path = config.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --config: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

        if not path.is_file():
            typer.echo(f"error: --config '{path}' does not exist", err=True)
            raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

        os.environ[CONFIG_ENV] = str(path)

    if dry_run:
        os.environ[DRY_RUN_ENV] = "1"
    if no_input:
        os.environ[NO_INPUT_ENV] = "1"


def main() -> None:
    app()
