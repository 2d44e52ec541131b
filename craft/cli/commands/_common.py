"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from craft.core.errors import CraftError, ErrorCode
from craft.core.result import Err, Result
from craft.output.errors import error_exit_code, print_error

if TYPE_CHECKING:
    from craft.cli.context import CLIContext


def exit_on_error[T](result: Result[T, CraftError], cli: CLIContext) -> T:
    """Return the value of an Ok, or print the error and exit.

    The exit code follows the error type (see `ErrorCode`).
    """
    if isinstance(result, Err):
        print_error(result.error, cli.console)
        raise typer.Exit(code=error_exit_code(result.error))
    return result.value


def exit_with(message: str, *, code: ErrorCode) -> NoReturn:
    typer.echo(f"error: {message}", err=True)
    raise typer.Exit(code=int(code))
