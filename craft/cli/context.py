from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from craft.core.config import CONFIG_FILE_NAME, ProjectConfig, load_config
from craft.core.context import ExecutionContext
from craft.core.errors import ErrorCode
from craft.core.result import Err
from craft.git.repository import Repository
from craft.output.console import ConsoleProtocol, RichConsole

CONFIG_ENV = "CRAFT_CONFIG"
DRY_RUN_ENV = "CRAFT_DRY_RUN"
NO_INPUT_ENV = "CRAFT_NO_INPUT"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    repo: Repository
    config: ProjectConfig
    console: ConsoleProtocol
    execution: ExecutionContext


def env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


def _confirm(question: str) -> bool:
    return typer.confirm(question, default=False)


def build_context(*, stderr: bool = False) -> CLIContext:
    """Load configuration and wire the console for a command.

    `stderr=True` keeps stdout for the command's actual output.
    """
    explicit = os.environ.get(CONFIG_ENV, "").strip()
    if explicit:
        config_path = Path(explicit)
        root = config_path.parent
    else:
        root = Path.cwd()
        config_path = root / CONFIG_FILE_NAME

    config_result = load_config(config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

    console = RichConsole(stderr=stderr)
    execution = ExecutionContext(
        console=console,
        dry_run=env_flag(DRY_RUN_ENV),
        no_input=env_flag(NO_INPUT_ENV),
        confirm=_confirm,
    )
    return CLIContext(
        root=root,
        repo=Repository(root),
        config=config_result.value,
        console=console,
        execution=execution,
    )
