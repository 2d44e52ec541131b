"""Pre-release command (version bump hook)."""

from __future__ import annotations

import os
import shlex

from craft.core.context import ExecutionContext
from craft.core.errors import RepositoryStateError
from craft.core.result import Err, Ok, Result
from craft.git.repository import Repository
from craft.output.console import Style
from craft.platform.process import run_streaming

__all__ = ["hook_command", "run_pre_release_command"]


def hook_command(command: str, old_version: str, new_version: str) -> list[str]:
    return [*shlex.split(command), old_version or "0.0.0", new_version]


def run_pre_release_command(
    ctx: ExecutionContext,
    repo: Repository,
    command: str | None,
    old_version: str,
    new_version: str,
) -> Result[bool, RepositoryStateError]:
    """Run the configured hook in the repository.

    Returns True when the hook ran, False when none is configured (or it was
    skipped under dry-run outside an isolated worktree).
    """
    if not command or not command.strip():
        ctx.console.print("no pre-release command configured, skipping", Style.DIM)
        return Ok(False)

    try:
        cmd = hook_command(command, old_version, new_version)
    except ValueError as e:
        return Err(
            RepositoryStateError(
                message=f"Invalid pre-release command: {command}",
                hint=str(e),
            )
        )

    if not repo.isolated and ctx.skip_mutation(f"run {shlex.join(cmd)}"):
        return Ok(False)

    env = dict(os.environ)
    env["CRAFT_OLD_VERSION"] = old_version
    env["CRAFT_NEW_VERSION"] = new_version

    ctx.console.info(f"running pre-release command: {shlex.join(cmd)}")
    result = run_streaming(cmd, cwd=repo.path, env=env)
    if isinstance(result, Err):
        return Err(
            RepositoryStateError(
                message=f"Pre-release command failed (exit {result.error.returncode})",
                hint=shlex.join(cmd),
            )
        )
    return Ok(True)
