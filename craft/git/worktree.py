"""Isolated worktrees for dry runs.

A detached worktree shares object storage with the real repository but has
its own index and HEAD, so a dry run can create branches, rewrite the
changelog and commit without touching the operator's checkout.
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from craft.core.context import ExecutionContext
from craft.core.result import Err, Ok, Result
from craft.git.repository import GitError, Repository
from craft.output.console import Style

# Ignored dependency and build directories a pre-release hook may rely on.
LINKED_DIRS = (
    "node_modules",
    "vendor",
    ".venv",
    "venv",
    "__pycache__",
    ".gradle",
    "build",
    "target",
    "Pods",
)


def add_worktree(repo: Repository, path: Path, rev: str) -> Result[Repository, GitError]:
    result = repo.run_git(["worktree", "add", "--detach", str(path), rev])
    if isinstance(result, Err):
        return Err(
            GitError(
                command="worktree add",
                message=result.error.stderr.strip() or f"could not check out {rev}",
                returncode=result.error.returncode,
            )
        )
    return Ok(Repository(path, isolated=True))


def link_ignored_dirs(
    ctx: ExecutionContext, repo: Repository, path: Path, names: tuple[str, ...] = LINKED_DIRS
) -> list[str]:
    """Symlink ignored directories of `repo` into the worktree at `path`.

    Only directories git ignores are linked, so `git add --all` in the
    worktree never stages them. Returns the linked names.
    """
    linked: list[str] = []
    for name in names:
        source = repo.path / name
        dest = path / name
        if source.is_symlink() or not source.is_dir() or dest.exists() or dest.is_symlink():
            continue
        if isinstance(repo.run_git(["check-ignore", "-q", name]), Err):
            continue
        try:
            dest.symlink_to(source.absolute(), target_is_directory=True)
        except OSError as e:
            ctx.console.warning(f"could not link {name} into worktree: {e}")
            continue
        linked.append(name)
    return linked


def remove_worktree(repo: Repository, path: Path) -> Result[None, GitError]:
    """Remove a worktree, pruning the registration if removal fails."""
    removed = repo.run_git(["worktree", "remove", "--force", str(path)])
    if isinstance(removed, Ok):
        return Ok(None)

    shutil.rmtree(path, ignore_errors=True)
    pruned = repo.run_git(["worktree", "prune"])
    if isinstance(pruned, Err):
        return Err(
            GitError(
                command="worktree prune",
                message=pruned.error.stderr.strip() or "worktree prune failed",
                returncode=pruned.error.returncode,
            )
        )
    return Ok(None)


@contextmanager
def isolated_worktree(
    ctx: ExecutionContext, repo: Repository, rev: str
) -> Iterator[Result[Repository, GitError]]:
    """Yield a throwaway detached worktree of `rev`, removed on exit.

    Usage:
        with isolated_worktree(ctx, repo, "main") as created:
            if isinstance(created, Err):
                ...
            sandbox = created.value
    """
    tmp_root = Path(tempfile.mkdtemp(prefix="craft-dry-run-"))
    path = tmp_root / "worktree"
    created = add_worktree(repo, path, rev)
    if isinstance(created, Ok):
        ctx.console.print(f"[dry-run] working in isolated worktree {path}", Style.DIM)
        for name in link_ignored_dirs(ctx, repo, path):
            ctx.console.print(f"[dry-run] linked {name} into worktree", Style.DIM)
    try:
        yield created
    finally:
        if isinstance(created, Ok):
            removed = remove_worktree(repo, path)
            if isinstance(removed, Err):
                ctx.console.warning(f"could not remove worktree {path}: {removed.error.message}")
        shutil.rmtree(tmp_root, ignore_errors=True)
