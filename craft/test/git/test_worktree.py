"""Tests for git/worktree.py."""

from __future__ import annotations

import subprocess
from pathlib import Path

from craft.core.context import ExecutionContext
from craft.core.result import Err, Ok
from craft.git.repository import Repository
from craft.git.worktree import isolated_worktree
from craft.output.console import MockConsole


def _git(path: Path, *args: str) -> str:
    proc = subprocess.run(
        ["git", "-C", str(path), *args], capture_output=True, text=True, check=True
    )
    return proc.stdout


def _init_repo(path: Path) -> Repository:
    _git(path, "init", "-q", "-b", "main")
    _git(path, "config", "user.name", "Release Bot")
    _git(path, "config", "user.email", "release@example.com")
    _git(path, "config", "commit.gpgsign", "false")
    (path / "CHANGELOG.md").write_text("# Changelog\n", encoding="utf-8")
    _git(path, "add", "CHANGELOG.md")
    _git(path, "commit", "-q", "-m", "chore: init")
    return Repository(path)


def test_isolated_worktree_leaves_checkout_untouched(tmp_path: Path) -> None:
    repo = _init_repo(tmp_path)
    console = MockConsole()
    ctx = ExecutionContext(console=console, dry_run=True)

    with isolated_worktree(ctx, repo, "HEAD") as created:
        assert isinstance(created, Ok)
        sandbox = created.value
        worktree_path = sandbox.path
        assert sandbox.isolated is True

        (sandbox.path / "CHANGELOG.md").write_text("# Changelog\n\n## 1.0.0\n", encoding="utf-8")
        assert sandbox.commit_all(ctx, "release: 1.0.0") == Ok(None)

    assert not worktree_path.exists()
    assert (tmp_path / "CHANGELOG.md").read_text(encoding="utf-8") == "# Changelog\n"
    assert _git(tmp_path, "log", "-1", "--format=%s").strip() == "chore: init"
    assert console.find("isolated worktree")
    assert len(_git(tmp_path, "worktree", "list").splitlines()) == 1


def test_unknown_revision_yields_error(tmp_path: Path) -> None:
    repo = _init_repo(tmp_path)
    ctx = ExecutionContext(console=MockConsole(), dry_run=True)

    with isolated_worktree(ctx, repo, "does-not-exist") as created:
        assert isinstance(created, Err)
        assert created.error.command == "worktree add"


def test_ignored_dependency_dirs_are_linked(tmp_path: Path) -> None:
    repo = _init_repo(tmp_path)
    (tmp_path / ".gitignore").write_text("node_modules\n", encoding="utf-8")
    _git(tmp_path, "add", ".gitignore")
    _git(tmp_path, "commit", "-q", "-m", "chore: ignore deps")
    (tmp_path / "node_modules" / "left-pad").mkdir(parents=True)
    (tmp_path / "node_modules" / "left-pad" / "index.js").write_text("x", encoding="utf-8")
    (tmp_path / "build").mkdir()
    console = MockConsole()
    ctx = ExecutionContext(console=console, dry_run=True)

    with isolated_worktree(ctx, repo, "HEAD") as created:
        assert isinstance(created, Ok)
        sandbox = created.value
        linked = sandbox.path / "node_modules"
        assert linked.is_symlink()
        assert (linked / "left-pad" / "index.js").read_text(encoding="utf-8") == "x"
        # not ignored, so it would be committed by `git add --all`
        assert not (sandbox.path / "build").exists()

        (sandbox.path / "CHANGELOG.md").write_text("# Changelog\n\n## 1.0.0\n", encoding="utf-8")
        assert sandbox.commit_all(ctx, "release: 1.0.0") == Ok(None)
        committed = _git(sandbox.path, "show", "--name-only", "--format=", "HEAD").split()
        assert committed == ["CHANGELOG.md"]

    assert (tmp_path / "node_modules" / "left-pad" / "index.js").exists()
    assert console.find("linked node_modules into worktree")
