"""Git repository abstraction.

All operations shell out to `git` and return Result types. Read operations
run freely; operations that change the checkout (branch creation, checkout,
commit, push) take an `ExecutionContext` and are serialized per repository.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.status():
        case Ok(status):
            if status.is_dirty:
                print("stash your changes first")
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from pathlib import Path

from craft.core.context import ExecutionContext
from craft.core.result import Err, Ok, Result
from craft.platform.process import ProcessError
from craft.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0
_NO_TAG_MARKERS = ("no names found", "no tags can describe", "not a valid object name")

# Field and record separators for `git log --format`.
_FS = "\x1f"
_RS = "\x1e"

__all__ = [
    "Commit",
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
]

_locks_guard = threading.Lock()
_mutation_locks: dict[Path, threading.Lock] = {}


def _mutation_lock(path: Path) -> threading.Lock:
    key = path.resolve()
    with _locks_guard:
        lock = _mutation_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _mutation_locks[key] = lock
        return lock


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


@dataclass(frozen=True, slots=True)
class Commit:
    """One commit as read from history."""

    hash: str
    subject: str
    body: str = ""
    author_date: str = ""

    @property
    def short_hash(self) -> str:
        return self.hash[:8]


@dataclass(frozen=True, slots=True)
class StatusEntry:
    """A single entry in git status.

    Attributes:
        xy: Two-character status code (e.g., "M ", " M", "??")
        path: File path
    """

    xy: str
    path: str

    @property
    def is_staged(self) -> bool:
        return self.xy != "??" and self.xy[0] != " "

    @property
    def is_unstaged(self) -> bool:
        return self.xy != "??" and self.xy[1] != " "

    @property
    def is_untracked(self) -> bool:
        return self.xy == "??"


@dataclass(frozen=True, slots=True)
class GitStatus:
    """Parsed `git status --porcelain=v1 -b` output."""

    branch: str
    upstream: str | None = None
    ahead: int = 0
    behind: int = 0
    entries: tuple[StatusEntry, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return len(self.entries) == 0

    @property
    def is_dirty(self) -> bool:
        """True when tracked files have staged or unstaged changes.

        Untracked files alone do not make a release checkout dirty.
        """
        return any(e.is_staged or e.is_unstaged for e in self.entries)

    @property
    def untracked(self) -> list[StatusEntry]:
        return [e for e in self.entries if e.is_untracked]


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Repository (or worktree) root.
        isolated: True for a throwaway worktree; local mutations then run
            even under dry-run because they cannot affect the real checkout.
    """

    def __init__(self, path: Path, *, isolated: bool = False) -> None:
        self.path = path
        self.isolated = isolated

    def exists(self) -> bool:
        return (self.path / ".git").exists()

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def status(self) -> Result[GitStatus, GitError]:
        result = self._run(["status", "--porcelain=v1", "-b"])
        match result:
            case Err(e):
                return Err(_git_error("status", e, "git status failed"))
            case Ok(stdout):
                return Ok(self._parse_status(stdout))

    def has_changes(self) -> bool:
        """True if anything (tracked or untracked) changed in the worktree."""
        result = self._run(["status", "--porcelain"])
        return isinstance(result, Ok) and result.value.strip() != ""

    def current_branch(self) -> str | None:
        """Current branch name, None on detached HEAD or error."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def rev_parse(self, ref: str = "HEAD") -> Result[str, GitError]:
        result = self._run(["rev-parse", "--verify", f"{ref}^{{commit}}"])
        match result:
            case Err(e):
                return Err(_git_error("rev-parse", e, f"unknown revision: {ref}"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def default_branch(self, remote: str = "origin") -> str:
        """Default branch of `remote`, falling back to main/master."""
        result = self._run(["symbolic-ref", "--short", f"refs/remotes/{remote}/HEAD"])
        if isinstance(result, Ok) and result.value.strip():
            return result.value.strip().removeprefix(f"{remote}/")
        for candidate in ("main", "master"):
            if self.branch_exists(candidate):
                return candidate
        return "main"

    def branch_exists(self, name: str) -> bool:
        result = self._run(["show-ref", "--verify", "--quiet", f"refs/heads/{name}"])
        return isinstance(result, Ok)

    def latest_tag(self, rev: str = "HEAD") -> Result[str, GitError]:
        """Most recent tag reachable from `rev`; "" when there is none."""
        result = self._run(["describe", "--tags", "--abbrev=0", rev])
        match result:
            case Ok(stdout):
                return Ok(stdout.strip())
            case Err(e):
                text = f"{e.stderr}\n{e.stdout}".lower()
                if any(s in text for s in _NO_TAG_MARKERS):
                    return Ok("")
                return Err(_git_error("describe", e, "could not determine the latest tag"))

    def tags(self) -> Result[list[str], GitError]:
        result = self._run(["tag", "--list"])
        match result:
            case Err(e):
                return Err(_git_error("tag", e, "could not list tags"))
            case Ok(stdout):
                return Ok([t.strip() for t in stdout.splitlines() if t.strip()])

    def log(
        self, since: str | None = None, *, until: str = "HEAD", path: str | None = None
    ) -> Result[list[Commit], GitError]:
        """Non-merge commits reachable from `until`, newest first.

        Args:
            since: Exclusive lower bound (tag or sha); whole history if None.
            path: Only commits touching this path; all commits, empty ones
                included, when None.
        """
        if since is None and until == "HEAD" and isinstance(self.rev_parse("HEAD"), Err):
            return Ok([])
        fmt = f"--format=%H{_FS}%s{_FS}%b{_FS}%aI{_RS}"
        rev = f"{since}..{until}" if since else until
        args = ["log", "--no-merges", fmt, rev]
        if path is not None:
            args += ["--", path]
        result = self._run(args)
        match result:
            case Err(e):
                return Err(_git_error("log", e, f"could not read history for {rev}"))
            case Ok(stdout):
                return Ok(_parse_log(stdout))

    def diff_stat(self, base: str) -> Result[str, GitError]:
        result = self._run(["diff", "--stat", base, "HEAD"])
        match result:
            case Err(e):
                return Err(_git_error("diff", e, "git diff failed"))
            case Ok(stdout):
                return Ok(stdout.rstrip())

    def show_file(self, rev: str, path: str) -> Result[str | None, GitError]:
        """Contents of `path` at `rev`; None when the file is absent there."""
        result = self._run(["show", f"{rev}:{path}"])
        match result:
            case Ok(stdout):
                return Ok(stdout)
            case Err(e):
                if "does not exist" in e.stderr or "exists on disk, but not in" in e.stderr:
                    return Ok(None)
                return Err(_git_error("show", e, f"could not read {path} at {rev}"))

    def fetch(self, remote: str = "origin", *refs: str) -> Result[None, GitError]:
        result = self._run(["fetch", remote, *refs])
        if isinstance(result, Err):
            return Err(_git_error("fetch", result.error, "fetch failed"))
        return Ok(None)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def create_branch(
        self, ctx: ExecutionContext, name: str, start: str
    ) -> Result[None, GitError]:
        """Create `name` at `start` and check it out."""
        return self._mutate(ctx, ["checkout", "-b", name, start])

    def checkout(self, ctx: ExecutionContext, ref: str) -> Result[None, GitError]:
        return self._mutate(ctx, ["checkout", ref])

    def commit_all(self, ctx: ExecutionContext, message: str) -> Result[None, GitError]:
        """Stage everything (new files included) and commit."""
        staged = self._mutate(ctx, ["add", "--all"])
        if isinstance(staged, Err):
            return staged
        return self._mutate(ctx, ["commit", "-m", message])

    def push(self, ctx: ExecutionContext, remote: str, branch: str) -> Result[None, GitError]:
        # Pushing leaves the machine, so even an isolated worktree skips it.
        if ctx.skip_mutation(f"git push {remote} {branch} --set-upstream"):
            return Ok(None)
        with _mutation_lock(self.path):
            result = self._run(["push", remote, branch, "--set-upstream"])
        if isinstance(result, Err):
            return Err(_git_error("push", result.error, "push failed"))
        return Ok(None)

    def _mutate(self, ctx: ExecutionContext, args: list[str]) -> Result[None, GitError]:
        if not self.isolated and ctx.skip_mutation(f"git {' '.join(args)}"):
            return Ok(None)
        with _mutation_lock(self.path):
            result = self._run(args)
        if isinstance(result, Err):
            return Err(_git_error(args[0], result.error, f"git {args[0]} failed"))
        return Ok(None)

    def run_git(self, args: list[str]) -> Result[str, ProcessError]:
        """Run an arbitrary git subcommand, without locking or dry-run handling."""
        return self._run(args)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push", "clone"}
            else _GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    def _parse_status(self, output: str) -> GitStatus:
        lines = [ln for ln in output.splitlines() if ln.strip()]

        if not lines:
            return GitStatus(branch="")

        # First line is branch info: ## branch...upstream [ahead N, behind M]
        branch_line = lines[0]
        branch, upstream = self._parse_branch_line(branch_line)
        ahead, behind = self._parse_ahead_behind(branch_line)

        entries: list[StatusEntry] = []
        for line in lines[1:]:
            if len(line) < 4:
                continue
            entries.append(StatusEntry(xy=line[:2], path=line[3:]))

        return GitStatus(
            branch=branch,
            upstream=upstream,
            ahead=ahead,
            behind=behind,
            entries=tuple(entries),
        )

    def _parse_branch_line(self, line: str) -> tuple[str, str | None]:
        s = line.strip()
        if s.startswith("##"):
            s = s[2:].lstrip()

        s = s.split(" [", 1)[0].strip()

        if "..." in s:
            left, right = s.split("...", 1)
            return (left.strip(), right.strip())

        return (s, None)

    def _parse_ahead_behind(self, line: str) -> tuple[int, int]:
        match = re.search(r"\[([^\]]+)\]", line)
        if not match:
            return (0, 0)

        inside = match.group(1)
        ahead_match = re.search(r"ahead\s+(\d+)", inside)
        behind_match = re.search(r"behind\s+(\d+)", inside)

        ahead = int(ahead_match.group(1)) if ahead_match else 0
        behind = int(behind_match.group(1)) if behind_match else 0
        return (ahead, behind)


def _parse_log(output: str) -> list[Commit]:
    commits: list[Commit] = []
    for record in output.split(_RS):
        record = record.strip("\n")
        if not record.strip():
            continue
        parts = record.split(_FS)
        if len(parts) < 4:
            continue
        commits.append(
            Commit(
                hash=parts[0].strip(),
                subject=parts[1],
                body=parts[2].strip(),
                author_date=parts[3].strip(),
            )
        )
    return commits


def _git_error(command: str, error: ProcessError, fallback: str) -> GitError:
    return GitError(
        command=command,
        message=error.stderr.strip() or error.stdout.strip() or fallback,
        returncode=error.returncode,
    )
