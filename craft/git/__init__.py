"""Git operations.

Usage:
    from craft.git import Repository

    repo = Repository(Path("/path/to/repo"))
    tag = repo.latest_tag()
"""

from craft.git.repository import (
    Commit,
    GitError,
    GitStatus,
    Repository,
    StatusEntry,
)
from craft.git.worktree import isolated_worktree

__all__ = [
    "Commit",
    "GitError",
    "GitStatus",
    "Repository",
    "StatusEntry",
    "isolated_worktree",
]
