"""Conventional-commit classification.

Pure functions, no I/O. A commit that does not follow the conventional format
is still classified (as `other`) so it keeps a place in the changelog.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum, StrEnum

from craft.git.repository import Commit

__all__ = [
    "BumpType",
    "ClassifiedCommit",
    "CommitType",
    "bump_for",
    "classify_commit",
    "max_bump",
]

SKIP_CHANGELOG_MAGIC_WORD = "#skip-changelog"
BODY_IN_CHANGELOG_MAGIC_WORD = "#body-in-changelog"

_CONVENTIONAL_RE = re.compile(
    r"^(?P<type>[A-Za-z]+)(?:\((?P<scope>[^()\r\n]*)\))?(?P<bang>!)?:[ \t]+(?P<subject>\S.*)$"
)
_BREAKING_BODY_RE = re.compile(r"^BREAKING[ -]CHANGE:", re.MULTILINE)
_PR_NUMBER_RE = re.compile(r"\(#(\d+)\)\s*$")


class CommitType(StrEnum):
    FEAT = "feat"
    FIX = "fix"
    PERF = "perf"
    REFACTOR = "refactor"
    DOCS = "docs"
    CHORE = "chore"
    BUILD = "build"
    CI = "ci"
    TEST = "test"
    STYLE = "style"
    REVERT = "revert"
    OTHER = "other"


class BumpType(IntEnum):
    """Version increment magnitude, totally ordered."""

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, slots=True)
class ClassifiedCommit:
    """A commit with its conventional-commit fields parsed out.

    Attributes:
        commit: The underlying commit.
        type: Conventional type, `OTHER` when the subject is not conventional.
        scope: Text inside the parentheses, if any.
        is_breaking: `!` after the type or a BREAKING CHANGE footer.
        subject: Description after the colon (the full subject for `OTHER`).
        pr_number: Trailing "(#123)" reference, if any.
    """

    commit: Commit
    type: CommitType
    scope: str | None
    is_breaking: bool
    subject: str
    pr_number: str | None = None

    @property
    def skip_changelog(self) -> bool:
        return SKIP_CHANGELOG_MAGIC_WORD in self.commit.body

    @property
    def body_in_changelog(self) -> bool:
        return BODY_IN_CHANGELOG_MAGIC_WORD in self.commit.body


def classify_commit(commit: Commit) -> ClassifiedCommit:
    subject_line = commit.subject.strip()
    pr_match = _PR_NUMBER_RE.search(subject_line)
    pr_number = pr_match.group(1) if pr_match else None
    breaking_in_body = bool(_BREAKING_BODY_RE.search(commit.body))

    match = _CONVENTIONAL_RE.match(subject_line)
    if match is None:
        return ClassifiedCommit(
            commit=commit,
            type=CommitType.OTHER,
            scope=None,
            is_breaking=False,
            subject=subject_line,
            pr_number=pr_number,
        )

    raw_type = match.group("type").lower()
    try:
        commit_type = CommitType(raw_type)
    except ValueError:
        commit_type = CommitType.OTHER
    if commit_type is CommitType.OTHER:
        return ClassifiedCommit(
            commit=commit,
            type=CommitType.OTHER,
            scope=None,
            is_breaking=False,
            subject=subject_line,
            pr_number=pr_number,
        )

    scope = (match.group("scope") or "").strip() or None
    return ClassifiedCommit(
        commit=commit,
        type=commit_type,
        scope=scope,
        is_breaking=bool(match.group("bang")) or breaking_in_body,
        subject=match.group("subject").strip(),
        pr_number=pr_number,
    )


def bump_for(classified: ClassifiedCommit) -> BumpType:
    if classified.is_breaking:
        return BumpType.MAJOR
    if classified.type is CommitType.FEAT:
        return BumpType.MINOR
    if classified.type is CommitType.OTHER:
        return BumpType.NONE
    return BumpType.PATCH


def max_bump(classified: Iterable[ClassifiedCommit]) -> BumpType:
    return max((bump_for(c) for c in classified), default=BumpType.NONE)
