"""Changelog body generation from commit history."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from craft.core.errors import CraftError, RepositoryStateError
from craft.core.result import Err, Ok, Result
from craft.git.repository import Repository
from craft.versioning.commits import (
    BODY_IN_CHANGELOG_MAGIC_WORD,
    BumpType,
    ClassifiedCommit,
    CommitType,
    classify_commit,
    max_bump,
)

__all__ = [
    "BUCKET_TITLES",
    "ChangelogBody",
    "Summarizer",
    "generate_from_history",
    "render_changelog",
]

Summarizer = Callable[[Sequence[str]], str | None]

BREAKING_BUCKET = "Breaking Changes"
OTHER_BUCKET = "Other"

# Rendering order of the buckets.
BUCKET_TITLES: tuple[str, ...] = (
    BREAKING_BUCKET,
    "New Features",
    "Bug Fixes",
    "Performance",
    "Documentation",
    "Build / dependencies / internal",
    OTHER_BUCKET,
)

_BUCKET_BY_TYPE: dict[CommitType, str] = {
    CommitType.FEAT: "New Features",
    CommitType.FIX: "Bug Fixes",
    CommitType.PERF: "Performance",
    CommitType.DOCS: "Documentation",
    CommitType.REFACTOR: "Build / dependencies / internal",
    CommitType.CHORE: "Build / dependencies / internal",
    CommitType.BUILD: "Build / dependencies / internal",
    CommitType.CI: "Build / dependencies / internal",
    CommitType.TEST: "Build / dependencies / internal",
    CommitType.STYLE: "Build / dependencies / internal",
    CommitType.REVERT: "Build / dependencies / internal",
    CommitType.OTHER: OTHER_BUCKET,
}

_LEADING_UNDERSCORE_RE = re.compile(r"(^|\s)_")


@dataclass(frozen=True, slots=True)
class ChangelogBody:
    """Generated markdown plus the bump the commits call for."""

    text: str
    bump: BumpType
    commit_count: int


def _bucket(c: ClassifiedCommit) -> str:
    if c.is_breaking:
        return BREAKING_BUCKET
    return _BUCKET_BY_TYPE[c.type]


def _escape(text: str) -> str:
    return _LEADING_UNDERSCORE_RE.sub(lambda m: f"{m.group(1)}\\_", text)


def _entry(c: ClassifiedCommit, *, with_scope: bool) -> str:
    subject = _escape(c.subject)
    if with_scope and c.scope:
        subject = f"**{_escape(c.scope)}**: {subject}"
    line = f"- {subject}" if c.pr_number else f"- {subject} ({c.commit.short_hash})"

    if c.body_in_changelog:
        body = c.commit.body.replace(BODY_IN_CHANGELOG_MAGIC_WORD, "").strip()
        for body_line in body.splitlines():
            line += f"\n    {body_line}" if body_line.strip() else "\n"
    return line


def _render_list(items: list[ClassifiedCommit], *, group_by_scope: bool) -> str:
    if not group_by_scope:
        return "\n".join(_entry(c, with_scope=True) for c in items)

    unscoped = [c for c in items if not c.scope]
    scopes: dict[str, list[ClassifiedCommit]] = {}
    for c in items:
        if c.scope:
            scopes.setdefault(c.scope, []).append(c)

    parts: list[str] = []
    if unscoped:
        parts.append("\n".join(_entry(c, with_scope=False) for c in unscoped))
    for scope, scoped in scopes.items():
        entries = "\n".join(_entry(c, with_scope=False) for c in scoped)
        parts.append(f"#### {_escape(scope)}\n\n{entries}")
    return "\n\n".join(parts)


def render_changelog(
    classified: Sequence[ClassifiedCommit],
    *,
    group_by_scope: bool = False,
    summarizer: Summarizer | None = None,
) -> str:
    """Render classified commits as markdown, one `###` heading per bucket.

    Commits marked `#skip-changelog` are left out. A bucket for which the
    summarizer returns text gets that summary, with the full list folded
    under a `<details>` block.
    """
    buckets: dict[str, list[ClassifiedCommit]] = {title: [] for title in BUCKET_TITLES}
    for c in classified:
        if c.skip_changelog:
            continue
        buckets[_bucket(c)].append(c)

    sections: list[str] = []
    for title in BUCKET_TITLES:
        items = buckets[title]
        if not items:
            continue
        listing = _render_list(items, group_by_scope=group_by_scope)
        summary = summarizer([c.subject for c in items]) if summarizer is not None else None
        if summary:
            listing = (
                f"{summary.strip()}\n\n<details>\n<summary>All {len(items)} changes</summary>\n\n"
                f"{listing}\n\n</details>"
            )
        sections.append(f"### {title}\n\n{listing}")
    return "\n\n".join(sections)


def generate_from_history(
    repo: Repository,
    previous_version: str,
    *,
    group_by_scope: bool = False,
    summarizer: Summarizer | None = None,
) -> Result[ChangelogBody, CraftError]:
    """Changelog body for the commits between `previous_version` and HEAD.

    `previous_version` is the tag of the previous release; "" means the whole
    history.
    """
    log = repo.log(previous_version or None)
    if isinstance(log, Err):
        return Err(
            RepositoryStateError(
                message=f"Could not read commits since {previous_version or 'the first commit'}",
                hint=log.error.message,
            )
        )

    classified = [classify_commit(c) for c in log.value]
    text = render_changelog(classified, group_by_scope=group_by_scope, summarizer=summarizer)
    return Ok(ChangelogBody(text=text, bump=max_bump(classified), commit_count=len(classified)))
