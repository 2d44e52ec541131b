"""Next-version resolution under a versioning policy."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date

from craft.core.config import CalVerConfig, VersioningPolicy
from craft.core.errors import ConfigurationError, CraftError
from craft.core.result import Err, Ok, Result
from craft.git.repository import Commit
from craft.versioning.calver import calver_version
from craft.versioning.commits import BumpType, classify_commit, max_bump
from craft.versioning.semver import bump_version, parse_version, tag_to_version

__all__ = ["BUMP_KEYWORDS", "base_version", "resolve_version"]

BUMP_KEYWORDS = frozenset({"major", "minor", "patch"})


def base_version(previous_tag: str, tag_prefix: str = "") -> str:
    """Version an auto bump starts from; "0.0.0" when there is no usable tag."""
    return tag_to_version(previous_tag, tag_prefix) or tag_to_version(previous_tag) or "0.0.0"


def resolve_version(
    policy: VersioningPolicy,
    commits: Sequence[Commit],
    previous_version: str,
    explicit_input: str | None,
    *,
    tags: Iterable[str] = (),
    today: date | None = None,
    calver: CalVerConfig | None = None,
    tag_prefix: str = "",
) -> Result[str, CraftError]:
    """Compute the version to release.

    Args:
        policy: Configured policy; "auto"/"calver" as explicit input override it.
        commits: Commits since `previous_version` (only used by auto).
        previous_version: Latest release tag, "" when there is none.
        explicit_input: Version given on the command line, if any.
        tags: Existing tags (only used by calver).
        today: Reference date for calver (defaults to today).
        tag_prefix: Prefix release tags carry; stripped before bumping.
    """
    raw = (explicit_input or "").strip()

    if raw.lower() in BUMP_KEYWORDS:
        return Err(
            ConfigurationError(
                message=f'Version bump keyword "{raw}" is not yet supported',
                hint='pass an explicit version (e.g. "1.2.3") or "auto"',
            )
        )

    if raw.lower() in {VersioningPolicy.AUTO, VersioningPolicy.CALVER}:
        policy = VersioningPolicy(raw.lower())
    elif raw:
        parsed = parse_version(raw)
        if isinstance(parsed, Err):
            return parsed
        return Ok(raw)

    match policy:
        case VersioningPolicy.MANUAL:
            return Err(
                ConfigurationError(
                    message="Version is required with the manual versioning policy",
                    hint='pass a version (e.g. "craft prepare 1.2.3"), "auto" or "calver"',
                )
            )
        case VersioningPolicy.AUTO:
            return _auto(commits, previous_version, tag_prefix)
        case VersioningPolicy.CALVER:
            cfg = calver or CalVerConfig()
            result = calver_version(tags, today or date.today(), cfg, tag_prefix=tag_prefix)
            if isinstance(result, Err):
                return result
            return Ok(result.value)


def _auto(
    commits: Sequence[Commit], previous_version: str, tag_prefix: str
) -> Result[str, CraftError]:
    bump = max_bump(classify_commit(c) for c in commits)
    if bump is BumpType.NONE:
        since = previous_version or "the beginning of history"
        return Err(
            ConfigurationError(
                message=f"Nothing to release: no releasable commits since {since}",
                hint="use conventional commit prefixes (feat:, fix:, ...) or pass a version",
            )
        )

    bumped = bump_version(base_version(previous_version, tag_prefix), bump)
    if isinstance(bumped, Err):
        return bumped
    return Ok(bumped.value)
