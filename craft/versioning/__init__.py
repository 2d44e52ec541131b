"""Version resolution: commit classification, semver, calver."""

from craft.core.config import VersioningPolicy
from craft.versioning.commits import (
    BumpType,
    ClassifiedCommit,
    CommitType,
    bump_for,
    classify_commit,
    max_bump,
)
from craft.versioning.resolver import base_version, resolve_version
from craft.versioning.semver import (
    SemVer,
    bump_version,
    is_preview_release,
    is_valid_version,
    parse_version,
    version_to_tag,
)

__all__ = [
    "BumpType",
    "ClassifiedCommit",
    "CommitType",
    "SemVer",
    "VersioningPolicy",
    "base_version",
    "bump_for",
    "bump_version",
    "classify_commit",
    "is_preview_release",
    "is_valid_version",
    "max_bump",
    "parse_version",
    "resolve_version",
    "version_to_tag",
]
