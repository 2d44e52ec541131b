from __future__ import annotations

import re
from dataclasses import dataclass

from craft.core.errors import InvalidVersionError
from craft.core.result import Err, Ok, Result
from craft.versioning.commits import BumpType

# Semantic Versioning 2.0.0, without a "v" prefix.
_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

_PREVIEW_RE = re.compile(
    r"(?:^|[.-])(?:preview|pre|rc|dev|alpha|beta|unstable|a|b)(?:\d+)?(?:$|[.-])",
    re.IGNORECASE,
)


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    pre: str | None = None
    build: str | None = None

    def bump(self, bump: BumpType) -> SemVer:
        """Increment one component and reset the lower ones.

        Pre-release and build metadata are dropped. `BumpType.NONE` returns
        the release part unchanged.
        """
        match bump:
            case BumpType.MAJOR:
                return SemVer(self.major + 1, 0, 0)
            case BumpType.MINOR:
                return SemVer(self.major, self.minor + 1, 0)
            case BumpType.PATCH:
                return SemVer(self.major, self.minor, self.patch + 1)
            case BumpType.NONE:
                return SemVer(self.major, self.minor, self.patch)

    def __str__(self) -> str:
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            out += f"-{self.pre}"
        if self.build:
            out += f"+{self.build}"
        return out


def parse_version(text: str) -> Result[SemVer, InvalidVersionError]:
    m = _SEMVER_RE.match(text)
    if m is None:
        hint = None
        if text[:1] in {"v", "V"} and _SEMVER_RE.match(text[1:]):
            hint = f'remove the leading "v" prefix and use "{text[1:]}"'
        return Err(
            InvalidVersionError(
                value=text,
                message=f'Invalid version "{text}": not a semantic version (X.Y.Z)',
                hint=hint,
            )
        )
    return Ok(
        SemVer(
            major=int(m.group("major")),
            minor=int(m.group("minor")),
            patch=int(m.group("patch")),
            pre=m.group("pre"),
            build=m.group("build"),
        )
    )


def is_valid_version(text: str) -> bool:
    return _SEMVER_RE.match(text) is not None


def bump_version(version: str, bump: BumpType) -> Result[str, InvalidVersionError]:
    parsed = parse_version(version)
    if isinstance(parsed, Err):
        return parsed
    return Ok(str(parsed.value.bump(bump)))


def is_preview_release(version: str) -> bool:
    """True when the pre-release part marks a preview (rc, beta, ...)."""
    parsed = parse_version(version)
    if isinstance(parsed, Err) or parsed.value.pre is None:
        return False
    return _PREVIEW_RE.search(parsed.value.pre) is not None


def version_to_tag(version: str, prefix: str = "") -> str:
    return f"{prefix}{version}"


def tag_to_version(tag: str, prefix: str = "") -> str | None:
    """Version encoded in a tag, or None when the tag is not a release tag."""
    if prefix and not tag.startswith(prefix):
        return None
    rest = tag[len(prefix) :]
    if rest[:1] == "v" and rest[1:2].isdigit():
        rest = rest[1:]
    return rest if is_valid_version(rest) else None
