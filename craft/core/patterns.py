"""Name patterns used in configuration.

A pattern is one of:
- `/regex/flags` (flags: i, m, s)
- a glob with `*` or `?`
- an exact name
"""

from __future__ import annotations

import fnmatch
import re

__all__ = ["matches", "pattern_to_regexp"]

_REGEX_LITERAL_RE = re.compile(r"^/(?P<body>.+)/(?P<flags>[a-z]*)$", re.DOTALL)
_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL}


def pattern_to_regexp(pattern: str) -> re.Pattern[str]:
    """Compile a configuration pattern.

    Raises:
        ValueError: On unknown regex flags or an invalid regex body.
    """
    m = _REGEX_LITERAL_RE.match(pattern)
    if m is not None:
        flags = 0
        for flag in m.group("flags"):
            if flag not in _FLAGS:
                raise ValueError(f"unsupported regex flag '{flag}' in {pattern}")
            flags |= _FLAGS[flag]
        try:
            return re.compile(m.group("body"), flags)
        except re.error as e:
            raise ValueError(f"invalid regex {pattern}: {e}") from e

    if "*" in pattern or "?" in pattern:
        return re.compile(fnmatch.translate(pattern))

    return re.compile(f"^{re.escape(pattern)}$")


def matches(pattern: str, name: str) -> bool:
    return pattern_to_regexp(pattern).search(name) is not None
