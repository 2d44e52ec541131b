"""Calendar versioning.

The date part is rendered from a small strftime subset so that the result is
identical on every platform (`%-m` is not portable through `strftime`).
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date, timedelta

from craft.core.config import CalVerConfig
from craft.core.errors import ConfigurationError
from craft.core.result import Err, Ok, Result

_DIRECTIVES: dict[str, str] = {
    "%Y": "{year:04d}",
    "%y": "{short_year:02d}",
    "%m": "{month:02d}",
    "%-m": "{month}",
    "%d": "{day:02d}",
    "%-d": "{day}",
}
_DIRECTIVE_RE = re.compile(r"%-?[A-Za-z]")


def format_date(pattern: str, day: date) -> Result[str, ConfigurationError]:
    unknown = [d for d in _DIRECTIVE_RE.findall(pattern) if d not in _DIRECTIVES]
    if unknown:
        return Err(
            ConfigurationError(
                message=f"Unsupported CalVer format directive(s): {', '.join(unknown)}",
                hint=f"supported: {' '.join(_DIRECTIVES)}",
            )
        )
    escaped = pattern.replace("{", "{{").replace("}", "}}")
    template = _DIRECTIVE_RE.sub(lambda m: _DIRECTIVES[m.group(0)], escaped)
    return Ok(
        template.format(year=day.year, short_year=day.year % 100, month=day.month, day=day.day)
    )


def calver_version(
    tags: Iterable[str],
    today: date,
    config: CalVerConfig,
    *,
    tag_prefix: str = "",
) -> Result[str, ConfigurationError]:
    """Next CalVer version: `<datepart>.<n>`.

    `n` is one more than the highest `<datepart>.<k>` already tagged, or 0.
    The same day and tag set always give the same version.
    """
    formatted = format_date(config.format, today - timedelta(days=config.offset))
    if isinstance(formatted, Err):
        return formatted
    date_part = formatted.value

    highest = -1
    for tag in tags:
        if not tag.startswith(tag_prefix):
            continue
        version = tag[len(tag_prefix) :]
        if not version.startswith(f"{date_part}."):
            continue
        counter = version[len(date_part) + 1 :]
        if counter.isdigit():
            highest = max(highest, int(counter))

    return Ok(f"{date_part}.{highest + 1}")
