"""GitHub Actions step outputs."""

from __future__ import annotations

import os
import uuid
from pathlib import Path


def set_output(name: str, value: str) -> bool:
    """Append `name=value` to `$GITHUB_OUTPUT` when running under Actions.

    Multi-line values use the heredoc delimiter syntax. Returns False when
    not running under GitHub Actions.
    """
    target = os.environ.get("GITHUB_OUTPUT")
    if not target:
        return False

    if "\n" in value:
        delimiter = f"EOF_{uuid.uuid4().hex}"
        line = f"{name}<<{delimiter}\n{value}\n{delimiter}\n"
    else:
        line = f"{name}={value}\n"

    with Path(target).open("a", encoding="utf-8") as f:
        f.write(line)
    return True
