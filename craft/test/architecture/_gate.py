from __future__ import annotations

import os

import pytest


def require_arch_checks_enabled() -> None:
    """Skip architecture checks unless explicitly enabled.

    They walk the whole source tree, so they run in CI and on demand only.
    """

    if os.getenv("CRAFT_ARCH_CHECKS") != "1":
        pytest.skip(
            "architecture checks run on demand; set CRAFT_ARCH_CHECKS=1 to enable",
        )
