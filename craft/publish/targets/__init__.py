"""Target registry."""

from __future__ import annotations

from collections.abc import Mapping

from craft.core.errors import ConfigurationError
from craft.core.result import Err, Ok, Result
from craft.publish.targets.base import (
    BaseTarget,
    TargetEnv,
    TargetFactory,
    TargetProvider,
    filter_artifacts,
)
from craft.publish.targets.github import github_target
from craft.publish.targets.mirror import mirror_target

__all__ = [
    "TARGETS",
    "BaseTarget",
    "TargetEnv",
    "TargetFactory",
    "TargetProvider",
    "filter_artifacts",
    "get_target_factory",
]

TARGETS: dict[str, TargetFactory] = {
    "github": github_target,
    "mirror": mirror_target,
}


def get_target_factory(
    name: str, registry: Mapping[str, TargetFactory] = TARGETS
) -> Result[TargetFactory, ConfigurationError]:
    factory = registry.get(name)
    if factory is None:
        known = ", ".join(sorted(registry))
        return Err(
            ConfigurationError(
                message=f"Unknown target: {name}",
                hint=f"known targets: {known}",
            )
        )
    return Ok(factory)
