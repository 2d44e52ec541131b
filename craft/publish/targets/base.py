"""Target provider contract and shared behaviour."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from craft.changelog.markdown import Changeset
from craft.core.config import GithubConfig, TargetConfig
from craft.core.context import ExecutionContext
from craft.core.errors import ConfigurationError, CraftError
from craft.core.patterns import pattern_to_regexp
from craft.core.result import Err, Ok, Result
from craft.publish.artifacts import ArtifactSource
from craft.publish.model import Artifact, ReleaseRecord, RemoteAsset
from craft.versioning.semver import version_to_tag

__all__ = [
    "BaseTarget",
    "TargetEnv",
    "TargetFactory",
    "TargetProvider",
    "filter_artifacts",
]


class TargetProvider(Protocol):
    """One distribution destination.

    Every mutating method receives the execution context and logs instead of
    acting under dry-run.
    """

    @property
    def config(self) -> TargetConfig: ...

    def get_or_create_release(
        self,
        ctx: ExecutionContext,
        version: str,
        revision: str,
        changeset: Changeset | None,
    ) -> Result[ReleaseRecord, CraftError]: ...

    def get_artifacts_for_revision(self, revision: str) -> Result[list[Artifact], CraftError]: ...

    def list_assets(self, release: ReleaseRecord) -> Result[list[RemoteAsset], CraftError]: ...

    def upload_asset(
        self,
        ctx: ExecutionContext,
        release: ReleaseRecord,
        artifact: Artifact,
        path: Path,
    ) -> Result[RemoteAsset, CraftError]: ...

    def delete_asset(
        self, ctx: ExecutionContext, release: ReleaseRecord, asset: RemoteAsset
    ) -> Result[None, CraftError]: ...

    def finalize_release(
        self, ctx: ExecutionContext, release: ReleaseRecord
    ) -> Result[None, CraftError]: ...

    def delete_release(
        self, ctx: ExecutionContext, release: ReleaseRecord
    ) -> Result[None, CraftError]: ...


@dataclass(frozen=True, slots=True)
class TargetEnv:
    """What a target factory gets besides its own configuration."""

    root: Path
    github: GithubConfig
    artifact_source: ArtifactSource


TargetFactory = Callable[[TargetConfig, TargetEnv], Result[TargetProvider, ConfigurationError]]


def filter_artifacts(
    artifacts: list[Artifact], config: TargetConfig
) -> Result[list[Artifact], ConfigurationError]:
    """Apply the target's `include_names` / `exclude_names` patterns."""
    include = config.option_str("include_names")
    exclude = config.option_str("exclude_names")
    try:
        include_re = pattern_to_regexp(include) if include else None
        exclude_re = pattern_to_regexp(exclude) if exclude else None
    except ValueError as e:
        return Err(
            ConfigurationError(
                message=f"Invalid artifact pattern for target {config.display_id}: {e}",
                hint='use "/regex/flags", a glob, or an exact file name',
            )
        )

    out = [a for a in artifacts if include_re is None or include_re.search(a.name)]
    return Ok([a for a in out if exclude_re is None or not exclude_re.search(a.name)])


class BaseTarget:
    """Artifact lookup and tag naming shared by concrete targets."""

    def __init__(self, config: TargetConfig, env: TargetEnv) -> None:
        self._config = config
        self.env = env

    @property
    def config(self) -> TargetConfig:
        return self._config

    def tag_for(self, version: str) -> str:
        return version_to_tag(version, self._config.option_str("tag_prefix"))

    def get_artifacts_for_revision(self, revision: str) -> Result[list[Artifact], CraftError]:
        listed = self.env.artifact_source.list_artifacts_for_revision(revision)
        if isinstance(listed, Err):
            return listed
        filtered = filter_artifacts(listed.value, self._config)
        if isinstance(filtered, Err):
            return filtered
        return Ok(filtered.value)
