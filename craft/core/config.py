"""Typed project configuration (`.craft.toml`).

The file is optional; every setting has a default. Values are validated while
building the frozen dataclasses, and structural problems surface as
`ConfigError` from `load_config`.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_int, get_list, get_str, get_table

__all__ = [
    "CONFIG_FILE_NAME",
    "ArtifactsConfig",
    "CalVerConfig",
    "ChangelogConfig",
    "ChangelogPolicy",
    "ConfigError",
    "GithubConfig",
    "ProjectConfig",
    "PublishConfig",
    "SummaryConfig",
    "TargetConfig",
    "VersioningPolicy",
    "load_config",
]

CONFIG_FILE_NAME = ".craft.toml"

DEFAULT_RELEASE_BRANCH_PREFIX = "release"
DEFAULT_CHANGELOG_PATH = "CHANGELOG.md"
DEFAULT_CALVER_OFFSET = 14
DEFAULT_CALVER_FORMAT = "%y.%-m"
DEFAULT_SUMMARY_THRESHOLD = 5
DEFAULT_SUMMARY_MODEL = "openai/gpt-4o-mini"
DEFAULT_MAX_CONCURRENCY = 4


class VersioningPolicy(StrEnum):
    MANUAL = "manual"
    AUTO = "auto"
    CALVER = "calver"


class ChangelogPolicy(StrEnum):
    NONE = "none"
    SIMPLE = "simple"
    AUTO = "auto"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class CalVerConfig:
    offset: int = DEFAULT_CALVER_OFFSET
    format: str = DEFAULT_CALVER_FORMAT


@dataclass(frozen=True, slots=True)
class SummaryConfig:
    """Changelog summarization settings.

    Attributes:
        enabled: Summaries are only attempted when True.
        threshold: A bucket is summarized only when it has MORE items than this.
        model: Remote model id; a "local:" prefix skips the remote tier.
    """

    enabled: bool = False
    threshold: int = DEFAULT_SUMMARY_THRESHOLD
    model: str = DEFAULT_SUMMARY_MODEL


@dataclass(frozen=True, slots=True)
class ChangelogConfig:
    path: str = DEFAULT_CHANGELOG_PATH
    policy: ChangelogPolicy = ChangelogPolicy.NONE
    group_by_scope: bool = False
    summaries: SummaryConfig = field(default_factory=SummaryConfig)


@dataclass(frozen=True, slots=True)
class GithubConfig:
    owner: str | None = None
    repo: str | None = None

    @property
    def slug(self) -> str | None:
        if self.owner and self.repo:
            return f"{self.owner}/{self.repo}"
        return None


@dataclass(frozen=True, slots=True)
class ArtifactsConfig:
    provider: str = "local"
    path: str = "dist"


@dataclass(frozen=True, slots=True)
class PublishConfig:
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    status_check: bool = True


@dataclass(frozen=True, slots=True)
class TargetConfig:
    """One distribution destination.

    Attributes:
        name: Provider name in the target registry (e.g. "github").
        options: Remaining target-specific keys, verbatim.
        id: Display id; workspace expansion yields "github[@scope/pkg]".
    """

    name: str
    options: StrDict = field(default_factory=dict)
    id: str = ""

    @property
    def display_id(self) -> str:
        return self.id or self.name

    def option_str(self, key: str, default: str = "") -> str:
        value = self.options.get(key)
        return value if isinstance(value, str) else default

    def option_bool(self, key: str, default: bool = False) -> bool:
        return get_bool(self.options, key, default)


@dataclass(frozen=True, slots=True)
class ProjectConfig:
    """Main configuration container."""

    release_branch_prefix: str = DEFAULT_RELEASE_BRANCH_PREFIX
    pre_release_command: str | None = None
    github: GithubConfig = field(default_factory=GithubConfig)
    versioning: VersioningPolicy = VersioningPolicy.MANUAL
    calver: CalVerConfig = field(default_factory=CalVerConfig)
    changelog: ChangelogConfig = field(default_factory=ChangelogConfig)
    artifacts: ArtifactsConfig = field(default_factory=ArtifactsConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    targets: tuple[TargetConfig, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ProjectConfig:
        """Create ProjectConfig from parsed TOML.

        Raises:
            ValueError: On unknown policy values or malformed targets.
        """
        github: StrDict = get_table(data, "github") or {}
        versioning: StrDict = get_table(data, "versioning") or {}
        calver: StrDict = get_table(versioning, "calver") or {}
        changelog: StrDict = get_table(data, "changelog") or {}
        summaries: StrDict = get_table(changelog, "summaries") or {}
        artifacts: StrDict = get_table(data, "artifacts") or {}
        publish: StrDict = get_table(data, "publish") or {}

        offset = get_int(calver, "offset")
        env_offset = os.environ.get("CRAFT_CALVER_OFFSET", "").strip()
        if env_offset:
            offset = int(env_offset)

        return cls(
            release_branch_prefix=get_str(data, "release_branch_prefix")
            or DEFAULT_RELEASE_BRANCH_PREFIX,
            pre_release_command=get_str(data, "pre_release_command"),
            github=GithubConfig(owner=get_str(github, "owner"), repo=get_str(github, "repo")),
            versioning=_policy(VersioningPolicy, get_str(versioning, "policy"), "manual"),
            calver=CalVerConfig(
                offset=DEFAULT_CALVER_OFFSET if offset is None else offset,
                format=get_str(calver, "format") or DEFAULT_CALVER_FORMAT,
            ),
            changelog=ChangelogConfig(
                path=get_str(changelog, "path") or DEFAULT_CHANGELOG_PATH,
                policy=_policy(ChangelogPolicy, get_str(changelog, "policy"), "none"),
                group_by_scope=get_bool(changelog, "group_by_scope"),
                summaries=SummaryConfig(
                    enabled=get_bool(summaries, "enabled"),
                    threshold=get_int(summaries, "threshold") or DEFAULT_SUMMARY_THRESHOLD,
                    model=get_str(summaries, "model") or DEFAULT_SUMMARY_MODEL,
                ),
            ),
            artifacts=ArtifactsConfig(
                provider=get_str(artifacts, "provider") or "local",
                path=get_str(artifacts, "path") or "dist",
            ),
            publish=PublishConfig(
                max_concurrency=get_int(publish, "max_concurrency") or DEFAULT_MAX_CONCURRENCY,
                status_check=get_bool(publish, "status_check", True),
            ),
            targets=_targets(data),
        )


def _policy[P: StrEnum](enum: type[P], value: str | None, default: str) -> P:
    raw = (value or default).lower()
    try:
        return enum(raw)
    except ValueError:
        allowed = ", ".join(p.value for p in enum)
        raise ValueError(
            f"unsupported {enum.__name__} '{raw}' (expected one of: {allowed})"
        ) from None


def _targets(data: Mapping[str, object]) -> tuple[TargetConfig, ...]:
    raw = get_list(data, "targets")
    if raw is None:
        return ()

    targets: list[TargetConfig] = []
    for i, item in enumerate(raw):
        table = as_str_dict(item)
        if table is None:
            raise ValueError(f"targets[{i}] must be a table")
        name = get_str(table, "name")
        if name is None:
            raise ValueError(f"targets[{i}] is missing 'name'")
        options = {k: v for k, v in table.items() if k not in {"name", "id"}}
        targets.append(TargetConfig(name=name, options=options, id=get_str(table, "id") or ""))
    return tuple(targets)


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[ProjectConfig, ConfigError]:
    """Load `.craft.toml`; a missing file yields the defaults."""
    if not path.exists():
        return Ok(ProjectConfig())

    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(ProjectConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))
