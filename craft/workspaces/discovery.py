"""Multi-package repository discovery.

Supported layouts, checked in order: pnpm (`pnpm-workspace.yaml`),
npm / yarn (`workspaces` in the root `package.json`) and uv
(`[tool.uv.workspace]` in the root `pyproject.toml`). A repository with none
of them, or a root that does not exist, is reported as type "none".
"""

from __future__ import annotations

import json
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import yaml

from craft.core.structured import StrDict, as_str_dict, get_list, get_str, get_str_list, get_table

__all__ = [
    "WorkspaceDiscovery",
    "WorkspacePackage",
    "WorkspaceType",
    "discover",
]

WorkspaceType = Literal["none", "npm", "yarn", "pnpm", "uv"]

_NPM_DEPENDENCY_FIELDS = ("dependencies", "peerDependencies", "optionalDependencies")
_REQUIREMENT_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


@dataclass(frozen=True, slots=True)
class WorkspacePackage:
    """A member package.

    Attributes:
        name: Unique within the workspace.
        location: Package directory.
        is_private: Never published (npm `private: true`).
        workspace_dependencies: Names of other members this one depends on.
    """

    name: str
    location: Path
    is_private: bool = False
    workspace_dependencies: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True, slots=True)
class WorkspaceDiscovery:
    type: WorkspaceType
    packages: tuple[WorkspacePackage, ...] = ()


def discover(root: Path) -> WorkspaceDiscovery:
    if not root.is_dir():
        return WorkspaceDiscovery(type="none")

    pnpm = root / "pnpm-workspace.yaml"
    if pnpm.is_file():
        return _discover_pnpm(root, pnpm)

    manifest = _read_json(root / "package.json")
    if manifest is not None and "workspaces" in manifest:
        kind: WorkspaceType = "yarn" if (root / "yarn.lock").exists() else "npm"
        return WorkspaceDiscovery(type=kind, packages=_npm_members(root, _npm_globs(manifest)))

    pyproject = _read_toml(root / "pyproject.toml")
    if pyproject is not None:
        tool = get_table(pyproject, "tool") or {}
        uv_workspace = get_table(get_table(tool, "uv") or {}, "workspace")
        if uv_workspace is not None:
            return _discover_uv(root, uv_workspace)

    return WorkspaceDiscovery(type="none")


# -----------------------------------------------------------------------------
# npm / yarn / pnpm
# -----------------------------------------------------------------------------


def _npm_globs(manifest: StrDict) -> list[str]:
    workspaces = manifest.get("workspaces")
    if isinstance(workspaces, list):
        return [w for w in workspaces if isinstance(w, str)]
    table = as_str_dict(workspaces)
    if table is not None:
        return get_str_list(table, "packages")
    return []


def _discover_pnpm(root: Path, config_path: Path) -> WorkspaceDiscovery:
    try:
        data = as_str_dict(yaml.safe_load(config_path.read_text(encoding="utf-8")))
    except (OSError, yaml.YAMLError):
        data = None
    globs = get_str_list(data, "packages") if data is not None else []
    return WorkspaceDiscovery(type="pnpm", packages=_npm_members(root, globs))


def _npm_members(root: Path, globs: list[str]) -> tuple[WorkspacePackage, ...]:
    include = [g for g in globs if not g.startswith("!")]
    exclude = [g[1:] for g in globs if g.startswith("!")]

    manifests: list[tuple[Path, StrDict]] = []
    for directory in _expand_globs(root, include, exclude):
        manifest = _read_json(directory / "package.json")
        if manifest is not None and get_str(manifest, "name"):
            manifests.append((directory, manifest))

    names = {get_str(m, "name") or "" for _, m in manifests}
    packages: list[WorkspacePackage] = []
    for directory, manifest in manifests:
        deps: set[str] = set()
        for field_name in _NPM_DEPENDENCY_FIELDS:
            table = get_table(manifest, field_name) or {}
            deps.update(name for name in table if name in names)

        name = get_str(manifest, "name") or ""
        deps.discard(name)
        packages.append(
            WorkspacePackage(
                name=name,
                location=directory,
                is_private=manifest.get("private") is True,
                workspace_dependencies=frozenset(deps),
            )
        )
    return tuple(packages)


# -----------------------------------------------------------------------------
# uv
# -----------------------------------------------------------------------------


def _discover_uv(root: Path, workspace: StrDict) -> WorkspaceDiscovery:
    members = get_str_list(workspace, "members")
    exclude = get_str_list(workspace, "exclude")

    projects: list[tuple[Path, StrDict]] = []
    for directory in _expand_globs(root, members, exclude):
        pyproject = _read_toml(directory / "pyproject.toml")
        project = get_table(pyproject, "project") if pyproject is not None else None
        if project is not None and get_str(project, "name"):
            projects.append((directory, project))

    names = {_canonical(get_str(p, "name") or "") for _, p in projects}
    packages: list[WorkspacePackage] = []
    for directory, project in projects:
        name = get_str(project, "name") or ""
        deps: set[str] = set()
        for requirement in get_list(project, "dependencies") or []:
            if not isinstance(requirement, str):
                continue
            m = _REQUIREMENT_NAME_RE.match(requirement)
            if m is not None and _canonical(m.group(1)) in names:
                deps.add(_canonical(m.group(1)))
        deps.discard(_canonical(name))
        classifiers = get_str_list(project, "classifiers")
        packages.append(
            WorkspacePackage(
                name=_canonical(name),
                location=directory,
                is_private="Private :: Do Not Upload" in classifiers,
                workspace_dependencies=frozenset(deps),
            )
        )
    return WorkspaceDiscovery(type="uv", packages=tuple(packages))


def _canonical(name: str) -> str:
    return re.sub(r"[-_.]+", "-", name).lower()


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------


def _expand_globs(root: Path, include: list[str], exclude: list[str]) -> list[Path]:
    """Member directories in glob order, sorted within each glob."""
    excluded: set[Path] = set()
    for pattern in exclude:
        if not pattern.strip():
            continue
        excluded.update(p.resolve() for p in root.glob(pattern.rstrip("/")) if p.is_dir())

    seen: set[Path] = set()
    out: list[Path] = []
    for pattern in include:
        if not pattern.strip():
            continue
        for candidate in sorted(root.glob(pattern.rstrip("/"))):
            resolved = candidate.resolve()
            if (
                not candidate.is_dir()
                or "node_modules" in candidate.relative_to(root).parts
                or resolved in excluded
                or resolved in seen
            ):
                continue
            seen.add(resolved)
            out.append(candidate)
    return out


def _read_json(path: Path) -> StrDict | None:
    try:
        return as_str_dict(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError):
        return None


def _read_toml(path: Path) -> StrDict | None:
    try:
        return as_str_dict(tomllib.loads(path.read_text(encoding="utf-8")))
    except (OSError, tomllib.TOMLDecodeError, UnicodeDecodeError):
        return None
