"""Workspace discovery and publish ordering."""

from craft.workspaces.discovery import (
    WorkspaceDiscovery,
    WorkspacePackage,
    WorkspaceType,
    discover,
)
from craft.workspaces.graph import (
    DependencyGraph,
    artifact_pattern,
    filter_packages,
    topological_sort,
)

__all__ = [
    "DependencyGraph",
    "WorkspaceDiscovery",
    "WorkspacePackage",
    "WorkspaceType",
    "artifact_pattern",
    "discover",
    "filter_packages",
    "topological_sort",
]
