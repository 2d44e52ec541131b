"""Workspace dependency graph and publish ordering.

Packages live in a flat arena indexed by position; edges are index pairs.
Cycle detection walks the arena with an explicit stack (no recursion) so
that deep graphs cannot exhaust the interpreter stack and the exact cycle
can be reported.
"""

from __future__ import annotations

import heapq
from collections.abc import Sequence
from dataclasses import dataclass

from craft.core.errors import DependencyGraphError
from craft.core.patterns import pattern_to_regexp
from craft.core.result import Err, Ok, Result
from craft.workspaces.discovery import WorkspacePackage

__all__ = [
    "DependencyGraph",
    "artifact_pattern",
    "filter_packages",
    "topological_sort",
]


@dataclass(frozen=True, slots=True)
class DependencyGraph:
    """Packages plus "depends on" edges between them.

    Attributes:
        packages: Arena, in input order.
        index: Package name to arena index.
        edges: (dependent, dependency) index pairs; out-of-set names are dropped.
    """

    packages: tuple[WorkspacePackage, ...]
    index: dict[str, int]
    edges: tuple[tuple[int, int], ...]

    @classmethod
    def build(cls, packages: Sequence[WorkspacePackage]) -> DependencyGraph:
        index = {p.name: i for i, p in enumerate(packages)}
        edges: list[tuple[int, int]] = []
        for i, package in enumerate(packages):
            # Sorted for a deterministic walk; frozenset order is not.
            for dep in sorted(package.workspace_dependencies):
                j = index.get(dep)
                if j is not None and j != i:
                    edges.append((i, j))
        return cls(packages=tuple(packages), index=index, edges=tuple(edges))

    def dependencies(self) -> list[list[int]]:
        """Adjacency list: for each index, the indices it depends on."""
        adj: list[list[int]] = [[] for _ in self.packages]
        for dependent, dependency in self.edges:
            adj[dependent].append(dependency)
        return adj

    def find_cycle(self) -> list[int] | None:
        """First cycle found, as indices with the first repeated at the end."""
        adj = self.dependencies()
        done: set[int] = set()

        for root in range(len(self.packages)):
            if root in done:
                continue
            path: list[int] = [root]
            on_path: set[int] = {root}
            cursors: list[int] = [0]

            while path:
                node = path[-1]
                if cursors[-1] < len(adj[node]):
                    nxt = adj[node][cursors[-1]]
                    cursors[-1] += 1
                    if nxt in on_path:
                        start = path.index(nxt)
                        return path[start:] + [nxt]
                    if nxt not in done:
                        path.append(nxt)
                        on_path.add(nxt)
                        cursors.append(0)
                else:
                    done.add(node)
                    on_path.discard(node)
                    path.pop()
                    cursors.pop()
        return None


def topological_sort(
    packages: Sequence[WorkspacePackage],
) -> Result[list[WorkspacePackage], DependencyGraphError]:
    """Order packages so that each comes after its in-set dependencies.

    Among packages that are ready at the same time, the one listed first in
    the input goes first.
    """
    graph = DependencyGraph.build(packages)

    cycle = graph.find_cycle()
    if cycle is not None:
        names = tuple(graph.packages[i].name for i in cycle)
        return Err(
            DependencyGraphError(
                cycle=names,
                message=f"Circular dependency between workspace packages: {' -> '.join(names)}",
                hint="break the cycle; packages in a publish order must form a DAG",
            )
        )

    remaining = [0] * len(graph.packages)
    dependents: list[list[int]] = [[] for _ in graph.packages]
    for dependent, dependency in graph.edges:
        remaining[dependent] += 1
        dependents[dependency].append(dependent)

    ready = [i for i, count in enumerate(remaining) if count == 0]
    heapq.heapify(ready)
    order: list[WorkspacePackage] = []
    while ready:
        i = heapq.heappop(ready)
        order.append(graph.packages[i])
        for dependent in dependents[i]:
            remaining[dependent] -= 1
            if remaining[dependent] == 0:
                heapq.heappush(ready, dependent)

    return Ok(order)


def filter_packages(
    packages: Sequence[WorkspacePackage],
    include: str | None = None,
    exclude: str | None = None,
) -> list[WorkspacePackage]:
    """Keep packages whose name matches `include`, then drop `exclude` matches."""
    out = list(packages)
    if include:
        include_re = pattern_to_regexp(include)
        out = [p for p in out if include_re.search(p.name)]
    if exclude:
        exclude_re = pattern_to_regexp(exclude)
        out = [p for p in out if not exclude_re.search(p.name)]
    return out


def artifact_pattern(package_name: str) -> str:
    """Pattern of the tarball `npm pack` produces for a package.

    "@sentry/browser" -> "/^sentry-browser-\\d.*\\.tgz$/"
    """
    simple = package_name.removeprefix("@").replace("/", "-").replace(".", "\\.")
    return f"/^{simple}-\\d.*\\.tgz$/"
