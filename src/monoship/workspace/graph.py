"""Dependency graph over workspace packages.

Packages live in an arena (a list) and edges are sets of integer indices
into it, so the graph never holds references between packages.
"""

from __future__ import annotations

import heapq
from collections.abc import Iterable

from monoship.errors import CyclicDependencyError, GraphError, PackageNotFoundError
from monoship.workspace.package import Package


class DependencyGraph:
    """Read-only graph of local dependency edges.

    An edge A -> B means A depends on B, so B must be published first.
    Build edges are always present; dev edges are kept separately and only
    used when a caller asks for them.
    """

    def __init__(self, packages: Iterable[Package]) -> None:
        self._packages: list[Package] = []
        self._index: dict[str, int] = {}

        for pkg in packages:
            if pkg.name in self._index:
                other = self._packages[self._index[pkg.name]]
                raise GraphError(
                    f"Duplicate package name '{pkg.name}' ({other.path} and {pkg.path})"
                )
            self._index[pkg.name] = len(self._packages)
            self._packages.append(pkg)

        size = len(self._packages)
        self._deps: list[set[int]] = [set() for _ in range(size)]
        self._dev_deps: list[set[int]] = [set() for _ in range(size)]
        self._dependents: list[set[int]] = [set() for _ in range(size)]
        self._dev_dependents: list[set[int]] = [set() for _ in range(size)]

        for idx, pkg in enumerate(self._packages):
            for name in pkg.dependencies:
                dep = self._resolve(pkg, name)
                self._deps[idx].add(dep)
                self._dependents[dep].add(idx)
            for name in pkg.dev_dependencies:
                dep = self._resolve(pkg, name)
                self._dev_deps[idx].add(dep)
                self._dev_dependents[dep].add(idx)

    def _resolve(self, pkg: Package, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise GraphError(
                f"{pkg.name} declares local dependency '{name}' which is not a workspace member"
            ) from None

    def __len__(self) -> int:
        return len(self._packages)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    @property
    def packages(self) -> list[Package]:
        return list(self._packages)

    def get(self, name: str) -> Package:
        """Get a package by canonical name.

        Raises:
            PackageNotFoundError: If unknown.
        """
        try:
            return self._packages[self._index[name]]
        except KeyError:
            raise PackageNotFoundError(name, self._index) from None

    def _idx(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise PackageNotFoundError(name, self._index) from None

    def _edges(self, include_dev: bool, reverse: bool) -> list[set[int]]:
        base = self._dependents if reverse else self._deps
        if not include_dev:
            return base
        extra = self._dev_dependents if reverse else self._dev_deps
        return [a | b for a, b in zip(base, extra)]

    def _sorted(self, indices: Iterable[int]) -> list[Package]:
        return sorted((self._packages[i] for i in indices), key=lambda p: p.name)

    def get_dependencies(self, name: str, *, include_dev: bool = False) -> list[Package]:
        """Direct local dependencies of a package (successors)."""
        return self._sorted(self._edges(include_dev, reverse=False)[self._idx(name)])

    def get_dependents(self, name: str, *, include_dev: bool = False) -> list[Package]:
        """Packages that directly depend on a package (predecessors)."""
        return self._sorted(self._edges(include_dev, reverse=True)[self._idx(name)])

    def _closure(self, starts: Iterable[int], edges: list[set[int]]) -> set[int]:
        seen: set[int] = set()
        stack = list(starts)
        while stack:
            current = stack.pop()
            for nxt in edges[current]:
                if nxt not in seen:
                    seen.add(nxt)
                    stack.append(nxt)
        return seen

    def get_transitive_dependents(self, name: str, *, include_dev: bool = False) -> list[Package]:
        """Everything that depends on a package, directly or not."""
        idx = self._idx(name)
        found = self._closure([idx], self._edges(include_dev, reverse=True))
        found.discard(idx)
        return self._sorted(found)

    def get_transitive_dependencies(
        self, name: str, *, include_dev: bool = False
    ) -> list[Package]:
        """Everything a package depends on, directly or not."""
        idx = self._idx(name)
        found = self._closure([idx], self._edges(include_dev, reverse=False))
        found.discard(idx)
        return self._sorted(found)

    def cascade(self, names: Iterable[str], *, include_dev: bool = False) -> set[str]:
        """Forward closure: the given packages plus all their transitive dependents."""
        starts = {self._idx(n) for n in names}
        found = self._closure(starts, self._edges(include_dev, reverse=True)) | starts
        return {self._packages[i].name for i in found}

    def topological_order(
        self, names: Iterable[str], *, include_dev: bool = False
    ) -> list[Package]:
        """Order a subset so that dependencies come before dependents.

        Kahn's algorithm over the subgraph induced by names; edges leaving
        the subset are ignored. Among ready packages the smallest name goes
        first, so the result is deterministic.

        Raises:
            CyclicDependencyError: If the induced subgraph has a cycle.
        """
        selected = {self._idx(n) for n in names}
        edges = self._edges(include_dev, reverse=False)

        in_degree = {i: len(edges[i] & selected) for i in selected}
        dependents: dict[int, list[int]] = {i: [] for i in selected}
        for i in selected:
            for dep in edges[i] & selected:
                dependents[dep].append(i)

        ready = [(self._packages[i].name, i) for i, deg in in_degree.items() if deg == 0]
        heapq.heapify(ready)
        order: list[Package] = []

        while ready:
            _, current = heapq.heappop(ready)
            order.append(self._packages[current])
            for dependent in dependents[current]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, (self._packages[dependent].name, dependent))

        if len(order) != len(selected):
            stuck = {i for i, deg in in_degree.items() if deg > 0}
            raise CyclicDependencyError(self._packages[i].name for i in self._cyclic(stuck, edges))

        return order

    def _cyclic(self, stuck: set[int], edges: list[set[int]]) -> set[int]:
        # Nodes left after Kahn include dependents of a cycle; keep only
        # nodes that can reach themselves.
        restricted = [e & stuck for e in edges]
        members = {i for i in stuck if i in self._closure([i], restricted)}
        return members or stuck

    def to_dot(self, names: Iterable[str] | None = None, *, include_dev: bool = False) -> str:
        """Render the (sub)graph in Graphviz dot format."""
        chosen = (
            {self._idx(n) for n in names} if names is not None else set(range(len(self)))
        )
        edges = self._edges(include_dev, reverse=False)
        lines = ["digraph workspace {"]
        for i in sorted(chosen, key=lambda i: self._packages[i].name):
            pkg = self._packages[i]
            lines.append(f'    "{pkg.name}" [label="{pkg.name}\\n{pkg.version}"];')
        for i in sorted(chosen, key=lambda i: self._packages[i].name):
            for dep in sorted(edges[i] & chosen, key=lambda d: self._packages[d].name):
                lines.append(f'    "{self._packages[i].name}" -> "{self._packages[dep].name}";')
        lines.append("}")
        return "\n".join(lines) + "\n"
