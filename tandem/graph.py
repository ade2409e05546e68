"""Dependency graph utilities.

The workspace graph is an arena: packages live in a list and edges are
lists of indices into it, so cyclic local dependencies are just cycles of
integers. An edge ``dependent → dependency`` exists for every
``dependencies``/``devDependencies`` entry naming another workspace
package. Peer dependencies never create edges.

Ordering contracts each strongly connected component (a dependency
cycle) into a single unit, so cycles never stop an ordering from being
produced and never make a traversal loop.
"""

from __future__ import annotations

import heapq
from collections import deque
from collections.abc import Iterable, Iterator

from .models import Package


class PackageGraph:
    """All workspace packages plus their local dependency edges.

    Args:
        packages: The workspace packages. Names must be unique.

    Example:
        If A depends on B, and B depends on C:
        PackageGraph([A, B, C]).topo_order() → ["c", "b", "a"]
    """

    def __init__(self, packages: Iterable[Package]) -> None:
        self.nodes: list[Package] = list(packages)
        self._index: dict[str, int] = {}
        for i, pkg in enumerate(self.nodes):
            if pkg.name in self._index:
                raise ValueError(f"Duplicate package name: {pkg.name}")
            self._index[pkg.name] = i

        # edges[i] = dependencies of node i; reverse[i] = dependents of node i
        self.edges: list[list[int]] = [[] for _ in self.nodes]
        self.reverse: list[list[int]] = [[] for _ in self.nodes]
        for i, pkg in enumerate(self.nodes):
            for dep in pkg.local_dependency_names:
                j = self._index.get(dep)
                # Only track internal deps, ignore external packages
                if j is None or j == i or j in self.edges[i]:
                    continue
                self.edges[i].append(j)
                self.reverse[j].append(i)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __getitem__(self, name: str) -> Package:
        return self.nodes[self._index[name]]

    def __iter__(self) -> Iterator[Package]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def names(self) -> list[str]:
        return [pkg.name for pkg in self.nodes]

    def dependencies_of(self, name: str) -> list[str]:
        return [self.nodes[j].name for j in self.edges[self._index[name]]]

    def dependents_of(self, name: str) -> list[str]:
        return [self.nodes[j].name for j in self.reverse[self._index[name]]]

    def dependents_closure(self, seeds: Iterable[str]) -> set[str]:
        """Return ``seeds`` plus every package that transitively depends on one.

        Walks reverse edges breadth-first; each node is visited once, so
        cycles terminate.
        """
        seen = {self._index[name] for name in seeds}
        queue = deque(seen)
        while queue:
            node = queue.popleft()
            for dependent in self.reverse[node]:
                if dependent not in seen:
                    seen.add(dependent)
                    queue.append(dependent)
        return {self.nodes[i].name for i in seen}

    def components(self) -> list[list[int]]:
        """Strongly connected components (Tarjan, iterative).

        Returns:
            Components as lists of node indices. A node outside any cycle
            is a component of one.
        """
        index_of: dict[int, int] = {}
        lowlink: dict[int, int] = {}
        on_stack: set[int] = set()
        stack: list[int] = []
        result: list[list[int]] = []
        counter = 0

        for root in range(len(self.nodes)):
            if root in index_of:
                continue
            work: list[tuple[int, int]] = [(root, 0)]
            while work:
                node, edge_pos = work.pop()
                if edge_pos == 0:
                    index_of[node] = lowlink[node] = counter
                    counter += 1
                    stack.append(node)
                    on_stack.add(node)
                recurse = False
                edges = self.edges[node]
                while edge_pos < len(edges):
                    succ = edges[edge_pos]
                    edge_pos += 1
                    if succ not in index_of:
                        work.append((node, edge_pos))
                        work.append((succ, 0))
                        recurse = True
                        break
                    if succ in on_stack:
                        lowlink[node] = min(lowlink[node], index_of[succ])
                if recurse:
                    continue
                if lowlink[node] == index_of[node]:
                    component: list[int] = []
                    while True:
                        member = stack.pop()
                        on_stack.discard(member)
                        component.append(member)
                        if member == node:
                            break
                    result.append(component)
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[node])
        return result

    def cycles(self) -> list[list[str]]:
        """Names of the packages in each dependency cycle, sorted."""
        return [
            sorted(self.nodes[i].name for i in comp)
            for comp in self.components()
            if len(comp) > 1
        ]

    def topo_order(self, names: Iterable[str] | None = None) -> list[str]:
        """Order packages so dependencies come before their dependents.

        Uses Kahn's algorithm over the condensed graph (each cycle is one
        unit). Ready units are taken alphabetically for deterministic
        output, and members of a cycle are listed alphabetically.

        Args:
            names: Restrict the result to these packages. Relative order is
                   the same as in the full ordering.

        Returns:
            Package names, dependencies first.
        """
        comps = self.components()
        comp_of: dict[int, int] = {}
        for c, members in enumerate(comps):
            for node in members:
                comp_of[node] = c

        keys = [sorted(self.nodes[i].name for i in members) for members in comps]
        # Count incoming edges (dependencies) for each component
        in_degree = [0] * len(comps)
        dependents: list[set[int]] = [set() for _ in comps]
        for node, deps in enumerate(self.edges):
            for dep in deps:
                src, dst = comp_of[node], comp_of[dep]
                if src != dst and src not in dependents[dst]:
                    dependents[dst].add(src)
                    in_degree[src] += 1

        ready = [(keys[c], c) for c in range(len(comps)) if in_degree[c] == 0]
        heapq.heapify(ready)
        order: list[str] = []
        while ready:
            key, c = heapq.heappop(ready)
            order.extend(key)
            for dependent in dependents[c]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, (keys[dependent], dependent))

        if names is None:
            return order
        wanted = set(names)
        return [name for name in order if name in wanted]
