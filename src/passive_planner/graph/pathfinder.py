"""Multi-source breadth-first search from the allocated frontier.

Every allocated node seeds the queue at distance 0 (in sorted-id order)
and the visited set starts as the allocated set, so expansion never
re-enters owned territory. FIFO expansion with sorted neighbor order gives
minimum edge-count paths that are identical from run to run.

Path conventions:
  - tuple of newly required ids, frontier side first, target last
  - ()   target is already allocated
  - None target cannot be reached
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from passive_planner.graph.tree_graph import TreeGraph


class PathTree:
    """BFS tree rooted at an allocated set; answers many path queries."""

    __slots__ = ("_allocated", "_parents", "_depth")

    def __init__(
        self,
        allocated: frozenset[str],
        parents: dict[str, str],
        depth: dict[str, int],
    ) -> None:
        self._allocated = allocated
        self._parents = parents
        self._depth = depth

    def cost(self, target: str) -> int | None:
        """Number of new nodes needed to reach target, None if unreachable."""
        if target in self._allocated:
            return 0
        return self._depth.get(target)

    def path_to(self, target: str) -> tuple[str, ...] | None:
        if target in self._allocated:
            return ()
        if target not in self._depth:
            return None
        path: list[str] = []
        current = target
        while current not in self._allocated:
            path.append(current)
            current = self._parents[current]
        path.reverse()
        return tuple(path)

    def reachable(self) -> list[str]:
        """Ids discovered by the search (excluding the allocated seeds)."""
        return sorted(self._depth)


class Pathfinder:
    """Shortest-path queries over an immutable TreeGraph."""

    __slots__ = ("_graph",)

    def __init__(self, graph: TreeGraph) -> None:
        self._graph = graph

    def _bfs(
        self,
        allocated: Iterable[str],
        *,
        target: str | None = None,
        max_cost: int | None = None,
    ) -> PathTree:
        seeds = frozenset(node_id for node_id in allocated if node_id in self._graph)
        parents: dict[str, str] = {}
        depth: dict[str, int] = {}
        visited = set(seeds)
        queue: deque[tuple[str, int]] = deque((node_id, 0) for node_id in sorted(seeds))

        while queue:
            current, dist = queue.popleft()
            if max_cost is not None and dist >= max_cost:
                continue
            for other in sorted(self._graph.neighbors(current)):
                if other in visited:
                    continue
                visited.add(other)
                parents[other] = current
                depth[other] = dist + 1
                if other == target:
                    return PathTree(seeds, parents, depth)
                queue.append((other, dist + 1))
        return PathTree(seeds, parents, depth)

    def search(self, allocated: Iterable[str], max_cost: int | None = None) -> PathTree:
        """Run one full search; paths longer than max_cost are not explored."""
        return self._bfs(allocated, max_cost=max_cost)

    def path_to(self, allocated: Iterable[str], target: str) -> tuple[str, ...] | None:
        """Shortest path from the allocated set to target (see module doc)."""
        allocated = frozenset(allocated)
        if target in allocated:
            return ()
        if target not in self._graph:
            return None
        return self._bfs(allocated, target=target).path_to(target)
