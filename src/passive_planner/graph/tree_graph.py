"""Immutable passive tree graph.

Built once per tree definition and shared read-only by every optimization
run. Adjacency is symmetric: b in neighbors(a) iff a in neighbors(b).
Edges that reference unknown ids get a zero-value Travel stub so path
searches never dereference a missing node.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import Any

from passive_planner.errors import NoStartNodeError
from passive_planner.models.constants import (
    DEFAULT_CLASS_ORDER,
    NodeKind,
    class_for_ascendancy,
    normalize_name,
)
from passive_planner.models.node import AttributeBonuses, Node
from passive_planner.parser.class_starts import ClassStartTable, resolve_class_starts
from passive_planner.parser.node_classification import classify_node
from passive_planner.parser.stat_scoring import (
    attributes_from_stats,
    extract_tags,
    score_stats,
)
from passive_planner.parser.tree_schema import (
    ROOT_NODE_ID,
    RawNode,
    RawTree,
    parse_tree_payload,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Builder helpers
# ---------------------------------------------------------------------------


def _symmetric_adjacency(
    declared: Mapping[str, Iterable[str]],
    extra_edges: Iterable[tuple[str, str]] = (),
) -> tuple[dict[str, set[str]], set[str]]:
    """Union all edges, force symmetry, and report ids needing stubs."""
    adjacency: dict[str, set[str]] = {node_id: set() for node_id in declared}
    stubs: set[str] = set()

    def _link(a: str, b: str) -> None:
        if a == b:
            return
        for end in (a, b):
            if end not in adjacency:
                adjacency[end] = set()
                stubs.add(end)
        adjacency[a].add(b)
        adjacency[b].add(a)

    for node_id, edges in declared.items():
        for other in edges:
            _link(node_id, other)
    for a, b in extra_edges:
        _link(a, b)
    return adjacency, stubs


def _stub(node_id: str, neighbors: set[str]) -> Node:
    return Node(
        id=node_id,
        name=f"Node {node_id}",
        kind=NodeKind.TRAVEL,
        neighbors=frozenset(neighbors),
        is_stub=True,
    )


def _node_from_raw(raw: RawNode, neighbors: set[str]) -> Node:
    stats = tuple(raw.stats)
    attributes = raw.attributes or attributes_from_stats(stats)
    kind = raw.explicit_kind or classify_node(
        stats=stats,
        attributes=attributes,
        is_keystone=raw.is_keystone,
        is_notable=raw.is_notable,
    ).kind
    score = score_stats(stats)
    return Node(
        id=raw.id,
        name=raw.name,
        kind=kind,
        stats=stats,
        tags=extract_tags(stats, raw.icon) | frozenset(raw.tags),
        offense=score.offense if raw.offense is None else raw.offense,
        defense=score.defense if raw.defense is None else raw.defense,
        attributes=attributes,
        neighbors=frozenset(neighbors),
    )


# ---------------------------------------------------------------------------
# TreeGraph
# ---------------------------------------------------------------------------


class TreeGraph:
    """id -> Node map with symmetric adjacency and resolved class starts."""

    __slots__ = ("_nodes", "_node_ids", "_class_starts", "_class_sources", "_class_order")

    def __init__(
        self,
        nodes: Mapping[str, Node],
        class_starts: ClassStartTable,
        class_order: tuple[str, ...] = DEFAULT_CLASS_ORDER,
    ) -> None:
        for class_name, node_id in class_starts.starts.items():
            if node_id not in nodes:
                raise ValueError(
                    f"Class start for {class_name!r} points at unknown node {node_id!r}"
                )
        self._nodes: Mapping[str, Node] = MappingProxyType(dict(nodes))
        self._node_ids: tuple[str, ...] = tuple(sorted(nodes))
        self._class_starts: Mapping[str, str] = MappingProxyType(dict(class_starts.starts))
        self._class_sources: Mapping[str, str] = MappingProxyType(dict(class_starts.sources))
        self._class_order = tuple(class_order)

    # --- Construction --------------------------------------------------------

    @classmethod
    def from_raw(cls, raw: RawTree) -> TreeGraph:
        """Assemble a graph from canonical raw nodes."""
        # The synthetic root only carries class-start hints; never link to it.
        adjacency, stub_ids = _symmetric_adjacency(
            {
                node_id: [e for e in node.edges if e != ROOT_NODE_ID]
                for node_id, node in raw.nodes.items()
            },
            [(a, b) for a, b in raw.extra_edges if ROOT_NODE_ID not in (a, b)],
        )
        nodes: dict[str, Node] = {}
        for node_id, raw_node in raw.nodes.items():
            nodes[node_id] = _node_from_raw(raw_node, adjacency[node_id])
        for node_id in stub_ids:
            nodes[node_id] = _stub(node_id, adjacency[node_id])

        table = resolve_class_starts(raw.nodes, adjacency, raw.class_order, raw.root_edges)
        edge_count = sum(len(v) for v in adjacency.values()) // 2
        logger.debug(
            "Built tree graph: %d nodes, %d edges, %d stubs, %d class starts",
            len(nodes), edge_count, len(stub_ids), len(table.starts),
        )
        return cls(nodes, table, raw.class_order)

    @classmethod
    def from_dict(cls, payload: Any) -> TreeGraph:
        """Parse a decoded tree definition (raises GraphParseError)."""
        return cls.from_raw(parse_tree_payload(payload))

    @classmethod
    def from_nodes(
        cls,
        nodes: Iterable[Node],
        class_starts: Mapping[str, str] | None = None,
        class_order: tuple[str, ...] = DEFAULT_CLASS_ORDER,
    ) -> TreeGraph:
        """Build from ready-made Node objects, enforcing symmetry and stubs."""
        by_id = {node.id: node for node in nodes}
        adjacency, stub_ids = _symmetric_adjacency(
            {node_id: node.neighbors for node_id, node in by_id.items()}
        )
        out: dict[str, Node] = {
            node_id: replace(node, neighbors=frozenset(adjacency[node_id]))
            for node_id, node in by_id.items()
        }
        for node_id in stub_ids:
            out[node_id] = _stub(node_id, adjacency[node_id])

        if class_starts is None:
            table = resolve_class_starts({}, adjacency, class_order)
        else:
            table = ClassStartTable()
            for class_name, node_id in class_starts.items():
                table.assign(normalize_name(class_name), node_id, "explicit")
        return cls(out, table, class_order)

    # --- Queries -------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return (self._nodes[node_id] for node_id in self._node_ids)

    @property
    def nodes(self) -> Mapping[str, Node]:
        return self._nodes

    @property
    def node_ids(self) -> tuple[str, ...]:
        """All ids in sorted order."""
        return self._node_ids

    @property
    def class_starts(self) -> Mapping[str, str]:
        return self._class_starts

    @property
    def class_start_sources(self) -> Mapping[str, str]:
        return self._class_sources

    @property
    def class_order(self) -> tuple[str, ...]:
        return self._class_order

    @property
    def edge_count(self) -> int:
        return sum(len(node.neighbors) for node in self._nodes.values()) // 2

    def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def node(self, node_id: str) -> Node:
        """Return the node for an id; KeyError if unknown."""
        return self._nodes[node_id]

    def neighbors(self, node_id: str) -> frozenset[str]:
        node = self._nodes.get(node_id)
        return node.neighbors if node else frozenset()

    def resolve(self, node_ids: Iterable[str]) -> list[Node]:
        """Map ids back to their Node objects, preserving order."""
        return [self._nodes[node_id] for node_id in node_ids]

    def nodes_of_kind(self, kind: NodeKind) -> list[Node]:
        return [node for node in self if node.kind is kind]

    def start_node_for(
        self,
        class_name: str | None = None,
        ascendancy: str | None = None,
    ) -> str:
        """Resolve a class (or an ascendancy's base class) to its start node."""
        wanted: str | None = normalize_name(class_name) if class_name else None
        if wanted is None and ascendancy:
            wanted = class_for_ascendancy(ascendancy)
        if wanted is None:
            label = class_name or ascendancy or "<none>"
            raise NoStartNodeError(label, list(self._class_starts))
        node_id = self._class_starts.get(wanted)
        if node_id is None:
            raise NoStartNodeError(wanted, list(self._class_starts))
        return node_id

    def is_connected(self, node_ids: Iterable[str]) -> bool:
        """True when the given ids induce a single connected component."""
        members = set(node_ids)
        if not members:
            return True
        first = min(members)
        seen = {first}
        queue = deque([first])
        while queue:
            current = queue.popleft()
            for other in self.neighbors(current):
                if other in members and other not in seen:
                    seen.add(other)
                    queue.append(other)
        return seen == members


def keystone_groups(graph: TreeGraph) -> dict[str, list[Node]]:
    """Group keystones for selection lists: offense, defense, hybrid."""
    groups: dict[str, list[Node]] = {"offense": [], "defense": [], "hybrid": []}
    for node in sorted(graph.nodes_of_kind(NodeKind.KEYSTONE), key=lambda n: (n.name, n.id)):
        if node.offense > node.defense + 2:
            groups["offense"].append(node)
        elif node.defense > node.offense + 2:
            groups["defense"].append(node)
        else:
            groups["hybrid"].append(node)
    return groups
