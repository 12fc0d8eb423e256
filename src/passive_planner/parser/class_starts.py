"""Class starting-node resolution.

Sources are tried in priority order, and an earlier source always wins
for a given class:
  1. explicit per-node markers (class names, or indices into the ordering)
  2. the root node's ordered outgoing edges, i-th edge -> i-th class
  3. highest-degree free nodes, handed out to the still-missing classes
     in class order (ties by id)
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from passive_planner.models.constants import normalize_name
from passive_planner.parser.tree_schema import RawNode

logger = logging.getLogger(__name__)

SOURCE_MARKER = "marker"
SOURCE_ROOT = "root"
SOURCE_DEGREE = "degree"


@dataclass(slots=True)
class ClassStartTable:
    starts: dict[str, str] = field(default_factory=dict)
    sources: dict[str, str] = field(default_factory=dict)

    def assign(self, class_name: str, node_id: str, source: str) -> bool:
        if class_name in self.starts:
            return False
        self.starts[class_name] = node_id
        self.sources[class_name] = source
        return True


def _marker_class(marker: str | int, class_order: tuple[str, ...]) -> str | None:
    if isinstance(marker, bool):
        return None
    if isinstance(marker, int):
        if 0 <= marker < len(class_order):
            return class_order[marker]
        return None
    text = str(marker).strip()
    if text.isdigit():
        return _marker_class(int(text), class_order)
    return normalize_name(text) or None


def resolve_class_starts(
    raw_nodes: Mapping[str, RawNode],
    adjacency: Mapping[str, set[str]],
    class_order: tuple[str, ...],
    root_edges: list[str] | None = None,
) -> ClassStartTable:
    """Map every resolvable class to a start node present in the graph."""
    table = ClassStartTable()

    for node_id in sorted(raw_nodes):
        for marker in raw_nodes[node_id].class_markers:
            class_name = _marker_class(marker, class_order)
            if class_name is not None:
                table.assign(class_name, node_id, SOURCE_MARKER)

    if root_edges:
        targets = [e for e in root_edges if e in adjacency]
        for class_name, node_id in zip(class_order, targets):
            table.assign(class_name, node_id, SOURCE_ROOT)

    missing = [c for c in class_order if c not in table.starts]
    if missing and adjacency:
        taken = set(table.starts.values())
        ranked = sorted(
            (node_id for node_id in adjacency if node_id not in taken),
            key=lambda node_id: (-len(adjacency[node_id]), node_id),
        )
        free = iter(ranked)
        assigned: list[str] = []
        for class_name in missing:
            node_id = next(free, None)
            if node_id is None:
                break
            table.assign(class_name, node_id, SOURCE_DEGREE)
            assigned.append(class_name)
        if assigned:
            logger.info(
                "Class starts for %s fell back to highest-degree nodes",
                ", ".join(assigned),
            )

    return table
