"""Canonical raw-tree schema and the adapters that feed it.

Tree definitions come from several exporters that disagree on field names.
Each known variant has one adapter that converts a node entry into a
RawNode; the rest of ingestion only ever sees RawNode.

Adapters (picked per entry by signature fields, first match wins):
  - pob:           dn / sd / out+in / ks / not / spc / sa+da+ia
  - ggg:           name / stats / out+in / isKeystone / isNotable /
                   classStartIndex / grantedStrength...
  - legacy_sample: type / connections / tags / offense / defense
  - canonical:     name / stats / neighbors / kind / class_starts /
                   attributes / tags / offense / defense

Edge entries may be bare ids or {"id": ..., <meta>} objects.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from passive_planner.errors import GraphParseError
from passive_planner.models.constants import DEFAULT_CLASS_ORDER, NodeKind, normalize_name
from passive_planner.models.node import AttributeBonuses

ROOT_NODE_ID = "root"


@dataclass(slots=True)
class RawNode:
    """One node entry in canonical form, before graph assembly."""

    id: str
    name: str
    stats: list[str] = field(default_factory=list)
    edges: list[str] = field(default_factory=list)   # declared order preserved
    is_keystone: bool = False
    is_notable: bool = False
    explicit_kind: NodeKind | None = None
    class_markers: list[str | int] = field(default_factory=list)
    icon: str = ""
    attributes: AttributeBonuses | None = None
    tags: set[str] = field(default_factory=set)
    offense: float | None = None
    defense: float | None = None
    adapter: str = "canonical"


@dataclass(slots=True)
class RawTree:
    """All raw nodes plus tree-level metadata."""

    nodes: dict[str, RawNode]
    extra_edges: list[tuple[str, str]] = field(default_factory=list)
    class_order: tuple[str, ...] = DEFAULT_CLASS_ORDER
    root_edges: list[str] | None = None


# ---------------------------------------------------------------------------
# Field coercion
# ---------------------------------------------------------------------------


def coerce_id(value: Any) -> str | None:
    """Normalize an id-like value (int, str, integral float, {id}) to str."""
    if isinstance(value, Mapping):
        return coerce_id(value.get("id"))
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, str):
        text = value.strip()
        return text or None
    return None


def _edge_list(node_id: str, field_name: str, value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise GraphParseError(
            f"Node {node_id!r}: edge field {field_name!r} must be a list, "
            f"got {type(value).__name__}"
        )
    out: list[str] = []
    for entry in value:
        edge_id = coerce_id(entry)
        if edge_id is None:
            raise GraphParseError(f"Node {node_id!r}: bad edge entry {entry!r}")
        out.append(edge_id)
    return out


def _string_list(node_id: str, field_name: str, value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple)):
        raise GraphParseError(
            f"Node {node_id!r}: {field_name!r} must be a list of strings"
        )
    return [str(v) for v in value if v is not None and str(v).strip()]


def _number(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _int(value: Any) -> int:
    number = _number(value)
    return int(number) if number is not None else 0


def _merge_edges(*lists: list[str]) -> list[str]:
    seen: set[str] = set()
    merged: list[str] = []
    for edges in lists:
        for edge in edges:
            if edge not in seen:
                seen.add(edge)
                merged.append(edge)
    return merged


def _kind_from_label(label: Any) -> NodeKind | None:
    if not isinstance(label, str):
        return None
    try:
        return NodeKind(label.strip().lower())
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


def adapt_pob(node_id: str, entry: Mapping[str, Any]) -> RawNode:
    """Path of Building tree.json nodes."""
    attrs = AttributeBonuses(_int(entry.get("sa")), _int(entry.get("da")), _int(entry.get("ia")))
    return RawNode(
        id=node_id,
        name=str(entry.get("dn") or entry.get("name") or f"Node {node_id}"),
        stats=_string_list(node_id, "sd", entry.get("sd")),
        edges=_merge_edges(
            _edge_list(node_id, "out", entry.get("out")),
            _edge_list(node_id, "in", entry.get("in")),
        ),
        is_keystone=bool(entry.get("ks")),
        is_notable=bool(entry.get("not")),
        class_markers=list(entry.get("spc") or []),
        icon=str(entry.get("icon") or ""),
        attributes=attrs if attrs.any else None,
        adapter="pob",
    )


def adapt_ggg(node_id: str, entry: Mapping[str, Any]) -> RawNode:
    """Official passive-skill-tree export nodes."""
    markers: list[str | int] = []
    if entry.get("classStartIndex") is not None:
        markers.append(_int(entry.get("classStartIndex")))
    attrs = AttributeBonuses(
        _int(entry.get("grantedStrength")),
        _int(entry.get("grantedDexterity")),
        _int(entry.get("grantedIntellect")),
    )
    return RawNode(
        id=node_id,
        name=str(entry.get("name") or f"Node {node_id}"),
        stats=_string_list(node_id, "stats", entry.get("stats")),
        edges=_merge_edges(
            _edge_list(node_id, "out", entry.get("out")),
            _edge_list(node_id, "in", entry.get("in")),
            _edge_list(node_id, "connections", entry.get("connections")),
        ),
        is_keystone=bool(entry.get("isKeystone")),
        is_notable=bool(entry.get("isNotable")),
        class_markers=markers,
        icon=str(entry.get("icon") or ""),
        attributes=attrs if attrs.any else None,
        adapter="ggg",
    )


def adapt_legacy_sample(node_id: str, entry: Mapping[str, Any]) -> RawNode:
    """The browser tool's own sample format with hand-assigned values."""
    kind = _kind_from_label(entry.get("type"))
    return RawNode(
        id=node_id,
        name=str(entry.get("name") or f"Node {node_id}"),
        stats=_string_list(node_id, "stats", entry.get("stats")),
        edges=_edge_list(node_id, "connections", entry.get("connections")),
        is_keystone=kind is NodeKind.KEYSTONE,
        is_notable=kind is NodeKind.NOTABLE,
        explicit_kind=kind,
        tags={str(t).lower() for t in entry.get("tags") or []},
        offense=_number(entry.get("offense")),
        defense=_number(entry.get("defense")),
        adapter="legacy_sample",
    )


def _canonical_attributes(value: Any) -> AttributeBonuses | None:
    if not isinstance(value, Mapping):
        return None
    attrs = AttributeBonuses(
        _int(value.get("str", value.get("strength"))),
        _int(value.get("dex", value.get("dexterity"))),
        _int(value.get("int", value.get("intelligence"))),
    )
    return attrs if attrs.any else None


def adapt_canonical(node_id: str, entry: Mapping[str, Any]) -> RawNode:
    kind = _kind_from_label(entry.get("kind"))
    return RawNode(
        id=node_id,
        name=str(entry.get("name") or entry.get("displayName") or f"Node {node_id}"),
        stats=_string_list(node_id, "stats", entry.get("stats")),
        edges=_edge_list(node_id, "neighbors", entry.get("neighbors")),
        is_keystone=kind is NodeKind.KEYSTONE,
        is_notable=kind is NodeKind.NOTABLE,
        explicit_kind=kind,
        class_markers=list(entry.get("class_starts") or []),
        icon=str(entry.get("icon") or ""),
        attributes=_canonical_attributes(entry.get("attributes")),
        tags={str(t).lower() for t in entry.get("tags") or []},
        offense=_number(entry.get("offense")),
        defense=_number(entry.get("defense")),
    )


@dataclass(frozen=True)
class NodeAdapter:
    name: str
    signature: frozenset[str]
    convert: Callable[[str, Mapping[str, Any]], RawNode]

    def accepts(self, entry: Mapping[str, Any]) -> bool:
        return not self.signature.isdisjoint(entry.keys())


ADAPTERS: tuple[NodeAdapter, ...] = (
    NodeAdapter("pob", frozenset({"dn", "sd", "ks", "not", "spc", "sa", "da", "ia"}), adapt_pob),
    NodeAdapter(
        "ggg",
        frozenset({
            "isKeystone", "isNotable", "classStartIndex", "skill",
            "grantedStrength", "grantedDexterity", "grantedIntellect", "out",
        }),
        adapt_ggg,
    ),
    NodeAdapter("legacy_sample", frozenset({"type", "connections"}), adapt_legacy_sample),
)

CANONICAL_ADAPTER = NodeAdapter("canonical", frozenset(), adapt_canonical)


def adapter_for(entry: Mapping[str, Any]) -> NodeAdapter:
    for adapter in ADAPTERS:
        if adapter.accepts(entry):
            return adapter
    return CANONICAL_ADAPTER


# ---------------------------------------------------------------------------
# Tree-level parsing
# ---------------------------------------------------------------------------


def _node_entries(table: Any) -> list[tuple[str, Mapping[str, Any]]]:
    if isinstance(table, Mapping):
        items = list(table.items())
    elif isinstance(table, list):
        items = []
        for entry in table:
            if not isinstance(entry, Mapping):
                raise GraphParseError(f"Node entry must be an object, got {entry!r}")
            items.append((entry.get("id", entry.get("skill")), entry))
    else:
        raise GraphParseError("Tree 'nodes' must be an object or a list")

    out: list[tuple[str, Mapping[str, Any]]] = []
    for raw_id, entry in items:
        node_id = coerce_id(raw_id)
        if node_id is None:
            raise GraphParseError(f"Node entry without a usable id: {raw_id!r}")
        if not isinstance(entry, Mapping):
            raise GraphParseError(f"Node {node_id!r} must be an object")
        out.append((node_id, entry))
    return out


def _class_order(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list) or not value:
        return DEFAULT_CLASS_ORDER
    names: list[str] = []
    for entry in value:
        if isinstance(entry, Mapping):
            entry = entry.get("name")
        if not isinstance(entry, str) or not entry.strip():
            raise GraphParseError(f"Bad class entry: {entry!r}")
        names.append(normalize_name(entry))
    return tuple(names)


def _top_level_edges(payload: Mapping[str, Any]) -> list[tuple[str, str]]:
    edges: list[tuple[str, str]] = []
    connections = payload.get("connections")
    if isinstance(connections, Mapping):
        for raw_src, targets in connections.items():
            src = coerce_id(raw_src)
            if src is None:
                raise GraphParseError(f"Bad connection source: {raw_src!r}")
            for dst in _edge_list(src, "connections", targets):
                edges.append((src, dst))

    for entry in payload.get("edges") or []:
        if isinstance(entry, Mapping):
            a, b = coerce_id(entry.get("from")), coerce_id(entry.get("to"))
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            a, b = coerce_id(entry[0]), coerce_id(entry[1])
        else:
            a = b = None
        if a is None or b is None:
            raise GraphParseError(f"Bad edge entry: {entry!r}")
        edges.append((a, b))
    return edges


def parse_tree_payload(payload: Any) -> RawTree:
    """Convert a decoded tree definition into canonical RawTree form."""
    if not isinstance(payload, Mapping):
        raise GraphParseError("Tree definition must be a JSON object")
    if "nodes" not in payload:
        raise GraphParseError("Tree definition has no 'nodes' table")

    entries = _node_entries(payload["nodes"])
    if not entries:
        raise GraphParseError("Tree 'nodes' table is empty")

    nodes: dict[str, RawNode] = {}
    root_edges: list[str] | None = None
    for node_id, entry in entries:
        if node_id == ROOT_NODE_ID:
            root_edges = adapter_for(entry).convert(node_id, entry).edges
            continue
        if node_id in nodes:
            raise GraphParseError(f"Duplicate node id {node_id!r}")
        nodes[node_id] = adapter_for(entry).convert(node_id, entry)

    root = payload.get("root")
    if root_edges is None and isinstance(root, Mapping):
        root_edges = _edge_list(ROOT_NODE_ID, "out", root.get("out"))

    if not nodes:
        raise GraphParseError("Tree 'nodes' table holds only the root node")

    return RawTree(
        nodes=nodes,
        extra_edges=_top_level_edges(payload),
        class_order=_class_order(payload.get("classes")),
        root_edges=root_edges,
    )
