"""Dump an overview of a passive tree definition.

Shows node counts per kind, resolved class starts, keystone groups and the
highest-value nodes, which is handy for checking a new tree export.

Usage:
    python -m scripts.dump_tree --tree tree.json [--top 10]
"""

import argparse
from pathlib import Path

from passive_planner.errors import GraphParseError
from passive_planner.graph.tree_graph import keystone_groups
from passive_planner.models.constants import CLASS_DISPLAY_NAMES, NodeKind
from passive_planner.parser.tree_loader import load_tree


def main():
    parser = argparse.ArgumentParser(description="Dump passive tree overview")
    parser.add_argument("--tree", type=Path, required=True, help="Tree definition JSON file.")
    parser.add_argument("--top", type=int, default=10, help="Nodes to list per ranking.")
    args = parser.parse_args()

    try:
        graph = load_tree(args.tree)
    except GraphParseError as exc:
        print(f"Error: {exc}")
        return

    stubs = sum(1 for node in graph if node.is_stub)

    print(f"\n{'='*60}")
    print(f"  Tree Overview")
    print(f"{'='*60}")
    print(f"  Nodes:     {len(graph)}")
    print(f"  Edges:     {graph.edge_count}")
    print(f"  Stubs:     {stubs}")
    for kind in NodeKind:
        print(f"  {kind.value.capitalize():<10} {len(graph.nodes_of_kind(kind))}")

    print(f"\n{'='*60}")
    print(f"  Class Starts")
    print(f"{'='*60}")
    for class_name in graph.class_order:
        node_id = graph.class_starts.get(class_name)
        label = CLASS_DISPLAY_NAMES.get(class_name, class_name)
        if node_id is None:
            print(f"    {label:<12} (unresolved)")
            continue
        source = graph.class_start_sources.get(class_name, "?")
        print(f"    {label:<12} {node_id:<10} via {source}")

    print(f"\n{'='*60}")
    print(f"  Keystones")
    print(f"{'='*60}")
    for group, nodes in keystone_groups(graph).items():
        print(f"  {group}:")
        for node in nodes:
            print(f"    {node.name:<30} off={node.offense:>5.1f} def={node.defense:>5.1f}")

    for label, key in (("Offense", lambda n: n.offense), ("Defense", lambda n: n.defense)):
        ranked = sorted(graph, key=lambda n: (-key(n), n.id))[: args.top]
        print(f"\n{'='*60}")
        print(f"  Top {label} Nodes")
        print(f"{'='*60}")
        for node in ranked:
            tags = ", ".join(sorted(node.tags))
            print(f"    {node.name:<30} {key(node):>5.1f}  [{tags}]")

    print()


if __name__ == "__main__":
    main()
