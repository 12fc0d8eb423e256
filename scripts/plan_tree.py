"""Optimize a passive tree allocation from a tree file and build config JSON.

Usage examples:
    python -m scripts.plan_tree --tree tree.json --config-file build.json
    python -m scripts.plan_tree --tree tree.json --config-json '{"class":"witch","point_budget":40}'
    python -m scripts.plan_tree --tree tree.json --config-file build.json --json
    python -m scripts.plan_tree --tree tree.json --config-file build.json --refine 20 -v
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

from passive_planner.errors import PlannerError
from passive_planner.graph.tree_graph import TreeGraph
from passive_planner.optimizer.planner import optimize
from passive_planner.optimizer.results import PlanResult, result_payload
from passive_planner.optimizer.settings import OptimizerSettings
from passive_planner.optimizer.specs import BuildConfig
from passive_planner.parser.tree_loader import load_tree


def _parse_int_like(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("bool is not a valid integer value")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        return int(value.strip(), 0)
    raise ValueError(f"Expected integer-like value, got: {value!r}")


def _parse_weight(value: Any) -> float:
    """Accept 0-1 fractions or 0-100 slider percentages."""
    if isinstance(value, bool):
        raise ValueError("bool is not a valid weight")
    weight = float(value)
    if weight > 1.0:
        weight /= 100.0
    return weight


def _tag_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [t.strip() for t in value.split(",") if t.strip()]
    if isinstance(value, list):
        return [str(t).strip() for t in value if str(t).strip()]
    raise ValueError(f"Expected a tag list or comma string, got: {value!r}")


def _load_json_arg(raw_json: str | None, file_path: Path | None) -> dict[str, Any]:
    if raw_json is not None:
        payload = json.loads(raw_json)
    elif file_path is not None:
        payload = json.loads(file_path.read_text())
    else:
        return {}
    if not isinstance(payload, dict):
        raise ValueError("JSON payload must be an object")
    return payload


def _config_from_dict(data: dict[str, Any]) -> BuildConfig:
    keystones_raw = data.get("required_keystones", data.get("required_keystone_ids", []))
    if not isinstance(keystones_raw, list):
        raise ValueError("required_keystones must be a list")
    keystones = [str(k).strip() for k in keystones_raw if k is not None and str(k).strip()]

    budget_raw = data.get("point_budget", data.get("max_points", 128))
    return BuildConfig(
        class_name=data.get("class_name", data.get("class")),
        ascendancy=data.get("ascendancy"),
        offense_weight=_parse_weight(data.get("offense_weight", 0.7)),
        point_budget=_parse_int_like(budget_raw),
        required_keystone_ids=keystones,
        skill_tags=frozenset(_tag_list(data.get("skill_tags"))),
        weapon_tags=frozenset(_tag_list(data.get("weapon_tags", data.get("weapon")))),
    )


def _render_text_result(result: PlanResult, *, graph: TreeGraph, config: BuildConfig) -> str:
    start = graph.node(result.start_node_id)
    lines: list[str] = []
    lines.append(f"start node: {start.name} ({start.id})")
    lines.append(f"points: {result.total_points}/{config.point_budget} spent")
    lines.append(f"offense: {result.offense_score:.1f}  defense: {result.defense_score:.1f}")
    lines.append(f"efficiency: {result.efficiency}%")
    if result.cancelled:
        lines.append("cancelled: partial allocation")
    if result.warnings:
        lines.append("warnings:")
        lines.extend(f"  - [{w.kind}] {w.message}" for w in result.warnings)

    lines.append("")
    lines.append("allocated:")
    for entry in result.allocated_nodes:
        marker = "*" if entry.required else " "
        lines.append(
            f" {marker}{entry.kind.value:<9} {entry.name:<32} score={entry.score:>7.2f} "
            f"off={entry.offense_contribution:>6.2f} def={entry.defense_contribution:>6.2f}"
        )

    if result.stat_summary:
        lines.append("")
        lines.append("stat summary:")
        for key, value in result.stat_summary.items():
            lines.append(f"  {key.replace('#', f'{value:g}', 1)}")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Optimize a passive tree allocation")
    parser.add_argument("--tree", type=Path, required=True, help="Tree definition JSON file.")
    config_group = parser.add_mutually_exclusive_group(required=True)
    config_group.add_argument("--config-file", type=Path, help="Path to build config JSON file.")
    config_group.add_argument("--config-json", type=str, help="Inline build config JSON object.")
    parser.add_argument(
        "--refine",
        type=int,
        default=0,
        help="Leaf-swap passes after the greedy phase (default: 0).",
    )
    parser.add_argument("--json", action="store_true", help="Emit machine-readable JSON output.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = _config_from_dict(_load_json_arg(args.config_json, args.config_file))
        graph = load_tree(args.tree)
        result = optimize(graph, config, settings=OptimizerSettings(refine_swaps=args.refine))
    except PlannerError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except ValueError as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"Cannot read config: {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(result_payload(result), indent=2))
    else:
        print(_render_text_result(result, graph=graph, config=config))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
