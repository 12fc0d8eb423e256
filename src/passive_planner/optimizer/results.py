"""Aggregate an allocation into the final, ordered PlanResult."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from passive_planner.graph.tree_graph import TreeGraph
from passive_planner.models.constants import KIND_ORDER, NodeKind
from passive_planner.models.node import Node
from passive_planner.optimizer.allocator import AllocationOutcome, PlanWarning
from passive_planner.optimizer.scoring import ScoringEngine
from passive_planner.optimizer.settings import OptimizerSettings
from passive_planner.parser.stat_scoring import NUMBER_RE

STAT_PLACEHOLDER = "#"


@dataclass(frozen=True, slots=True)
class AllocatedNode:
    """A graph node plus what it contributed to this build."""

    node: Node
    offense_contribution: float
    defense_contribution: float
    relevance: float
    score: float
    required: bool = False

    @property
    def id(self) -> str:
        return self.node.id

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def kind(self) -> NodeKind:
        return self.node.kind

    @property
    def stats(self) -> tuple[str, ...]:
        return self.node.stats

    @property
    def tags(self) -> frozenset[str]:
        return self.node.tags


@dataclass(slots=True)
class PlanResult:
    """Optimizer output consumed verbatim by export/UI layers."""

    start_node_id: str
    allocated_nodes: list[AllocatedNode]
    total_points: int                       # budget points spent; start is free
    points_remaining: int
    offense_score: float
    defense_score: float
    efficiency: int
    stat_summary: dict[str, float] = field(default_factory=dict)
    warnings: list[PlanWarning] = field(default_factory=list)
    cancelled: bool = False

    @property
    def node_ids(self) -> list[str]:
        return [entry.id for entry in self.allocated_nodes]


def split_stat(stat: str) -> tuple[str, float] | None:
    """Return (grouping key, value) for a stat line, None if it has no number.

    The first signed numeric token becomes the placeholder:
    "+10% increased Fire Damage" -> ("#% increased Fire Damage", 10.0)
    """
    match = NUMBER_RE.search(stat)
    if match is None:
        return None
    key = stat[: match.start()] + STAT_PLACEHOLDER + stat[match.end():]
    return key.strip(), float(match.group())


def summarize_stats(nodes: Iterable[Node]) -> dict[str, float]:
    summary: dict[str, float] = {}
    for node in nodes:
        for stat in node.stats:
            parsed = split_stat(stat)
            if parsed is None:
                continue
            key, value = parsed
            summary[key] = summary.get(key, 0.0) + value
    return dict(sorted(summary.items()))


def efficiency_percent(total_score: float, points: int, calibration: float) -> int:
    """Share of a calibrated per-point maximum, clamped to [0, 100]."""
    if points <= 0:
        return 0
    raw = round(100.0 * total_score / (points * calibration))
    return max(0, min(100, int(raw)))


def _display_order(entry: AllocatedNode) -> tuple[int, float, str]:
    return (KIND_ORDER[entry.kind], -entry.score, entry.id)


class ResultAggregator:
    """Turns an AllocationOutcome into a PlanResult."""

    def __init__(
        self,
        graph: TreeGraph,
        scorer: ScoringEngine,
        settings: OptimizerSettings | None = None,
    ) -> None:
        self._graph = graph
        self._scorer = scorer
        self._settings = settings or OptimizerSettings()

    def aggregate(self, outcome: AllocationOutcome) -> PlanResult:
        entries: list[AllocatedNode] = []
        for node in self._graph.resolve(outcome.allocated):
            score = self._scorer.score(node)
            entries.append(
                AllocatedNode(
                    node=node,
                    offense_contribution=score.offense,
                    defense_contribution=score.defense,
                    relevance=score.relevance,
                    score=score.total,
                    required=node.id in outcome.required_ids,
                )
            )
        entries.sort(key=_display_order)

        total_score = sum(entry.score for entry in entries)
        return PlanResult(
            start_node_id=outcome.start_node_id,
            allocated_nodes=entries,
            total_points=outcome.points_spent,
            points_remaining=outcome.points_remaining,
            offense_score=round(sum(e.offense_contribution for e in entries), 1),
            defense_score=round(sum(e.defense_contribution for e in entries), 1),
            efficiency=efficiency_percent(
                total_score,
                outcome.points_spent,
                self._settings.calibration_constant,
            ),
            stat_summary=summarize_stats(entry.node for entry in entries),
            warnings=list(outcome.warnings),
            cancelled=outcome.cancelled,
        )


def result_payload(result: PlanResult) -> dict[str, Any]:
    """JSON-safe rendering of a PlanResult."""
    return {
        "start_node_id": result.start_node_id,
        "total_points": result.total_points,
        "points_remaining": result.points_remaining,
        "offense_score": result.offense_score,
        "defense_score": result.defense_score,
        "efficiency": result.efficiency,
        "cancelled": result.cancelled,
        "nodes": [
            {
                "id": entry.id,
                "name": entry.name,
                "kind": entry.kind.value,
                "stats": list(entry.stats),
                "tags": sorted(entry.tags),
                "offense_contribution": round(entry.offense_contribution, 3),
                "defense_contribution": round(entry.defense_contribution, 3),
                "score": round(entry.score, 3),
                "required": entry.required,
            }
            for entry in result.allocated_nodes
        ],
        "stat_summary": dict(result.stat_summary),
        "warnings": [
            {"kind": w.kind, "message": w.message, "node_id": w.node_id}
            for w in result.warnings
        ],
    }
