"""Single-call entry point: optimize(graph, config) -> PlanResult."""

from __future__ import annotations

import logging
import time

from passive_planner.graph.pathfinder import Pathfinder
from passive_planner.graph.tree_graph import TreeGraph
from passive_planner.optimizer.allocator import Allocator, CancelToken
from passive_planner.optimizer.results import PlanResult, ResultAggregator
from passive_planner.optimizer.scoring import ScoringEngine
from passive_planner.optimizer.settings import OptimizerSettings
from passive_planner.optimizer.specs import BuildConfig

logger = logging.getLogger(__name__)


def optimize(
    graph: TreeGraph,
    config: BuildConfig,
    *,
    settings: OptimizerSettings | None = None,
    cancel: CancelToken | None = None,
) -> PlanResult:
    """Allocate a connected, budgeted set of passives for one build.

    Raises NoStartNodeError when the class (or ascendancy) has no resolved
    start node. Every other problem is reported through result warnings.
    The graph is only read, so concurrent calls may share it.
    """
    started = time.perf_counter()
    settings = settings or OptimizerSettings()
    start_id = graph.start_node_for(config.class_name, config.ascendancy)

    scorer = ScoringEngine(config, settings)
    allocator = Allocator(
        graph,
        config,
        scorer=scorer,
        pathfinder=Pathfinder(graph),
        settings=settings,
        cancel=cancel,
    )
    outcome = allocator.run(start_id)
    result = ResultAggregator(graph, scorer, settings).aggregate(outcome)

    logger.info(
        "Optimization completed in %.2fms: %d nodes, %d/%d points, efficiency %d%%",
        (time.perf_counter() - started) * 1000.0,
        len(result.allocated_nodes),
        result.total_points,
        config.point_budget,
        result.efficiency,
    )
    return result
