"""Budgeted allocation over a TreeGraph.

One Allocator per optimize() call; it owns that run's allocated set,
budget counter and warnings and nothing else. The graph is only read.

Phases:
  A. seed: class start (free), then each required keystone in order,
     skipped with a warning when unknown, unreachable or over budget
  B. greedy: repeatedly take the best reachable candidate and allocate
     its whole path, Travel filler included
  C. optional bounded leaf swaps (cost neutral, keeps one component)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from passive_planner.graph.pathfinder import Pathfinder
from passive_planner.graph.tree_graph import TreeGraph
from passive_planner.optimizer.scoring import ScoringEngine
from passive_planner.optimizer.settings import OptimizerSettings
from passive_planner.optimizer.specs import BuildConfig

logger = logging.getLogger(__name__)

WARN_KEYSTONE_UNKNOWN = "keystone_unknown"
WARN_KEYSTONE_UNREACHABLE = "keystone_unreachable"
WARN_KEYSTONE_OVER_BUDGET = "keystone_over_budget"
WARN_ITERATION_CAP = "iteration_cap"
WARN_CANCELLED = "cancelled"


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


@dataclass(frozen=True, slots=True)
class PlanWarning:
    """A non-fatal condition recorded during a run."""

    kind: str
    message: str
    node_id: str | None = None


@dataclass(slots=True)
class AllocationOutcome:
    """Raw allocator output, before aggregation."""

    start_node_id: str
    allocated: list[str]                  # allocation order, start first
    required_ids: set[str] = field(default_factory=set)
    points_spent: int = 0
    points_remaining: int = 0
    iterations: int = 0
    swaps: int = 0
    cancelled: bool = False
    warnings: list[PlanWarning] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class _Candidate:
    node_id: str
    relevance: float
    total: float
    cost: int

    @property
    def efficiency(self) -> float:
        return self.total / self.cost


def _pick(candidates: list[_Candidate], gap: float) -> _Candidate:
    """Relevance first, then efficiency, cost and id.

    Anything trailing the most relevant candidate by more than `gap` is
    out; the rest compete on efficiency, then lower cost, then lower id.
    """
    top = max(c.relevance for c in candidates)
    contenders = [c for c in candidates if top - c.relevance <= gap]
    return min(contenders, key=lambda c: (-c.efficiency, c.cost, c.node_id))


class Allocator:
    """Single-use allocation state machine for one build."""

    __slots__ = (
        "_graph",
        "_config",
        "_settings",
        "_scorer",
        "_pathfinder",
        "_cancel",
        "_allocated",
        "_owned",
        "_required",
        "_remaining",
        "_warnings",
        "_iterations",
        "_swaps",
        "_used",
    )

    def __init__(
        self,
        graph: TreeGraph,
        config: BuildConfig,
        *,
        scorer: ScoringEngine | None = None,
        pathfinder: Pathfinder | None = None,
        settings: OptimizerSettings | None = None,
        cancel: CancelToken | None = None,
    ) -> None:
        self._graph = graph
        self._config = config
        self._settings = settings or OptimizerSettings()
        self._scorer = scorer or ScoringEngine(config, self._settings)
        self._pathfinder = pathfinder or Pathfinder(graph)
        self._cancel = cancel
        self._allocated: list[str] = []
        self._owned: set[str] = set()
        self._required: set[str] = set()
        self._remaining = config.point_budget
        self._warnings: list[PlanWarning] = []
        self._iterations = 0
        self._swaps = 0
        self._used = False

    # --- Bookkeeping -------------------------------------------------------

    def _take(self, node_id: str, *, free: bool = False) -> None:
        self._allocated.append(node_id)
        self._owned.add(node_id)
        if not free:
            self._remaining -= 1

    def _take_path(self, path: tuple[str, ...]) -> None:
        for node_id in path:
            self._take(node_id)

    def _warn(self, kind: str, message: str, node_id: str | None = None) -> None:
        logger.warning(message)
        self._warnings.append(PlanWarning(kind=kind, message=message, node_id=node_id))

    # --- Phase A -----------------------------------------------------------

    def _seed(self, start_id: str) -> None:
        self._take(start_id, free=True)
        for keystone_id in self._config.required_keystone_ids:
            node = self._graph.get_node(keystone_id)
            if node is None:
                self._warn(
                    WARN_KEYSTONE_UNKNOWN,
                    f"Required keystone {keystone_id!r} is not in the tree",
                    keystone_id,
                )
                continue
            path = self._pathfinder.path_to(self._owned, keystone_id)
            if path is None:
                self._warn(
                    WARN_KEYSTONE_UNREACHABLE,
                    f"Required keystone {node.name} ({keystone_id}) is unreachable "
                    f"from the class start",
                    keystone_id,
                )
                continue
            if len(path) > self._remaining:
                self._warn(
                    WARN_KEYSTONE_OVER_BUDGET,
                    f"Required keystone {node.name} ({keystone_id}) needs "
                    f"{len(path)} points, only {self._remaining} remaining",
                    keystone_id,
                )
                continue
            self._take_path(path)
            self._required.add(keystone_id)

    # --- Phase B -----------------------------------------------------------

    def _best_candidate(self) -> tuple[_Candidate, tuple[str, ...]] | None:
        tree = self._pathfinder.search(self._owned, max_cost=self._remaining)
        candidates: list[_Candidate] = []
        for node_id in tree.reachable():
            node = self._graph.node(node_id)
            if node.is_travel:
                continue
            cost = tree.cost(node_id)
            if cost is None or cost > self._remaining:
                continue
            score = self._scorer.score(node)
            if score.relevance < self._settings.relevance_floor:
                continue
            candidates.append(_Candidate(node_id, score.relevance, score.total, cost))
        if not candidates:
            return None
        best = _pick(candidates, self._settings.relevance_gap)
        path = tree.path_to(best.node_id)
        assert path is not None
        return best, path

    def _expand(self) -> bool:
        """Greedy loop; returns True when cancelled."""
        cap = self._settings.iteration_cap_factor * self._config.point_budget
        while self._remaining > 0:
            if self._cancel is not None and self._cancel.is_set():
                self._warn(WARN_CANCELLED, "Optimization cancelled; returning partial allocation")
                return True
            if self._iterations >= cap:
                self._warn(WARN_ITERATION_CAP, f"Stopped after {cap} iterations")
                break
            self._iterations += 1
            picked = self._best_candidate()
            if picked is None:
                logger.debug("No candidate left with %d points remaining", self._remaining)
                break
            candidate, path = picked
            self._take_path(path)
            logger.debug(
                "Picked %s (relevance %.2f, cost %d, efficiency %.3f); %d points left",
                candidate.node_id,
                candidate.relevance,
                candidate.cost,
                candidate.efficiency,
                self._remaining,
            )
        return False

    # --- Phase C -----------------------------------------------------------

    def _removable_leaves(self, start_id: str) -> list[str]:
        leaves = []
        for node_id in self._allocated:
            if node_id == start_id or node_id in self._required:
                continue
            owned_neighbors = self._graph.neighbors(node_id) & self._owned
            if len(owned_neighbors) == 1:
                leaves.append(node_id)
        return leaves

    def _refine(self, start_id: str) -> None:
        floor = self._settings.relevance_floor
        for _ in range(self._settings.refine_swaps):
            leaves = self._removable_leaves(start_id)
            if not leaves:
                return
            leaf = min(
                leaves,
                key=lambda nid: (self._scorer.score(self._graph.node(nid)).total, nid),
            )
            leaf_total = self._scorer.score(self._graph.node(leaf)).total
            keep = self._owned - {leaf}

            frontier: set[str] = set()
            for node_id in keep:
                frontier |= self._graph.neighbors(node_id)
            frontier -= self._owned

            best_id: str | None = None
            best_total = leaf_total * self._settings.swap_margin
            for node_id in sorted(frontier):
                node = self._graph.node(node_id)
                if node.is_travel:
                    continue
                score = self._scorer.score(node)
                if score.relevance < floor:
                    continue
                if score.total > best_total:
                    best_id, best_total = node_id, score.total
            if best_id is None:
                return

            self._allocated.remove(leaf)
            self._owned.discard(leaf)
            self._allocated.append(best_id)
            self._owned.add(best_id)
            self._swaps += 1
            logger.debug("Swapped leaf %s for %s", leaf, best_id)

    # --- Entry point -------------------------------------------------------

    def run(self, start_id: str) -> AllocationOutcome:
        if self._used:
            raise RuntimeError("Allocator instances are single-use")
        self._used = True
        if start_id not in self._graph:
            raise KeyError(start_id)

        self._seed(start_id)
        cancelled = self._expand()
        if not cancelled and self._settings.refine_swaps:
            self._refine(start_id)

        return AllocationOutcome(
            start_node_id=start_id,
            allocated=list(self._allocated),
            required_ids=set(self._required),
            points_spent=self._config.point_budget - self._remaining,
            points_remaining=self._remaining,
            iterations=self._iterations,
            swaps=self._swaps,
            cancelled=cancelled,
            warnings=list(self._warnings),
        )
