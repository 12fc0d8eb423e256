"""Tests for the budgeted allocator on hand-built graphs."""

import itertools
import threading

import pytest

from passive_planner.graph.tree_graph import TreeGraph
from passive_planner.models.constants import NodeKind
from passive_planner.models.node import Node
from passive_planner.optimizer.allocator import (
    WARN_CANCELLED,
    WARN_KEYSTONE_OVER_BUDGET,
    WARN_KEYSTONE_UNKNOWN,
    WARN_KEYSTONE_UNREACHABLE,
    Allocator,
)
from passive_planner.optimizer.settings import OptimizerSettings
from passive_planner.optimizer.specs import BuildConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _node(
    node_id: str,
    *neighbors: str,
    kind: NodeKind = NodeKind.SMALL,
    offense: float = 0.0,
    defense: float = 0.0,
    tags: tuple[str, ...] = (),
) -> Node:
    return Node(
        id=node_id,
        name=node_id,
        kind=kind,
        tags=frozenset(tags),
        offense=offense,
        defense=defense,
        neighbors=frozenset(neighbors),
    )


def _travel(node_id: str, *neighbors: str) -> Node:
    return _node(node_id, *neighbors, kind=NodeKind.TRAVEL)


def _graph(*nodes: Node) -> TreeGraph:
    return TreeGraph.from_nodes(nodes, class_starts={"warrior": "S"})


def _config(budget: int, *, skill=(), keystones=(), offense_weight: float = 1.0) -> BuildConfig:
    return BuildConfig(
        class_name="warrior",
        offense_weight=offense_weight,
        point_budget=budget,
        required_keystone_ids=list(keystones),
        skill_tags=frozenset(skill),
    )


def _run(graph: TreeGraph, config: BuildConfig, **kwargs):
    return Allocator(graph, config, **kwargs).run("S")


def _chain() -> TreeGraph:
    return _graph(
        _travel("S", "A"),
        _node("A", "B", offense=10.0),
        _node("B", offense=10.0),
    )


# ---------------------------------------------------------------------------
# Budget and start node
# ---------------------------------------------------------------------------


class TestBudget:
    def test_zero_budget_yields_start_only(self):
        outcome = _run(_chain(), _config(0))
        assert outcome.allocated == ["S"]
        assert outcome.points_spent == 0
        assert outcome.points_remaining == 0

    def test_start_node_is_free(self):
        outcome = _run(_chain(), _config(1))
        assert outcome.allocated == ["S", "A"]
        assert outcome.points_spent == 1

    def test_budget_spent_along_chain(self):
        outcome = _run(_chain(), _config(2))
        assert outcome.allocated == ["S", "A", "B"]
        assert outcome.points_remaining == 0

    def test_leftover_budget_when_nothing_to_take(self):
        outcome = _run(_chain(), _config(5))
        assert outcome.allocated == ["S", "A", "B"]
        assert outcome.points_spent == 2
        assert outcome.points_remaining == 3

    def test_travel_filler_is_paid_for(self):
        graph = _graph(_travel("S", "T"), _travel("T", "C"), _node("C", offense=10.0))
        outcome = _run(graph, _config(2))
        assert outcome.allocated == ["S", "T", "C"]
        assert outcome.points_spent == 2

    def test_travel_nodes_are_never_targets(self):
        graph = _graph(_travel("S", "T1"), _travel("T1", "T2"), _travel("T2"))
        outcome = _run(graph, _config(2))
        assert outcome.allocated == ["S"]
        assert outcome.points_remaining == 2

    def test_path_longer_than_budget_is_skipped(self):
        graph = _graph(
            _travel("S", "T1"),
            _travel("T1", "T2"),
            _node("T2", "C"),
            _node("C", offense=50.0),
        )
        outcome = _run(graph, _config(1))
        # T2 is not in reach either, so nothing is affordable.
        assert outcome.allocated == ["S"]


# ---------------------------------------------------------------------------
# Candidate ranking
# ---------------------------------------------------------------------------


class TestRanking:
    def _gap_graph(self) -> TreeGraph:
        return _graph(
            _travel("S", "P", "Q"),
            _node("P", offense=10.0, tags=("fire",)),
            _node("Q", offense=50.0),
        )

    def test_relevance_lead_beats_efficiency(self):
        outcome = _run(self._gap_graph(), _config(1, skill=["fire"]))
        assert outcome.allocated == ["S", "P"]

    def test_efficiency_decides_within_gap(self):
        graph = _graph(
            _travel("S", "A", "T"),
            _node("A", offense=4.0),
            _travel("T", "C"),
            _node("C", offense=10.0),
        )
        outcome = _run(graph, _config(2))
        assert outcome.allocated == ["S", "T", "C"]

    def test_equal_efficiency_prefers_cheaper_path(self):
        graph = _graph(
            _travel("S", "A", "T"),
            _node("A", offense=4.0),
            _travel("T", "C"),
            _node("C", offense=8.0),
        )
        outcome = _run(graph, _config(2))
        assert outcome.allocated[:2] == ["S", "A"]
        assert "C" not in outcome.allocated

    def test_exact_tie_prefers_lower_id(self):
        graph = _graph(
            _travel("S", "B2", "B1"),
            _node("B1", offense=5.0),
            _node("B2", offense=5.0),
        )
        assert _run(graph, _config(1)).allocated == ["S", "B1"]

    @pytest.mark.parametrize("ids", list(itertools.permutations(("a", "b", "c"))))
    def test_winner_independent_of_id_order(self, ids):
        # relevance 1.885 / 1.69 / 1.495 against a fire-spell-critical skill
        hi_id, mid_id, lo_id = ids
        graph = _graph(
            _travel("S", hi_id, mid_id, lo_id),
            _node(hi_id, offense=1.0, tags=("fire", "spell", "critical")),
            _node(mid_id, offense=10.0, tags=("fire", "spell")),
            _node(lo_id, offense=100.0, tags=("fire",)),
        )
        outcome = _run(graph, _config(1, skill=["fire", "spell", "critical"]))
        # lo trails hi by more than the gap; mid is the most efficient of the rest
        assert outcome.allocated == ["S", mid_id]

    def test_low_relevance_is_never_picked(self):
        graph = _graph(_travel("S", "M"), _node("M", offense=100.0, tags=("minion",)))
        outcome = _run(graph, _config(1, skill=["attack"]))
        assert outcome.allocated == ["S"]
        assert outcome.points_remaining == 1

    def test_iterations_counted(self):
        outcome = _run(_chain(), _config(2))
        assert outcome.iterations == 2


# ---------------------------------------------------------------------------
# Required keystones
# ---------------------------------------------------------------------------


class TestKeystones:
    def test_required_keystone_allocated_first(self):
        graph = _graph(
            _travel("S", "T", "A"),
            _travel("T", "K"),
            _node("K", kind=NodeKind.KEYSTONE, offense=1.0),
            _node("A", offense=10.0),
        )
        outcome = _run(graph, _config(3, keystones=["K"]))
        assert outcome.allocated == ["S", "T", "K", "A"]
        assert outcome.required_ids == {"K"}
        assert outcome.warnings == []

    def test_keystones_in_order_share_paths(self):
        graph = _graph(
            _travel("S", "T"),
            _travel("T", "K1", "K2"),
            _node("K1", kind=NodeKind.KEYSTONE),
            _node("K2", kind=NodeKind.KEYSTONE),
        )
        outcome = _run(graph, _config(3, keystones=["K1", "K2"]))
        assert outcome.allocated == ["S", "T", "K1", "K2"]
        assert outcome.points_spent == 3

    def test_unknown_keystone_warns(self):
        outcome = _run(_chain(), _config(1, keystones=["nope"]))
        assert [w.kind for w in outcome.warnings] == [WARN_KEYSTONE_UNKNOWN]
        assert outcome.warnings[0].node_id == "nope"
        assert outcome.allocated == ["S", "A"]

    def test_unreachable_keystone_warns_and_budget_still_spent(self):
        graph = _graph(
            _travel("S", "A"),
            _node("A", "B", offense=10.0),
            _node("B", offense=10.0),
            _node("K1", "X", kind=NodeKind.KEYSTONE, offense=20.0),
            _travel("X"),
        )
        outcome = _run(graph, _config(2, keystones=["K1"]))
        assert [w.kind for w in outcome.warnings] == [WARN_KEYSTONE_UNREACHABLE]
        assert outcome.allocated == ["S", "A", "B"]
        assert outcome.points_spent == 2

    def test_keystone_over_budget_warns(self):
        graph = _graph(
            _travel("S", "T1", "A"),
            _travel("T1", "T2"),
            _travel("T2", "K"),
            _node("K", kind=NodeKind.KEYSTONE, offense=20.0),
            _node("A", offense=10.0),
        )
        outcome = _run(graph, _config(2, keystones=["K"]))
        assert [w.kind for w in outcome.warnings] == [WARN_KEYSTONE_OVER_BUDGET]
        assert "K" not in outcome.allocated
        assert outcome.allocated == ["S", "A"]


# ---------------------------------------------------------------------------
# Refinement
# ---------------------------------------------------------------------------


class TestRefinement:
    def _graph(self) -> TreeGraph:
        return _graph(
            _travel("S", "P", "Q"),
            _node("P", offense=10.0, tags=("fire",)),
            _node("Q", offense=50.0),
        )

    def test_refinement_off_by_default(self):
        outcome = _run(self._graph(), _config(1, skill=["fire"]))
        assert outcome.allocated == ["S", "P"]
        assert outcome.swaps == 0

    def test_leaf_swapped_for_higher_total(self):
        outcome = _run(
            self._graph(),
            _config(1, skill=["fire"]),
            settings=OptimizerSettings(refine_swaps=3),
        )
        assert outcome.allocated == ["S", "Q"]
        assert outcome.swaps == 1
        assert outcome.points_spent == 1

    def test_required_keystone_never_swapped_out(self):
        graph = _graph(
            _travel("S", "K", "Q"),
            _node("K", kind=NodeKind.KEYSTONE, offense=0.1),
            _node("Q", offense=50.0),
        )
        outcome = _run(
            graph,
            _config(1, keystones=["K"]),
            settings=OptimizerSettings(refine_swaps=5),
        )
        assert outcome.allocated == ["S", "K"]
        assert outcome.swaps == 0


# ---------------------------------------------------------------------------
# Cancellation and lifecycle
# ---------------------------------------------------------------------------


def test_cancelled_run_returns_seeded_allocation():
    graph = _graph(
        _travel("S", "K", "A"),
        _node("K", kind=NodeKind.KEYSTONE),
        _node("A", offense=10.0),
    )
    cancel = threading.Event()
    cancel.set()
    outcome = _run(graph, _config(3, keystones=["K"]), cancel=cancel)
    assert outcome.cancelled
    assert outcome.allocated == ["S", "K"]
    assert outcome.warnings[-1].kind == WARN_CANCELLED


def test_allocator_is_single_use():
    allocator = Allocator(_chain(), _config(1))
    allocator.run("S")
    with pytest.raises(RuntimeError):
        allocator.run("S")


def test_unknown_start_raises():
    with pytest.raises(KeyError):
        Allocator(_chain(), _config(1)).run("missing")
