import pytest

from passive_planner.models.constants import NodeKind
from passive_planner.models.node import Node
from passive_planner.optimizer.scoring import ScoringEngine, damage_types
from passive_planner.optimizer.settings import OptimizerSettings
from passive_planner.optimizer.specs import BuildConfig


def _node(
    *tags: str,
    kind: NodeKind = NodeKind.SMALL,
    offense: float = 10.0,
    defense: float = 0.0,
    node_id: str = "n",
) -> Node:
    return Node(
        id=node_id,
        name=node_id,
        kind=kind,
        tags=frozenset(tags),
        offense=offense,
        defense=defense,
    )


def _engine(skill=(), weapon=(), offense_weight: float = 1.0) -> ScoringEngine:
    return ScoringEngine(
        BuildConfig(
            class_name="warrior",
            offense_weight=offense_weight,
            skill_tags=frozenset(skill),
            weapon_tags=frozenset(weapon),
        )
    )


def test_damage_types_expand_elemental():
    assert damage_types(frozenset({"elemental", "life"})) == {"fire", "cold", "lightning"}
    assert damage_types(frozenset({"chaos"})) == {"chaos"}


class TestRelevance:
    def test_untagged_node_is_neutral(self):
        assert _engine(skill=["attack"]).relevance(_node()) == 1.0

    def test_attack_spell_mismatch(self):
        assert _engine(skill=["attack"]).relevance(_node("spell")) == pytest.approx(0.05)

    def test_node_with_both_styles_is_not_a_mismatch(self):
        relevance = _engine(skill=["attack"]).relevance(_node("attack", "spell"))
        assert relevance == pytest.approx(1.15)

    def test_melee_ranged_mismatch(self):
        assert _engine(skill=["ranged"]).relevance(_node("melee")) == pytest.approx(0.05)

    def test_range_style_inferred_from_weapon(self):
        assert _engine(weapon=["bow"]).relevance(_node("melee")) == pytest.approx(0.05)

    def test_damage_type_mismatch(self):
        assert _engine(skill=["fire"]).relevance(_node("cold")) == pytest.approx(0.1)

    def test_damage_type_match(self):
        # 1.3 for the shared type, 1.15 for one overlapping tag
        assert _engine(skill=["fire"]).relevance(_node("fire")) == pytest.approx(1.495)

    def test_elemental_node_matches_cold_skill(self):
        assert _engine(skill=["cold"]).relevance(_node("elemental")) == pytest.approx(1.3)

    def test_damage_types_only_judged_when_both_declare(self):
        assert _engine(skill=["attack"]).relevance(_node("cold")) == 1.0

    def test_weapon_mismatch(self):
        assert _engine(weapon=["bow"]).relevance(_node("sword")) == pytest.approx(0.1)

    def test_weapon_match(self):
        assert _engine(weapon=["bow"]).relevance(_node("bow")) == pytest.approx(1.61)

    def test_weapon_from_skill_tags(self):
        assert _engine(skill=["axe"]).relevance(_node("mace")) == pytest.approx(0.1)

    def test_minion_node_on_self_build(self):
        assert _engine(skill=["attack"]).relevance(_node("minion")) == pytest.approx(0.02)

    def test_self_damage_node_on_minion_build(self):
        assert _engine(skill=["minion"]).relevance(_node()) == pytest.approx(0.2)

    def test_defensive_node_on_minion_build_is_neutral(self):
        node = _node(offense=0.0, defense=5.0)
        assert _engine(skill=["minion"]).relevance(node) == 1.0

    def test_tag_overlap_bonus(self):
        relevance = _engine(skill=["fire", "spell", "critical"]).relevance(
            _node("fire", "spell", "critical")
        )
        assert relevance == pytest.approx(1.3 * 1.45)

    def test_factors_compose(self):
        # spell node on an attack build that also mismatches damage type
        relevance = _engine(skill=["attack", "fire"]).relevance(_node("spell", "cold"))
        assert relevance == pytest.approx(0.05 * 0.1)


class TestScore:
    def test_keystone_multiplier(self):
        score = _engine(offense_weight=0.5).score(
            _node(kind=NodeKind.KEYSTONE, offense=10.0, defense=4.0)
        )
        assert score.offense == pytest.approx(5.0)
        assert score.defense == pytest.approx(2.0)
        assert score.multiplier == 3.0
        assert score.total == pytest.approx(21.0)

    def test_notable_multiplier(self):
        score = _engine().score(_node(kind=NodeKind.NOTABLE, offense=4.0))
        assert score.total == pytest.approx(8.0)

    def test_relevance_scales_offense_only(self):
        score = _engine(skill=["attack"], offense_weight=0.5).score(
            _node("spell", offense=10.0, defense=10.0)
        )
        assert score.offense == pytest.approx(0.25)
        assert score.defense == pytest.approx(5.0)
        assert score.total == pytest.approx(5.25)

    def test_zero_value_node_gets_epsilon(self):
        score = _engine().score(_node(kind=NodeKind.TRAVEL, offense=0.0))
        assert score.total == pytest.approx(0.001)

    def test_custom_epsilon(self):
        engine = ScoringEngine(
            BuildConfig(class_name="warrior"),
            OptimizerSettings(score_epsilon=0.5),
        )
        assert engine.score(_node(offense=0.0)).total == 0.5

    def test_negative_values_floor_at_epsilon(self):
        assert _engine().score(_node(offense=-4.0)).total == pytest.approx(0.001)

    def test_scores_are_cached_per_node(self):
        engine = _engine()
        node = _node(offense=3.0)
        assert engine.score(node) is engine.score(node)
