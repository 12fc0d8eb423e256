from passive_planner.models.constants import NodeKind
from passive_planner.models.node import AttributeBonuses
from passive_planner.parser.node_classification import classify_node, inferred_notable


def _kind(stats=(), attributes=None, **flags) -> NodeKind:
    return classify_node(
        stats=list(stats),
        attributes=attributes or AttributeBonuses(),
        **flags,
    ).kind


def test_keystone_flag_wins():
    assert _kind(["+10% Fire Damage"], is_keystone=True, is_notable=True) is NodeKind.KEYSTONE


def test_notable_flag():
    assert _kind(["+5% Fire Damage"], is_notable=True) is NodeKind.NOTABLE


def test_notable_inferred_from_large_value():
    assert _kind(["+25% increased Fire Damage"]) is NodeKind.NOTABLE


def test_notable_inferred_from_large_negative_value():
    assert _kind(["-30% reduced Mana Cost"]) is NodeKind.NOTABLE


def test_notable_inferred_from_long_stat_block():
    stats = ["+5% Fire Damage", "+5% Cold Damage", "+5% Lightning Damage", "+5 to Armour"]
    assert _kind(stats) is NodeKind.NOTABLE


def test_small_node():
    assert _kind(["+10% Fire Damage"]) is NodeKind.SMALL


def test_attribute_only_node_is_small():
    assert _kind(attributes=AttributeBonuses(strength=10)) is NodeKind.SMALL


def test_empty_node_is_travel():
    decision = classify_node(stats=[], attributes=AttributeBonuses())
    assert decision.kind is NodeKind.TRAVEL
    assert decision.reason == "no gameplay value"


def test_inferred_notable_thresholds():
    assert not inferred_notable(["+19% Fire Damage"])
    assert inferred_notable(["+20% Fire Damage"])
    assert not inferred_notable(["Cannot be Stunned"])
    assert not inferred_notable([])
