"""Node kind classification.

Kinds are assigned deterministically:
  - keystone: explicit keystone flag
  - notable: explicit notable flag, or inferred from a large stat value
    (>= 20) or a long stat block (>= 4 lines)
  - small: any stat line or attribute bonus
  - travel: nothing at all, exists to keep the graph connected
"""

from dataclasses import dataclass

from passive_planner.models.constants import NodeKind
from passive_planner.models.node import AttributeBonuses
from passive_planner.parser.stat_scoring import all_numbers

NOTABLE_VALUE_THRESHOLD = 20.0
NOTABLE_STAT_COUNT = 4


@dataclass(frozen=True)
class KindDecision:
    kind: NodeKind
    reason: str


def inferred_notable(stats: tuple[str, ...] | list[str]) -> bool:
    if len(stats) >= NOTABLE_STAT_COUNT:
        return True
    values = [abs(v) for stat in stats for v in all_numbers(stat)]
    return bool(values) and max(values) >= NOTABLE_VALUE_THRESHOLD


def classify_node(
    *,
    stats: tuple[str, ...] | list[str],
    attributes: AttributeBonuses,
    is_keystone: bool = False,
    is_notable: bool = False,
) -> KindDecision:
    if is_keystone:
        return KindDecision(NodeKind.KEYSTONE, "keystone flag")
    if is_notable:
        return KindDecision(NodeKind.NOTABLE, "notable flag")
    if inferred_notable(stats):
        return KindDecision(NodeKind.NOTABLE, "inferred from stat values")
    if stats or attributes.any:
        return KindDecision(NodeKind.SMALL, "carries stats")
    return KindDecision(NodeKind.TRAVEL, "no gameplay value")
