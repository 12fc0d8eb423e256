"""Passive node data model."""

from dataclasses import dataclass, field

from passive_planner.models.constants import NodeKind


@dataclass(frozen=True, slots=True)
class AttributeBonuses:
    """Flat attribute points granted by a node."""
    strength: int = 0
    dexterity: int = 0
    intelligence: int = 0

    @property
    def any(self) -> bool:
        return bool(self.strength or self.dexterity or self.intelligence)


@dataclass(frozen=True, slots=True)
class Node:
    """A single passive node as stored in a TreeGraph.

    offense/defense are derived once at ingestion and never recomputed.
    """
    id: str
    name: str
    kind: NodeKind
    stats: tuple[str, ...] = ()
    tags: frozenset[str] = frozenset()
    offense: float = 0.0
    defense: float = 0.0
    attributes: AttributeBonuses = field(default_factory=AttributeBonuses)
    neighbors: frozenset[str] = frozenset()
    is_stub: bool = False   # synthesized for a dangling edge reference

    @property
    def is_travel(self) -> bool:
        return self.kind is NodeKind.TRAVEL
