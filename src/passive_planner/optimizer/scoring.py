"""Build-aware node scoring.

Relevance starts at 1.0 and composes multiplicatively:

  attack vs spell mismatch         x0.05
  melee vs ranged mismatch         x0.05
  damage types disjoint / shared   x0.1 / x1.3   (only when both declare one)
  weapon classes disjoint / shared x0.1 / x1.4   (only when both declare one)
  minion node on non-minion build  x0.02
  self-damage node on minion build x0.2
  generic tag overlap              x(1 + 0.15 * matches)

Relevance scales offense only; defense is valued regardless of build.
"""

from __future__ import annotations

from dataclasses import dataclass

from passive_planner.models.constants import (
    DAMAGE_TYPES,
    ELEMENTAL_TYPES,
    KIND_MULTIPLIER,
    STYLE_ATTACK,
    STYLE_MELEE,
    STYLE_RANGED,
    STYLE_SPELL,
    TAG_ELEMENTAL,
    TAG_MINION,
    WEAPON_CLASSES,
    WEAPON_STYLE,
)
from passive_planner.models.node import Node
from passive_planner.optimizer.settings import OptimizerSettings
from passive_planner.optimizer.specs import BuildConfig

STYLE_MISMATCH = 0.05
RANGE_MISMATCH = 0.05
DAMAGE_TYPE_MISMATCH = 0.1
DAMAGE_TYPE_MATCH = 1.3
WEAPON_MISMATCH = 0.1
WEAPON_MATCH = 1.4
MINION_ON_SELF_BUILD = 0.02
SELF_ON_MINION_BUILD = 0.2
TAG_OVERLAP_STEP = 0.15

_CAST_STYLES = frozenset({STYLE_ATTACK, STYLE_SPELL})
_RANGE_STYLES = frozenset({STYLE_MELEE, STYLE_RANGED})


@dataclass(frozen=True, slots=True)
class NodeScore:
    relevance: float
    offense: float       # weighted, relevance applied
    defense: float       # weighted
    multiplier: float
    total: float


def damage_types(tags: frozenset[str]) -> frozenset[str]:
    """Declared damage types, with 'elemental' expanded to its three types."""
    types = set(tags & DAMAGE_TYPES)
    if TAG_ELEMENTAL in tags:
        types |= ELEMENTAL_TYPES
    return frozenset(types)


def _exclusive_mismatch(node_side: frozenset[str], build_side: frozenset[str]) -> bool:
    return len(node_side) == 1 and len(build_side) == 1 and node_side != build_side


class ScoringEngine:
    """Scores nodes against one BuildConfig; results are cached per node."""

    __slots__ = (
        "_config",
        "_settings",
        "_build_tags",
        "_cast_style",
        "_range_style",
        "_damage_types",
        "_weapons",
        "_minion_build",
        "_cache",
    )

    def __init__(self, config: BuildConfig, settings: OptimizerSettings | None = None) -> None:
        self._config = config
        self._settings = settings or OptimizerSettings()
        skill = config.skill_tags
        self._build_tags = config.build_tags
        self._cast_style = skill & _CAST_STYLES
        range_style = skill & _RANGE_STYLES
        if not range_style:
            range_style = frozenset(
                WEAPON_STYLE[w] for w in config.weapon_tags if w in WEAPON_STYLE
            )
        self._range_style = range_style
        self._damage_types = damage_types(skill)
        self._weapons = config.weapon_tags | (skill & WEAPON_CLASSES)
        self._minion_build = TAG_MINION in self._build_tags
        self._cache: dict[str, NodeScore] = {}

    @property
    def config(self) -> BuildConfig:
        return self._config

    def relevance(self, node: Node) -> float:
        tags = node.tags
        relevance = 1.0

        if _exclusive_mismatch(tags & _CAST_STYLES, self._cast_style):
            relevance *= STYLE_MISMATCH
        if _exclusive_mismatch(tags & _RANGE_STYLES, self._range_style):
            relevance *= RANGE_MISMATCH

        node_types = damage_types(tags)
        if node_types and self._damage_types:
            if node_types & self._damage_types:
                relevance *= DAMAGE_TYPE_MATCH
            else:
                relevance *= DAMAGE_TYPE_MISMATCH

        node_weapons = tags & WEAPON_CLASSES
        if node_weapons and self._weapons:
            if node_weapons & self._weapons:
                relevance *= WEAPON_MATCH
            else:
                relevance *= WEAPON_MISMATCH

        if TAG_MINION in tags:
            if not self._minion_build:
                relevance *= MINION_ON_SELF_BUILD
        elif self._minion_build and node.offense > 0:
            relevance *= SELF_ON_MINION_BUILD

        matches = len(tags & self._build_tags)
        relevance *= 1.0 + TAG_OVERLAP_STEP * matches
        return relevance

    def score(self, node: Node) -> NodeScore:
        cached = self._cache.get(node.id)
        if cached is not None:
            return cached
        relevance = self.relevance(node)
        offense = node.offense * self._config.offense_weight * relevance
        defense = node.defense * self._config.defense_weight
        multiplier = KIND_MULTIPLIER[node.kind]
        total = max(self._settings.score_epsilon, (offense + defense) * multiplier)
        result = NodeScore(
            relevance=relevance,
            offense=offense,
            defense=defense,
            multiplier=multiplier,
            total=total,
        )
        self._cache[node.id] = result
        return result
