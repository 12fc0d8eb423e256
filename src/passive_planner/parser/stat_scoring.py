"""Heuristic stat-text scoring and tag extraction.

Stat lines are free text ("+25% increased Fire Damage"). Nothing in the
source data is structured, so value is inferred from known substrings:

  - each matching category contributes  value / 10 * coefficient
  - value is the first signed number on the line (10 if there is none)
  - totals are rounded to one decimal

Everything here is pure so it can be swapped for structured modifiers if
a tree export ever provides them.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from passive_planner.models.constants import TAG_EXCLUSIONS, TAG_KEYWORDS
from passive_planner.models.node import AttributeBonuses

NUMBER_RE = re.compile(r"[+-]?\d+(?:\.\d+)?")

DEFAULT_STAT_VALUE = 10.0


@dataclass(frozen=True, slots=True)
class StatCategory:
    name: str
    substrings: tuple[str, ...]
    coefficient: float
    excludes: tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        if any(ex in text for ex in self.excludes):
            return False
        return any(sub in text for sub in self.substrings)


OFFENSE_CATEGORIES: tuple[StatCategory, ...] = (
    StatCategory("damage", ("damage",), 1.0, excludes=("damage taken",)),
    StatCategory("attack_speed", ("attack speed", "attack and cast speed"), 1.5),
    StatCategory("cast_speed", ("cast speed",), 1.5),
    StatCategory("critical", ("critical",), 1.2),
    StatCategory("penetration", ("penetrat",), 1.5),
    StatCategory("accuracy", ("accuracy",), 0.6),
)

DEFENSE_CATEGORIES: tuple[StatCategory, ...] = (
    StatCategory("life", ("life",), 1.2),
    StatCategory("armour", ("armour", "armor"), 1.0),
    StatCategory("evasion", ("evasion",), 1.0),
    StatCategory("energy_shield", ("energy shield",), 1.2),
    StatCategory("resistance", ("resistance",), 1.0),
    StatCategory("block", ("block",), 1.3),
    StatCategory("damage_taken", ("reduced damage taken",), 1.5),
    StatCategory("regeneration", ("regenerat",), 0.8),
)


@dataclass(frozen=True, slots=True)
class StatScore:
    offense: float = 0.0
    defense: float = 0.0


def first_number(stat: str) -> float | None:
    """Return the first signed numeric token in a stat line, or None."""
    match = NUMBER_RE.search(stat)
    if match is None:
        return None
    return float(match.group())


def all_numbers(stat: str) -> list[float]:
    return [float(m.group()) for m in NUMBER_RE.finditer(stat)]


def _line_value(stat: str) -> float:
    value = first_number(stat)
    return DEFAULT_STAT_VALUE if value is None else value


def score_stats(stats: Iterable[str]) -> StatScore:
    """Derive offense/defense base scores from raw stat lines."""
    offense = 0.0
    defense = 0.0
    for stat in stats:
        text = stat.lower()
        weight = _line_value(stat) / 10.0
        for category in OFFENSE_CATEGORIES:
            if category.matches(text):
                offense += weight * category.coefficient
        for category in DEFENSE_CATEGORIES:
            if category.matches(text):
                defense += weight * category.coefficient
    return StatScore(offense=round(offense, 1), defense=round(defense, 1))


# ---------------------------------------------------------------------------
# Tags
# ---------------------------------------------------------------------------


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    return re.compile(r"\b" + re.escape(keyword))


_TAG_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    tag: tuple(_keyword_pattern(kw) for kw in keywords)
    for tag, keywords in TAG_KEYWORDS.items()
}


def extract_tags(stats: Iterable[str], icon: str = "") -> frozenset[str]:
    """Keyword-match stat text and an icon/category hint to semantic tags."""
    parts = [s.lower() for s in stats]
    if icon:
        # Icon paths look like "Art/2DArt/SkillIcons/passives/FireDamagenode.png".
        parts.append(re.sub(r"[/_.\-]", " ", icon.lower()))
    text = " | ".join(parts)
    if not text:
        return frozenset()

    tags: set[str] = set()
    for tag, patterns in _TAG_PATTERNS.items():
        haystack = text
        for phrase in TAG_EXCLUSIONS.get(tag, ()):
            haystack = haystack.replace(phrase, " ")
        if any(p.search(haystack) for p in patterns):
            tags.add(tag)
    return frozenset(tags)


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------

_ATTRIBUTE_RE = re.compile(
    r"^\s*\+?(\d+)\s+to\s+(strength|dexterity|intelligence|all attributes)\b",
    re.IGNORECASE,
)


def attributes_from_stats(stats: Iterable[str]) -> AttributeBonuses:
    """Read "+N to Strength" style lines into attribute bonuses."""
    strength = dexterity = intelligence = 0
    for stat in stats:
        match = _ATTRIBUTE_RE.match(stat)
        if match is None:
            continue
        amount = int(match.group(1))
        which = match.group(2).lower()
        if which in ("strength", "all attributes"):
            strength += amount
        if which in ("dexterity", "all attributes"):
            dexterity += amount
        if which in ("intelligence", "all attributes"):
            intelligence += amount
    return AttributeBonuses(strength, dexterity, intelligence)
