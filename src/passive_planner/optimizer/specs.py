"""Input specs for a single optimization run."""

from __future__ import annotations

from dataclasses import dataclass, field

MAX_REQUIRED_KEYSTONES = 3


def _normalized_tags(tags: set[str] | frozenset[str] | list[str] | tuple[str, ...]) -> frozenset[str]:
    return frozenset(str(t).strip().lower() for t in tags if str(t).strip())


@dataclass(slots=True)
class BuildConfig:
    """What to optimize for.

    `defense_weight` is always 1 - `offense_weight`, so the two weights
    sum to one by construction.

    `point_budget` counts points beyond the class start node, which is
    always allocated for free. A budget of 0 therefore yields the start
    node alone.
    """

    class_name: str | None = None
    ascendancy: str | None = None
    offense_weight: float = 0.7
    point_budget: int = 128
    required_keystone_ids: list[str] = field(default_factory=list)
    skill_tags: frozenset[str] = frozenset()
    weapon_tags: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        if isinstance(self.offense_weight, bool):
            raise ValueError("offense_weight must be a number")
        self.offense_weight = float(self.offense_weight)
        if not 0.0 <= self.offense_weight <= 1.0:
            raise ValueError(
                f"offense_weight must be within [0, 1], got {self.offense_weight}"
            )
        if isinstance(self.point_budget, bool) or not isinstance(self.point_budget, int):
            raise ValueError(f"point_budget must be an integer, got {self.point_budget!r}")
        if self.point_budget < 0:
            raise ValueError(f"point_budget must be >= 0, got {self.point_budget}")
        ids = [str(k).strip() for k in self.required_keystone_ids if k is not None]
        self.required_keystone_ids = [k for k in ids if k]
        if len(self.required_keystone_ids) > MAX_REQUIRED_KEYSTONES:
            raise ValueError(
                f"At most {MAX_REQUIRED_KEYSTONES} required keystones are supported"
            )
        if not self.class_name and not self.ascendancy:
            raise ValueError("BuildConfig needs a class_name or an ascendancy")
        self.skill_tags = _normalized_tags(self.skill_tags)
        self.weapon_tags = _normalized_tags(self.weapon_tags)

    @property
    def defense_weight(self) -> float:
        return 1.0 - self.offense_weight

    @property
    def build_tags(self) -> frozenset[str]:
        """Skill and weapon tags together."""
        return self.skill_tags | self.weapon_tags
