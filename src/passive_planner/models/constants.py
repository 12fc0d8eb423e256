"""Node kinds, tag vocabulary, and the class/ascendancy catalog.

Class and ascendancy names follow the Early Access passive tree. Names are
stored lowercase; display names live alongside for reports.
"""

from enum import Enum


class NodeKind(str, Enum):
    """Passive node power tiers, strongest first."""
    KEYSTONE = "keystone"
    NOTABLE = "notable"
    SMALL = "small"
    TRAVEL = "travel"     # no gameplay value, connectivity only


# Result ordering: keystones, then notables, then everything else.
KIND_ORDER: dict[NodeKind, int] = {
    NodeKind.KEYSTONE: 0,
    NodeKind.NOTABLE: 1,
    NodeKind.SMALL: 2,
    NodeKind.TRAVEL: 2,
}

# Score multiplier applied on top of weighted offense/defense.
KIND_MULTIPLIER: dict[NodeKind, float] = {
    NodeKind.KEYSTONE: 3.0,
    NodeKind.NOTABLE: 2.0,
    NodeKind.SMALL: 1.0,
    NodeKind.TRAVEL: 1.0,
}


# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------

# Index order used by root-edge and classStartIndex markers.
DEFAULT_CLASS_ORDER: tuple[str, ...] = (
    "warrior",
    "marauder",
    "ranger",
    "mercenary",
    "sorceress",
    "witch",
    "monk",
)

CLASS_DISPLAY_NAMES: dict[str, str] = {
    "warrior": "Warrior",
    "marauder": "Marauder",
    "ranger": "Ranger",
    "mercenary": "Mercenary",
    "sorceress": "Sorceress",
    "witch": "Witch",
    "monk": "Monk",
}

# Primary attribute of each class.
CLASS_ATTRIBUTES: dict[str, str] = {
    "warrior": "str",
    "marauder": "str",
    "ranger": "dex",
    "mercenary": "dex",
    "sorceress": "int",
    "witch": "int",
    "monk": "dex_int",
}

# Ascendancy key -> (display name, base class).
ASCENDANCIES: dict[str, tuple[str, str]] = {
    "titan": ("Titan", "warrior"),
    "warbringer": ("Warbringer", "warrior"),
    "bloodmage": ("Blood Mage", "marauder"),
    "infernalist": ("Infernalist", "marauder"),
    "deadeye": ("Deadeye", "ranger"),
    "pathfinder": ("Pathfinder", "ranger"),
    "witchhunter": ("Witchhunter", "mercenary"),
    "gemlinglegionnaire": ("Gemling Legionnaire", "mercenary"),
    "chronomancer": ("Chronomancer", "sorceress"),
    "stormweaver": ("Stormweaver", "sorceress"),
    "acolyte": ("Acolyte of Chayula", "witch"),
    "invoker": ("Invoker", "witch"),
    "chayuladisciple": ("Disciple of Chayula", "monk"),
    "invokermonk": ("Invoker of Storms", "monk"),
}


def normalize_name(name: str) -> str:
    """Lowercase and strip spaces/underscores/apostrophes for lookups."""
    return "".join(ch for ch in name.lower() if ch not in " _-'")


def class_for_ascendancy(ascendancy: str) -> str | None:
    """Return the base class for an ascendancy key or display name."""
    key = normalize_name(ascendancy)
    if key in ASCENDANCIES:
        return ASCENDANCIES[key][1]
    for display, base in ASCENDANCIES.values():
        if normalize_name(display) == key:
            return base
    return None


# ---------------------------------------------------------------------------
# Tag vocabulary
# ---------------------------------------------------------------------------

STYLE_ATTACK = "attack"
STYLE_SPELL = "spell"
STYLE_MELEE = "melee"
STYLE_RANGED = "ranged"
TAG_MINION = "minion"
TAG_ELEMENTAL = "elemental"

DAMAGE_TYPES = frozenset({"physical", "fire", "cold", "lightning", "chaos"})
ELEMENTAL_TYPES = frozenset({"fire", "cold", "lightning"})

WEAPON_CLASSES = frozenset({
    "sword", "axe", "mace", "dagger", "claw", "bow", "crossbow", "wand",
    "staff", "quarterstaff", "spear", "flail", "sceptre", "shield", "unarmed",
})

# Weapon classes that imply a combat style when a skill declares none.
WEAPON_STYLE: dict[str, str] = {
    "sword": STYLE_MELEE,
    "axe": STYLE_MELEE,
    "mace": STYLE_MELEE,
    "dagger": STYLE_MELEE,
    "claw": STYLE_MELEE,
    "quarterstaff": STYLE_MELEE,
    "flail": STYLE_MELEE,
    "unarmed": STYLE_MELEE,
    "spear": STYLE_MELEE,
    "bow": STYLE_RANGED,
    "crossbow": STYLE_RANGED,
}

# Tag -> keywords matched at a word start in stat text or icon hints.
TAG_KEYWORDS: dict[str, tuple[str, ...]] = {
    "physical": ("physical",),
    "fire": ("fire", "ignite", "burning"),
    "cold": ("cold", "freeze", "chill", "frost"),
    "lightning": ("lightning", "shock"),
    "chaos": ("chaos", "poison"),
    "elemental": ("elemental",),
    "sword": ("sword",),
    "axe": ("axe",),
    "mace": ("mace",),
    "dagger": ("dagger",),
    "claw": ("claw",),
    "bow": ("bow",),
    "crossbow": ("crossbow",),
    "wand": ("wand",),
    "staff": ("staff", "staves"),
    "quarterstaff": ("quarterstaff",),
    "spear": ("spear",),
    "flail": ("flail",),
    "sceptre": ("sceptre",),
    "shield": ("shield",),
    "unarmed": ("unarmed",),
    "attack": ("attack", "melee", "strike", "slam"),
    "spell": ("spell", "cast"),
    "melee": ("melee", "strike", "slam"),
    "ranged": ("projectile", "arrow", "bolt", "bow", "crossbow"),
    "projectile": ("projectile", "arrow", "bolt"),
    "aoe": ("area of effect", "radius"),
    "minion": ("minion", "zombie", "skeleton", "spectre"),
    "critical": ("critical",),
    "dot": ("damage over time", "burning", "bleed", "poison", "ignite"),
    "life": ("life",),
    "mana": ("mana",),
    "energyshield": ("energy shield",),
    "armour": ("armour", "armor"),
    "evasion": ("evasion", "evade"),
    "resistance": ("resistance",),
    "block": ("block",),
    "strength": ("strength",),
    "dexterity": ("dexterity",),
    "intelligence": ("intelligence",),
    "attribute": ("attribute",),
}

# Phrases removed from the text before matching a tag's keywords.
TAG_EXCLUSIONS: dict[str, tuple[str, ...]] = {
    "shield": ("energy shield",),
    "attack": ("critical strike",),
    "melee": ("critical strike",),
}
