"""
Reach Catalog for the Grimoire.

Holds the shared list of reaches (spell modifiers) and resolves each raw
record once into a tagged ReachDefinition. Category membership (duration,
scale, primary factor change) is decided here from the reach name so the
evaluator never has to re-parse name strings.

Usage:
    catalog = get_reach_catalog()
    reach = catalog.get("Duration: One week")
    reach.kind            # ReachKind.DURATION
    reach.duration_scale  # DurationScale.ADVANCED
    reach.duration_level  # 3
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional

from src.data_models import PrimaryFactor, coerce_int


logger = logging.getLogger(__name__)


# Singleton instance
_reach_catalog: Optional["ReachCatalog"] = None


# =============================================================================
# ENUMS AND TABLES
# =============================================================================


class ReachKind(str, Enum):
    """What a reach does, resolved from its name when the catalog loads."""

    DURATION = "duration"
    SCALE = "scale"
    PRIMARY_FACTOR_CHANGE = "primary_factor_change"
    GENERIC = "generic"


class DurationScale(str, Enum):
    """The two mutually exclusive duration ladders."""

    STANDARD = "standard"  # 2/3/5/10 turns
    ADVANCED = "advanced"  # scene/hour up to indefinite


DURATION_PREFIX = "Duration:"
SCALE_PREFIX = "Scale:"
ADVANCED_DURATION_PREFIX = "Duration: One"
INDEFINITE_DURATION = "Duration: Indefinite"

CHANGE_PRIMARY_FACTOR_DURATION = "Change Primary Factor: Duration"
CHANGE_PRIMARY_FACTOR_POTENCY = "Change Primary Factor: Potency"

PRIMARY_FACTOR_CHANGES: dict[str, str] = {
    CHANGE_PRIMARY_FACTOR_DURATION: PrimaryFactor.DURATION.value,
    CHANGE_PRIMARY_FACTOR_POTENCY: PrimaryFactor.POTENCY.value,
}

STANDARD_DURATION_LEVELS: dict[str, int] = {
    "Duration: 2 turns": 1,
    "Duration: 3 turns": 2,
    "Duration: 5 turns": 3,
    "Duration: 10 turns": 4,
}

ADVANCED_DURATION_LEVELS: dict[str, int] = {
    "Duration: One scene/hour": 1,
    "Duration: One day": 2,
    "Duration: One week": 3,
    "Duration: One month": 4,
    "Duration: One year": 5,
    "Duration: Indefinite": 6,
}


DEFAULT_REACHES: list[dict[str, Any]] = [
    {"name": "Casting Time: Instant", "cost": 1, "category": "Casting",
     "description": "Cast your spell as an instant action"},
    {"name": "Range: Sensory", "cost": 1, "category": "Range",
     "description": "Extend the range to anything you can perceive"},
    {"name": "Additional Active", "cost": 1, "category": "General",
     "description": "Maintain an additional spell active simultaneously"},

    {"name": CHANGE_PRIMARY_FACTOR_DURATION, "cost": 1, "category": "Primary Factor",
     "description": "Make Duration the spell's primary factor"},
    {"name": CHANGE_PRIMARY_FACTOR_POTENCY, "cost": 1, "category": "Primary Factor",
     "description": "Make Potency the spell's primary factor"},

    {"name": "Duration: 2 turns", "cost": 1, "category": "Duration",
     "description": "Extend spell duration to two turns"},
    {"name": "Duration: 3 turns", "cost": 1, "category": "Duration",
     "description": "Extend spell duration to three turns"},
    {"name": "Duration: 5 turns", "cost": 1, "category": "Duration", "dicePenalty": 2,
     "description": "Extend spell duration to five turns"},
    {"name": "Duration: 10 turns", "cost": 1, "category": "Duration", "dicePenalty": 4,
     "description": "Extend spell duration to ten turns"},

    {"name": "Duration: One scene/hour", "cost": 1, "category": "Duration",
     "description": "Extend the spell to last for one scene or hour"},
    {"name": "Duration: One day", "cost": 1, "category": "Duration", "dicePenalty": 2,
     "description": "Extend spell duration to last for one day"},
    {"name": "Duration: One week", "cost": 1, "category": "Duration", "dicePenalty": 4,
     "description": "Extend spell duration to last for one week"},
    {"name": "Duration: One month", "cost": 1, "category": "Duration", "dicePenalty": 6,
     "description": "Extend spell duration to last for one month"},
    {"name": "Duration: One year", "cost": 1, "category": "Duration", "dicePenalty": 8,
     "description": "Extend spell duration to last for one year"},
    {"name": "Duration: Indefinite", "cost": 2, "category": "Duration", "manaCost": 1,
     "dicePenalty": 10, "description": "Extend spell duration indefinitely"},

    {"name": "Scale: Large building, 5 subjects", "cost": 1, "category": "Scale",
     "description": "Affect an area the size of a large building or up to 5 subjects"},
    {"name": "Scale: Small warehouse, 10 subjects", "cost": 1, "category": "Scale",
     "dicePenalty": 2,
     "description": "Affect an area the size of a small warehouse or up to 10 subjects"},
    {"name": "Scale: Supermarket, 20 subjects", "cost": 1, "category": "Scale",
     "dicePenalty": 4,
     "description": "Affect an area the size of a supermarket or up to 20 subjects"},
    {"name": "Scale: Shopping mall, 40 subjects", "cost": 1, "category": "Scale",
     "dicePenalty": 6,
     "description": "Affect an area the size of a shopping mall or up to 40 subjects"},
    {"name": "Scale: City block, 80 subjects", "cost": 1, "category": "Scale",
     "dicePenalty": 8,
     "description": "Affect an area the size of a city block or up to 80 subjects"},
    {"name": "Scale: Small neighborhood, 160 subjects", "cost": 1, "category": "Scale",
     "dicePenalty": 10,
     "description": "Affect an area the size of a small neighborhood or up to 160 subjects"},
]


# =============================================================================
# REACH DEFINITIONS
# =============================================================================


@dataclass(frozen=True)
class ReachDefinition:
    """A catalog reach with its category resolved into a tag."""

    name: str
    cost: int
    category: str = ""
    description: str = ""
    dice_penalty: int = 0
    mana_cost: int = 0

    kind: ReachKind = ReachKind.GENERIC
    duration_scale: Optional[DurationScale] = None
    duration_level: int = 0  # Ordinal within its scale, 0 if unknown
    scale_step: int = 0  # Ordinal among Scale reaches, in catalog order
    primary_factor_target: Optional[str] = None

    @property
    def is_duration(self) -> bool:
        return self.kind == ReachKind.DURATION

    @property
    def is_primary_factor_change(self) -> bool:
        return self.kind == ReachKind.PRIMARY_FACTOR_CHANGE

    @property
    def label(self) -> str:
        """Display text with penalty and mana annotations."""
        text = self.name
        if self.dice_penalty:
            text += f" (-{self.dice_penalty} dice)"
        if self.mana_cost:
            text += f" [{self.mana_cost} Mana]"
        return text


def classify_reach_name(name: str) -> ReachKind:
    """Decide the reach kind from its name alone."""
    if name.startswith(DURATION_PREFIX):
        return ReachKind.DURATION
    if name in PRIMARY_FACTOR_CHANGES:
        return ReachKind.PRIMARY_FACTOR_CHANGE
    if name.startswith(SCALE_PREFIX):
        return ReachKind.SCALE
    return ReachKind.GENERIC


def duration_scale_for(name: str) -> DurationScale:
    """Advanced ladder names start with "Duration: One" or are exactly Indefinite."""
    if name.startswith(ADVANCED_DURATION_PREFIX) or name == INDEFINITE_DURATION:
        return DurationScale.ADVANCED
    return DurationScale.STANDARD


def duration_level_for(name: str, scale: DurationScale) -> int:
    """Ordinal level of a duration reach within its ladder (0 if not on the ladder)."""
    table = ADVANCED_DURATION_LEVELS if scale == DurationScale.ADVANCED else STANDARD_DURATION_LEVELS
    return table.get(name, 0)


def resolve_reach(record: dict[str, Any], scale_step: int = 0) -> ReachDefinition:
    """
    Turn a raw catalog record into a ReachDefinition.

    Missing or non-numeric cost, dicePenalty and manaCost become zero.

    Raises:
        ValueError: If the record has no name
    """
    name = record.get("name")
    if not isinstance(name, str) or not name:
        raise ValueError(f"reach record has no name: {record}")

    kind = classify_reach_name(name)
    duration_scale = None
    duration_level = 0
    if kind == ReachKind.DURATION:
        duration_scale = duration_scale_for(name)
        duration_level = duration_level_for(name, duration_scale)

    return ReachDefinition(
        name=name,
        cost=max(0, coerce_int(record.get("cost"))),
        category=str(record.get("category") or ""),
        description=str(record.get("description") or ""),
        dice_penalty=max(0, coerce_int(record.get("dicePenalty"))),
        mana_cost=max(0, coerce_int(record.get("manaCost"))),
        kind=kind,
        duration_scale=duration_scale,
        duration_level=duration_level,
        scale_step=scale_step if kind == ReachKind.SCALE else 0,
        primary_factor_target=PRIMARY_FACTOR_CHANGES.get(name),
    )


# =============================================================================
# CATALOG
# =============================================================================


class ReachCatalog:
    """
    Lookup over the shared reaches, keyed by exact name.

    Preserves catalog order for listing.
    """

    def __init__(self, definitions: Optional[list[ReachDefinition]] = None):
        self._reaches: dict[str, ReachDefinition] = {}
        for definition in definitions or []:
            self._reaches[definition.name] = definition

    @classmethod
    def from_records(cls, records: list[dict[str, Any]]) -> "ReachCatalog":
        """Build a catalog from raw records, skipping any without a name."""
        definitions = []
        scale_step = 0
        for record in records:
            if isinstance(record, dict) and str(record.get("name", "")).startswith(SCALE_PREFIX):
                scale_step += 1
            try:
                definitions.append(resolve_reach(record, scale_step))
            except (ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed reach record: {e}")
        return cls(definitions)

    def get(self, name: str) -> Optional[ReachDefinition]:
        return self._reaches.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._reaches

    def __iter__(self) -> Iterator[ReachDefinition]:
        return iter(self._reaches.values())

    def __len__(self) -> int:
        return len(self._reaches)

    @property
    def names(self) -> list[str]:
        return list(self._reaches.keys())

    def by_category(self) -> dict[str, list[ReachDefinition]]:
        """Group reaches by category label, in catalog order."""
        categories: dict[str, list[ReachDefinition]] = {}
        for reach in self._reaches.values():
            categories.setdefault(reach.category, []).append(reach)
        return categories

    def kind_of(self, name: str) -> ReachKind:
        """Kind of a catalog reach, falling back to name rules for unknown names."""
        reach = self._reaches.get(name)
        if reach is not None:
            return reach.kind
        return classify_reach_name(name)


def get_reach_catalog() -> ReachCatalog:
    """
    Get the singleton catalog built from DEFAULT_REACHES.

    Returns:
        The global ReachCatalog instance
    """
    global _reach_catalog
    if _reach_catalog is None:
        _reach_catalog = ReachCatalog.from_records(DEFAULT_REACHES)
        logger.debug(f"Reach catalog loaded with {len(_reach_catalog)} reaches")
    return _reach_catalog


def reset_reach_catalog() -> None:
    """Reset the singleton ReachCatalog instance."""
    global _reach_catalog
    _reach_catalog = None
