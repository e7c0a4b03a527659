"""
Shared data structures for the Grimoire spellcasting calculator.

These structures are passed explicitly between the rules engine modules;
no engine module owns or mutates them behind the caller's back.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Protocol, Union
import logging
import random

logger = logging.getLogger(__name__)


# =============================================================================
# ENUMS AND CONSTANTS
# =============================================================================


class Arcanum(str, Enum):
    """The ten domains of magic a character can hold a rating in."""
    DEATH = "death"
    FATE = "fate"
    FORCES = "forces"
    LIFE = "life"
    MATTER = "matter"
    MIND = "mind"
    PRIME = "prime"
    SPIRIT = "spirit"
    SPACE = "space"
    TIME = "time"


class CastingType(str, Enum):
    """How a spell is cast."""
    IMPROVISED = "improvised"
    ROTE = "rote"
    PRAXIS = "praxis"


class PrimaryFactor(str, Enum):
    """Spell factors that can scale with the caster's domain rating."""
    POTENCY = "Potency"
    DURATION = "Duration"


ARCANA_NAMES: list[str] = [a.value for a in Arcanum]

# Tier label in the raw spell catalog -> spell level
TIER_MAPPING: dict[str, int] = {
    "Initiate": 1,
    "Apprentice": 2,
    "Disciple": 3,
    "Adept": 4,
    "Master": 5,
}

MIN_GNOSIS = 1
MAX_GNOSIS = 10
MIN_ARCANUM_RATING = 0
MAX_ARCANUM_RATING = 5
MAX_MAJOR_ARCANA = 3

# Separator used when several spells are merged into one
COMBINED_SEPARATOR = "/"


def default_arcana_values() -> dict[str, int]:
    """Every domain at rating 0."""
    return {name: 0 for name in ARCANA_NAMES}


def coerce_int(value: Any, default: int = 0) -> int:
    """Coerce a catalog numeric field, treating anything non-numeric as default."""
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


# =============================================================================
# SPELL DEFINITIONS
# =============================================================================


@dataclass
class SpecialReach:
    """A spell-specific reach, e.g. "Unseen Aegis: Affect another"."""
    name: str
    cost: int = 1
    description: str = ""
    mana_cost: int = 0
    dice_penalty: int = 0  # Not honored by default, see ReachEvaluator

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "cost": self.cost,
            "description": self.description,
        }
        if self.mana_cost:
            data["manaCost"] = self.mana_cost
        if self.dice_penalty:
            data["dicePenalty"] = self.dice_penalty
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpecialReach":
        return cls(
            name=str(data.get("name", "")),
            cost=coerce_int(data.get("cost"), 0),
            description=str(data.get("description") or ""),
            mana_cost=coerce_int(data.get("manaCost")),
            dice_penalty=coerce_int(data.get("dicePenalty")),
        )


@dataclass
class LowestArcanum:
    """The component domain with the lowest character rating in a combined spell."""
    name: str
    value: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LowestArcanum":
        return cls(name=str(data.get("name", "")), value=coerce_int(data.get("value")))


@dataclass
class SpellDefinition:
    """
    A spell as it sits in the catalog or in a character's spellbook.

    The identity of a spellbook entry is its (name, casting_type) pair; the same
    spell may be known both as a rote and as an improvised casting.
    Combined spells carry `/`-joined arcanum, level and primary factor strings.
    """

    name: str
    arcanum: str
    level: Union[int, str]
    casting_type: CastingType = CastingType.IMPROVISED
    primary_factor: str = PrimaryFactor.POTENCY.value

    description: str = ""
    short_description: str = ""
    practice: str = ""
    withstand: Optional[str] = None
    skills: list[str] = field(default_factory=list)
    special_reaches: list[SpecialReach] = field(default_factory=list)
    source: str = ""

    # Combined spell fields
    combined: bool = False
    component_spells: list["SpellDefinition"] = field(default_factory=list)
    additional_penalty: int = 0
    lowest_arcanum: Optional[LowestArcanum] = None

    @property
    def key(self) -> tuple[str, CastingType]:
        """Spellbook identity."""
        return (self.name, self.casting_type)

    @property
    def arcanum_key(self) -> str:
        """Lowercase arcanum, used to look up the character's rating."""
        return self.arcanum.lower()

    @property
    def max_level(self) -> int:
        """Highest level among the spell's components (or its own level)."""
        if isinstance(self.level, int):
            return self.level
        levels = [coerce_int(part) for part in str(self.level).split(COMBINED_SEPARATOR)]
        return max(levels) if levels else 0

    def get_special_reach(self, name: str) -> Optional[SpecialReach]:
        """Find a spell-specific reach by its literal name."""
        for reach in self.special_reaches:
            if reach.name == name:
                return reach
        return None

    def with_casting_type(self, casting_type: CastingType) -> "SpellDefinition":
        """Copy of this spell learned with the given casting type."""
        return replace(self, casting_type=CastingType(casting_type))

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the persisted blob's field names."""
        data: dict[str, Any] = {
            "name": self.name,
            "arcanum": self.arcanum,
            "level": self.level,
            "castingType": self.casting_type.value,
            "primaryFactor": self.primary_factor,
            "description": self.description,
            "short_description": self.short_description,
            "practice": self.practice,
            "withstand": self.withstand,
            "skills": list(self.skills),
            "specialReaches": [r.to_dict() for r in self.special_reaches],
            "source": self.source,
        }
        if self.combined:
            data["combined"] = True
            data["componentSpells"] = [s.to_dict() for s in self.component_spells]
            data["additionalPenalty"] = self.additional_penalty
            if self.lowest_arcanum is not None:
                data["lowestArcanum"] = self.lowest_arcanum.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SpellDefinition":
        """
        Rebuild a spell from its persisted form.

        Raises:
            ValueError: If the record has no name or arcanum, or an unknown casting type
        """
        name = data.get("name")
        arcanum = data.get("arcanum")
        if not isinstance(name, str) or not name:
            raise ValueError("spell record has no name")
        if not isinstance(arcanum, str) or not arcanum:
            raise ValueError(f"spell '{name}' has no arcanum")

        level = data.get("level", 1)
        if not isinstance(level, (int, str)) or isinstance(level, bool):
            level = 1

        lowest = data.get("lowestArcanum")
        return cls(
            name=name,
            arcanum=arcanum,
            level=level,
            casting_type=CastingType(data.get("castingType") or CastingType.IMPROVISED.value),
            primary_factor=str(data.get("primaryFactor") or ""),
            description=str(data.get("description") or ""),
            short_description=str(data.get("short_description") or ""),
            practice=str(data.get("practice") or ""),
            withstand=data.get("withstand") or None,
            skills=[s for s in data.get("skills") or [] if isinstance(s, str)],
            special_reaches=[
                SpecialReach.from_dict(r)
                for r in data.get("specialReaches") or []
                if isinstance(r, dict)
            ],
            source=str(data.get("source") or ""),
            combined=bool(data.get("combined", False)),
            component_spells=[
                cls.from_dict(s) for s in data.get("componentSpells") or [] if isinstance(s, dict)
            ],
            additional_penalty=coerce_int(data.get("additionalPenalty")),
            lowest_arcanum=LowestArcanum.from_dict(lowest) if isinstance(lowest, dict) else None,
        )


# =============================================================================
# CHARACTER STATE
# =============================================================================


@dataclass
class CharacterState:
    """
    The caster's persistent attributes and spellbook.

    Mutated in place by user actions; persisted by the CharacterStore.
    """

    gnosis: int = MIN_GNOSIS
    arcana_values: dict[str, int] = field(default_factory=default_arcana_values)
    major_arcana: list[str] = field(default_factory=list)
    user_spells: list[SpellDefinition] = field(default_factory=list)
    yantras: int = 0

    def get_arcanum_rating(self, arcanum: str) -> int:
        """Rating in a domain (0 for unknown names)."""
        return self.arcana_values.get(arcanum.lower(), 0)

    def domain_value_for(self, spell: SpellDefinition) -> int:
        """
        The domain rating that drives a spell's dice pool.

        Combined spells use the rating of their weakest component domain.
        """
        if spell.combined and spell.lowest_arcanum is not None:
            return spell.lowest_arcanum.value
        return self.get_arcanum_rating(spell.arcanum)

    def is_major_arcanum(self, arcanum: str) -> bool:
        return arcanum.lower() in self.major_arcana

    def set_gnosis(self, value: int) -> int:
        """Set gnosis, clamped to the legal range. Returns the stored value."""
        self.gnosis = max(MIN_GNOSIS, min(MAX_GNOSIS, int(value)))
        return self.gnosis

    def set_arcanum(self, arcanum: str, value: int) -> int:
        """
        Set a domain rating, clamped to 0-5.

        Raises:
            ValueError: If the arcanum is not one of the ten domains
        """
        key = Arcanum(arcanum.lower()).value
        self.arcana_values[key] = max(MIN_ARCANUM_RATING, min(MAX_ARCANUM_RATING, int(value)))
        return self.arcana_values[key]

    def toggle_major_arcanum(self, arcanum: str) -> bool:
        """
        Flag or unflag a domain as a specialty.

        Returns:
            True if the domain is flagged after the call
        """
        key = Arcanum(arcanum.lower()).value
        if key in self.major_arcana:
            self.major_arcana.remove(key)
            return False
        if len(self.major_arcana) >= MAX_MAJOR_ARCANA:
            logger.debug(f"Major arcana already full, refusing {key}")
            return False
        self.major_arcana.append(key)
        return True

    def set_yantras(self, value: int) -> int:
        self.yantras = max(0, int(value))
        return self.yantras

    def find_spell(
        self, name: str, casting_type: Optional[CastingType] = None
    ) -> Optional[SpellDefinition]:
        """Find a spellbook entry by name and, optionally, casting type."""
        for spell in self.user_spells:
            if spell.name == name and (casting_type is None or spell.casting_type == casting_type):
                return spell
        return None

    def add_spell(self, spell: SpellDefinition) -> bool:
        """Add a spell unless the same (name, casting type) is already known."""
        if any(s.key == spell.key for s in self.user_spells):
            return False
        self.user_spells.append(spell)
        return True

    def remove_spell(self, spell: SpellDefinition) -> bool:
        """Remove the spellbook entry matching the spell's (name, casting type)."""
        before = len(self.user_spells)
        self.user_spells = [s for s in self.user_spells if s.key != spell.key]
        return len(self.user_spells) < before


# =============================================================================
# DICE
# =============================================================================


class RandomSource(Protocol):
    """Anything that can draw an inclusive random integer, e.g. random.Random."""

    def randint(self, a: int, b: int) -> int:
        ...


class DiceRoller:
    """
    Centralized randomization interface.

    All draws go through this class unless a caller injects its own source,
    so that seeding makes a whole session reproducible.
    """

    _instance = None
    _seed: Optional[int] = None
    _rng: RandomSource = random.Random()
    _roll_log: list = []

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def set_seed(cls, seed: int) -> None:
        """Set random seed for reproducibility."""
        cls._seed = seed
        cls._rng = random.Random(seed)

    @classmethod
    def set_rng(cls, rng: RandomSource) -> None:
        """Replace the random source (tests inject scripted sources here)."""
        cls._seed = None
        cls._rng = rng

    @classmethod
    def get_seed(cls) -> Optional[int]:
        return cls._seed

    @classmethod
    def randint(cls, a: int, b: int) -> int:
        """Draw an integer in [a, b] from the active source."""
        return cls._rng.randint(a, b)

    @classmethod
    def record(cls, result: "DiceResult") -> None:
        """Append a finished roll to the session log."""
        cls._roll_log.append(result)

    @classmethod
    def get_roll_log(cls) -> list:
        """Get the complete roll log for the session."""
        return cls._roll_log.copy()

    @classmethod
    def clear_roll_log(cls) -> None:
        """Clear the roll log."""
        cls._roll_log = []


@dataclass
class DiceResult:
    """A logged dice pool roll."""
    notation: str
    rolls: list[int]
    successes: int
    reason: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"{self.notation}: {self.rolls} = {self.successes} successes"
