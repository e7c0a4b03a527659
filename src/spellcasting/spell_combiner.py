"""
Spell Combiner for the Grimoire.

Merges several known spells into one combined spell. Gnosis limits how many
spells can be merged, rotes and already-combined spells cannot take part, and
every spell beyond the first costs two dice when the result is cast.

Rejections are returned, not raised, so callers can show why a combination is
unavailable.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Optional

from src.data_models import (
    COMBINED_SEPARATOR,
    CastingType,
    LowestArcanum,
    SpellDefinition,
)


logger = logging.getLogger(__name__)


COMBINATION_PENALTY_PER_SPELL = 2

# (minimum gnosis, spells allowed), highest first
GNOSIS_COMBINATION_LIMITS: tuple[tuple[int, int], ...] = ((9, 4), (6, 3), (3, 2))


class CombinationRejection(str, Enum):
    """Why a set of spells cannot be combined."""

    TOO_FEW_SPELLS = "too_few_spells"
    GNOSIS_LIMIT = "gnosis_limit"
    ROTE_COMPONENT = "rote_component"
    COMBINED_COMPONENT = "combined_component"
    DUPLICATE_COMPONENT = "duplicate_component"
    MISSING_NAME = "missing_name"
    UNKNOWN_COMPONENT = "unknown_component"
    NAME_TAKEN = "name_taken"


REJECTION_MESSAGES: dict[CombinationRejection, str] = {
    CombinationRejection.TOO_FEW_SPELLS: "Select at least two spells to combine.",
    CombinationRejection.GNOSIS_LIMIT: "Your Gnosis does not allow combining this many spells.",
    CombinationRejection.ROTE_COMPONENT: "Rote spells cannot be used in combined spells.",
    CombinationRejection.COMBINED_COMPONENT: "A combined spell cannot be combined again.",
    CombinationRejection.DUPLICATE_COMPONENT: "The same spell was selected twice.",
    CombinationRejection.MISSING_NAME: "Name your combined spell.",
    CombinationRejection.UNKNOWN_COMPONENT: "A selected spell is not in the spellbook.",
    CombinationRejection.NAME_TAKEN: "A spell with that name is already in the spellbook.",
}


@dataclass
class CombinationCheck:
    """Eligibility of a prospective combination."""

    max_allowed: int
    spell_count: int
    rejections: list[CombinationRejection] = field(default_factory=list)
    unknown_names: list[str] = field(default_factory=list)
    all_praxes: bool = False
    cast_as_improvised: bool = False  # Some, but not all, components are praxes

    @property
    def valid(self) -> bool:
        return not self.rejections

    @property
    def messages(self) -> list[str]:
        return [REJECTION_MESSAGES[r] for r in self.rejections]


@dataclass
class CombinationResult:
    """Outcome of a combine attempt."""

    success: bool
    check: CombinationCheck
    spell: Optional[SpellDefinition] = None


def max_combined_spells(gnosis: int) -> int:
    """How many spells a caster of this Gnosis can merge into one."""
    for min_gnosis, allowed in GNOSIS_COMBINATION_LIMITS:
        if gnosis >= min_gnosis:
            return allowed
    return 1


def combination_penalty(spell_count: int) -> int:
    """Flat dice penalty for merging spell_count spells."""
    return COMBINATION_PENALTY_PER_SPELL * max(0, spell_count - 1)


def check_combination(
    spells: list[SpellDefinition],
    gnosis: int,
    combined_name: str = "",
    unknown_names: Optional[list[str]] = None,
    taken_names: Optional[Iterable[str]] = None,
) -> CombinationCheck:
    """
    Validate a prospective combination without building it.

    Args:
        spells: Components that were found, in selection order
        gnosis: Caster's Gnosis
        combined_name: Name for the new spell
        unknown_names: Requested components that could not be found
        taken_names: Names already in use (compared case-insensitively)
    """
    max_allowed = max_combined_spells(gnosis)
    check = CombinationCheck(
        max_allowed=max_allowed,
        spell_count=len(spells),
        unknown_names=list(unknown_names or []),
    )

    if check.unknown_names:
        check.rejections.append(CombinationRejection.UNKNOWN_COMPONENT)

    if len(spells) <= 1:
        check.rejections.append(CombinationRejection.TOO_FEW_SPELLS)
    if len(spells) > max_allowed:
        check.rejections.append(CombinationRejection.GNOSIS_LIMIT)
    if any(s.casting_type == CastingType.ROTE for s in spells):
        check.rejections.append(CombinationRejection.ROTE_COMPONENT)
    if any(s.combined for s in spells):
        check.rejections.append(CombinationRejection.COMBINED_COMPONENT)
    if len({s.key for s in spells}) < len(spells):
        check.rejections.append(CombinationRejection.DUPLICATE_COMPONENT)
    if not combined_name.strip():
        check.rejections.append(CombinationRejection.MISSING_NAME)
    elif taken_names is not None:
        if combined_name.strip().lower() in {n.lower() for n in taken_names}:
            check.rejections.append(CombinationRejection.NAME_TAKEN)

    check.all_praxes = bool(spells) and all(s.casting_type == CastingType.PRAXIS for s in spells)
    check.cast_as_improvised = (
        not check.all_praxes and any(s.casting_type == CastingType.PRAXIS for s in spells)
    )
    return check


def find_lowest_arcanum(
    spells: list[SpellDefinition],
    arcana_values: Mapping[str, int],
) -> Optional[LowestArcanum]:
    """
    The component domain the caster is weakest in.

    Compares the caster's rating in each component's domain, not spell levels.
    Ties go to the earliest component.
    """
    lowest: Optional[LowestArcanum] = None
    for spell in spells:
        value = arcana_values.get(spell.arcanum_key, 0)
        if lowest is None or value < lowest.value:
            lowest = LowestArcanum(name=spell.arcanum, value=value)
    return lowest


def _join(values: list[object]) -> str:
    return COMBINED_SEPARATOR.join(str(v) for v in values)


def build_combined_spell(
    spells: list[SpellDefinition],
    arcana_values: Mapping[str, int],
    combined_name: str,
) -> SpellDefinition:
    """Merge the components field by field, in selection order."""
    withstands = [s.withstand for s in spells if s.withstand]
    skills: list[str] = []
    for spell in spells:
        for skill in spell.skills:
            if skill not in skills:
                skills.append(skill)

    all_praxes = all(s.casting_type == CastingType.PRAXIS for s in spells)

    return SpellDefinition(
        name=combined_name.strip(),
        arcanum=_join([s.arcanum for s in spells]),
        level=_join([s.level for s in spells]),
        casting_type=CastingType.PRAXIS if all_praxes else CastingType.IMPROVISED,
        primary_factor=_join([s.primary_factor for s in spells]),
        description="\n\n".join(s.description for s in spells),
        short_description=f"Combined spell: {', '.join(s.name for s in spells)}",
        practice=_join([s.practice for s in spells]),
        withstand=_join(withstands) if withstands else None,
        skills=skills,
        special_reaches=[r for s in spells for r in s.special_reaches],
        combined=True,
        component_spells=list(spells),
        additional_penalty=combination_penalty(len(spells)),
        lowest_arcanum=find_lowest_arcanum(spells, arcana_values),
    )


def combine_spells(
    spells: list[SpellDefinition],
    arcana_values: Mapping[str, int],
    combined_name: str,
    gnosis: int,
    unknown_names: Optional[list[str]] = None,
    taken_names: Optional[Iterable[str]] = None,
) -> CombinationResult:
    """
    Combine spells if the caster is able to.

    Args:
        spells: Components, in selection order
        arcana_values: Caster's domain ratings
        combined_name: Name for the new spell
        gnosis: Caster's Gnosis, which caps the component count
        unknown_names: Requested components that could not be found
        taken_names: Names the new spell must not reuse

    Returns:
        CombinationResult with the combined spell, or the rejections
    """
    check = check_combination(spells, gnosis, combined_name, unknown_names, taken_names)
    if not check.valid:
        logger.debug(f"Combination rejected: {[r.value for r in check.rejections]}")
        return CombinationResult(success=False, check=check)

    spell = build_combined_spell(spells, arcana_values, combined_name)
    logger.info(
        f"Combined {[s.name for s in spells]} into '{spell.name}' "
        f"(penalty {spell.additional_penalty}, {spell.casting_type.value})"
    )
    return CombinationResult(success=True, check=check, spell=spell)
