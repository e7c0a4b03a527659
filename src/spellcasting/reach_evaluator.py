"""
Reach Evaluator for the Grimoire.

Walks the selected reach names and totals their reach cost, dice penalty and
Mana cost. Handles:
- Spell-specific (special) reaches, which take precedence over the catalog
- Shared catalog reaches with flat penalties
- Duration reaches when Duration is the effective primary factor: tiers up to
  the caster's domain rating are free, and only the tiers above it are paid for
- Unknown reach names, which are ignored
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from src.content_loader.reach_catalog import (
    DurationScale,
    ReachCatalog,
    ReachDefinition,
    get_reach_catalog,
)
from src.data_models import PrimaryFactor, SpellDefinition


logger = logging.getLogger(__name__)


# Cumulative dice penalty by duration level
STANDARD_DURATION_PENALTIES: tuple[int, ...] = (0, 2, 4, 6, 8)
ADVANCED_DURATION_PENALTIES: tuple[int, ...] = (0, 0, 2, 4, 6, 8, 10)

# Domain ratings above this do not buy further free duration tiers
MAX_FREE_DURATION_TIER = 5


@dataclass
class ReachEffects:
    """Totals for a set of selected reaches."""

    total_reach_cost: int = 0
    total_dice_penalty: int = 0
    mana_cost: int = 0

    # Breakdown, for display and logging
    applied: list[str] = field(default_factory=list)
    free_durations: list[str] = field(default_factory=list)
    ignored: list[str] = field(default_factory=list)


def effective_primary_factor(base: str, override: Optional[str]) -> str:
    """The override only counts when it actually differs from the spell's own factor."""
    if override and override != base:
        return override
    return base


def _penalty_at(table: tuple[int, ...], level: int) -> int:
    return table[max(0, min(level, len(table) - 1))]


def discounted_duration_penalty(reach: ReachDefinition, domain_value: int) -> int:
    """
    Dice penalty for a duration reach when Duration is the primary factor.

    Levels up to min(domain_value, 5) are free. Above that the caster pays the
    difference between the cumulative penalty at the chosen level and at the
    free level.
    """
    free_level = min(domain_value, MAX_FREE_DURATION_TIER)
    level = reach.duration_level
    if level <= free_level:
        return 0

    table = (
        ADVANCED_DURATION_PENALTIES
        if reach.duration_scale == DurationScale.ADVANCED
        else STANDARD_DURATION_PENALTIES
    )
    return _penalty_at(table, level) - _penalty_at(table, free_level)


class ReachEvaluator:
    """
    Totals reach cost, dice penalty and Mana for a casting.

    Spell-specific reaches are resolved before the shared catalog. They add
    their reach cost and Mana cost; their dice penalty is only counted when
    honor_special_reach_penalties is set.
    """

    def __init__(
        self,
        catalog: Optional[ReachCatalog] = None,
        honor_special_reach_penalties: bool = False,
    ):
        self._catalog = catalog if catalog is not None else get_reach_catalog()
        self._honor_special_reach_penalties = honor_special_reach_penalties

    @property
    def catalog(self) -> ReachCatalog:
        return self._catalog

    def evaluate(
        self,
        selected_names: Iterable[str],
        spell: Optional[SpellDefinition],
        domain_value: int,
        base_primary_factor: Optional[str] = None,
        override_primary_factor: Optional[str] = None,
    ) -> ReachEffects:
        """
        Total the effects of the selected reaches.

        Args:
            selected_names: Reach names chosen for this casting
            spell: The spell being cast (None totals catalog reaches only)
            domain_value: Caster's rating in the spell's domain
            base_primary_factor: The spell's own primary factor.
                Defaults to spell.primary_factor.
            override_primary_factor: Factor chosen via a "Change Primary
                Factor" reach, if any

        Returns:
            ReachEffects with cost, penalty and Mana totals
        """
        effects = ReachEffects()
        if base_primary_factor is None:
            base_primary_factor = spell.primary_factor if spell else ""
        factor = effective_primary_factor(base_primary_factor, override_primary_factor)
        duration_is_primary = factor == PrimaryFactor.DURATION.value

        for name in selected_names:
            special = spell.get_special_reach(name) if spell else None
            if special is not None:
                effects.total_reach_cost += special.cost
                effects.mana_cost += special.mana_cost
                if self._honor_special_reach_penalties:
                    effects.total_dice_penalty += special.dice_penalty
                effects.applied.append(name)
                continue

            reach = self._catalog.get(name)
            if reach is None:
                logger.debug(f"Ignoring unknown reach: {name}")
                effects.ignored.append(name)
                continue

            effects.total_reach_cost += reach.cost
            effects.mana_cost += reach.mana_cost
            effects.applied.append(name)

            if reach.is_duration and duration_is_primary:
                penalty = discounted_duration_penalty(reach, domain_value)
                if penalty == 0:
                    effects.free_durations.append(name)
                effects.total_dice_penalty += penalty
            else:
                effects.total_dice_penalty += reach.dice_penalty

        logger.debug(
            f"Reaches {effects.applied}: cost {effects.total_reach_cost}, "
            f"penalty {effects.total_dice_penalty}, mana {effects.mana_cost}"
        )
        return effects

    def is_duration_free(
        self,
        name: str,
        spell: SpellDefinition,
        domain_value: int,
        override_primary_factor: Optional[str] = None,
    ) -> bool:
        """Whether a duration reach would cost no dice for this spell and caster."""
        reach = self._catalog.get(name)
        if reach is None or not reach.is_duration:
            return False
        factor = effective_primary_factor(spell.primary_factor, override_primary_factor)
        if factor != PrimaryFactor.DURATION.value:
            return False
        return reach.duration_level <= min(domain_value, MAX_FREE_DURATION_TIER)


def evaluate_reaches(
    selected_names: Iterable[str],
    spell: Optional[SpellDefinition],
    catalog: Optional[ReachCatalog],
    domain_value: int,
    base_primary_factor: Optional[str] = None,
    override_primary_factor: Optional[str] = None,
) -> ReachEffects:
    """Convenience wrapper around ReachEvaluator.evaluate."""
    return ReachEvaluator(catalog).evaluate(
        selected_names,
        spell,
        domain_value,
        base_primary_factor=base_primary_factor,
        override_primary_factor=override_primary_factor,
    )
