"""
Spell casting for the Grimoire.

Ties the rules modules together for one casting:
- Effective primary factor, potency and Mana cost
- Reach allowance and overreach warnings
- Effective dice penalty and final pool
- Rolling the pool and counting successes
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from src.content_loader.reach_catalog import ReachCatalog
from src.data_models import CastingType, CharacterState, PrimaryFactor, SpellDefinition
from src.observability.run_log import get_run_log
from src.spellcasting.dice_resolver import DiceResolver, RollOutcome, explode_threshold_for
from src.spellcasting.pool_calculator import (
    DicePool,
    calculate_available_reaches,
    calculate_pool,
)
from src.spellcasting.reach_evaluator import (
    ReachEffects,
    ReachEvaluator,
    effective_primary_factor,
)
from src.spellcasting.reach_selection import ReachSelection


logger = logging.getLogger(__name__)


MAX_POTENCY_BOOST = 5
POTENCY_BOOST_DICE_COST = 2
IMPROVISED_MANA_COST = 1


@dataclass
class CastingRequest:
    """Everything chosen for one casting besides the character."""

    spell: SpellDefinition
    selection: ReachSelection = field(default_factory=ReachSelection)
    yantras: int = 0
    potency_boost: int = 0  # Each level: +1 potency, -2 dice

    # Manual adjustments
    dice_pool_modifier: int = 0
    reach_modifier: int = 0
    mana_modifier: int = 0

    # Roll options
    eight_again: bool = False
    nine_again: bool = False

    @property
    def boost_level(self) -> int:
        return max(0, min(MAX_POTENCY_BOOST, self.potency_boost))


@dataclass
class SelectedReachDetail:
    """A selected reach as shown in a casting summary."""

    name: str
    description: str = ""
    cost: int = 0
    dice_penalty: int = 0
    mana_cost: int = 0
    is_special: bool = False


@dataclass
class CastingSummary:
    """The pre-roll view of a casting."""

    spell_name: str
    casting_type: CastingType
    domain_value: int
    primary_factor: str
    primary_factor_changed: bool
    reach_effects: ReachEffects
    available_reaches: int
    reaches_remaining: int
    effective_penalty: int
    pool: DicePool
    potency: int
    mana_cost: int
    explode_threshold: int
    selected_reaches: list[SelectedReachDetail] = field(default_factory=list)

    @property
    def dice_pool(self) -> int:
        return self.pool.size

    @property
    def is_chance_die(self) -> bool:
        return self.pool.is_chance_die

    @property
    def is_overreach(self) -> bool:
        return self.reaches_remaining < 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "spell_name": self.spell_name,
            "casting_type": self.casting_type.value,
            "domain_value": self.domain_value,
            "primary_factor": self.primary_factor,
            "dice_pool": self.dice_pool,
            "chance_die": self.is_chance_die,
            "effective_penalty": self.effective_penalty,
            "potency": self.potency,
            "mana_cost": self.mana_cost,
            "reach_cost": self.reach_effects.total_reach_cost,
            "reaches_remaining": self.reaches_remaining,
            "overreach": self.is_overreach,
            "reaches": [r.name for r in self.selected_reaches],
        }


@dataclass
class CastResult:
    """A casting that has been rolled."""

    summary: CastingSummary
    outcome: RollOutcome

    @property
    def successes(self) -> int:
        return self.outcome.successes

    @property
    def dramatic_failure(self) -> bool:
        return self.outcome.dramatic_failure


def calculate_potency(domain_value: int, primary_factor: str, boost_level: int = 0) -> int:
    """Domain rating if Potency is primary, else 1, plus any boost."""
    base = domain_value if primary_factor == PrimaryFactor.POTENCY.value else 1
    return base + boost_level


def calculate_mana_cost(
    character: CharacterState,
    spell: SpellDefinition,
    reach_mana: int = 0,
    mana_modifier: int = 0,
) -> int:
    """Improvised spells cost 1 Mana unless cast in a major arcanum."""
    mana = 0
    if spell.casting_type == CastingType.IMPROVISED and not character.is_major_arcanum(spell.arcanum):
        mana += IMPROVISED_MANA_COST
    return mana + reach_mana + mana_modifier


class SpellCaster:
    """
    Computes casting summaries and rolls them.

    Usage:
        caster = SpellCaster()
        request = CastingRequest(spell=spell, selection=selection, yantras=2)
        summary = caster.summarize(character, request)
        result = caster.cast(character, request)
    """

    def __init__(
        self,
        catalog: Optional[ReachCatalog] = None,
        dice_resolver: Optional[DiceResolver] = None,
        reach_evaluator: Optional[ReachEvaluator] = None,
    ):
        self._evaluator = reach_evaluator or ReachEvaluator(catalog)
        self._dice = dice_resolver or DiceResolver()

    @property
    def catalog(self) -> ReachCatalog:
        return self._evaluator.catalog

    def summarize(self, character: CharacterState, request: CastingRequest) -> CastingSummary:
        """Work out pool, potency, Mana and reach budget without rolling."""
        spell = request.spell
        domain_value = character.domain_value_for(spell)
        override = request.selection.override_factor
        factor = effective_primary_factor(spell.primary_factor, override)

        effects = self._evaluator.evaluate(
            request.selection.names,
            spell,
            domain_value,
            base_primary_factor=spell.primary_factor,
            override_primary_factor=override,
        )

        boost = request.boost_level
        effective_penalty = (
            effects.total_dice_penalty
            + boost * POTENCY_BOOST_DICE_COST
            + spell.additional_penalty
            - request.dice_pool_modifier
        )
        pool = calculate_pool(
            character.gnosis,
            domain_value,
            spell.casting_type,
            request.yantras,
            effective_penalty,
        )

        available = calculate_available_reaches(domain_value, spell.max_level, spell.casting_type)
        available += request.reach_modifier

        return CastingSummary(
            spell_name=spell.name,
            casting_type=spell.casting_type,
            domain_value=domain_value,
            primary_factor=factor,
            primary_factor_changed=factor != spell.primary_factor,
            reach_effects=effects,
            available_reaches=available,
            reaches_remaining=available - effects.total_reach_cost,
            effective_penalty=effective_penalty,
            pool=pool,
            potency=calculate_potency(domain_value, factor, boost),
            mana_cost=calculate_mana_cost(
                character, spell, effects.mana_cost, request.mana_modifier
            ),
            explode_threshold=explode_threshold_for(request.eight_again, request.nine_again),
            selected_reaches=self.describe_reaches(request),
        )

    def cast(self, character: CharacterState, request: CastingRequest) -> CastResult:
        """Summarize and roll the casting."""
        summary = self.summarize(character, request)
        if summary.is_overreach:
            logger.warning(
                f"Casting {summary.spell_name} overreaches by {-summary.reaches_remaining}"
            )

        outcome = self._dice.resolve(
            summary.pool.raw_size,
            summary.explode_threshold,
            reason=f"Cast {summary.spell_name}",
        )
        get_run_log().log_cast(
            spell_name=summary.spell_name,
            casting_type=summary.casting_type.value,
            dice_pool=summary.dice_pool,
            potency=summary.potency,
            mana_cost=summary.mana_cost,
            reaches=[r.name for r in summary.selected_reaches],
            successes=outcome.successes,
        )
        logger.info(
            f"Cast {summary.spell_name}: {summary.dice_pool} dice, "
            f"{outcome.successes} successes, potency {summary.potency}"
        )
        return CastResult(summary=summary, outcome=outcome)

    def describe_reaches(self, request: CastingRequest) -> list[SelectedReachDetail]:
        """Selected reaches with their details, spell-specific ones first."""
        names = request.selection.names
        details = []
        seen: set[str] = set()
        # First entry wins when components of a combined spell share a name
        for r in request.spell.special_reaches:
            if r.name not in names or r.name in seen:
                continue
            seen.add(r.name)
            details.append(SelectedReachDetail(
                name=r.name,
                description=r.description,
                cost=r.cost,
                mana_cost=r.mana_cost,
                is_special=True,
            ))
        for name in names:
            if name in seen:
                continue
            reach = self.catalog.get(name)
            if reach is None:
                continue
            details.append(SelectedReachDetail(
                name=reach.name,
                description=reach.description,
                cost=reach.cost,
                dice_penalty=reach.dice_penalty,
                mana_cost=reach.mana_cost,
            ))
        return details
