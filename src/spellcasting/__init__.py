"""
Spellcasting rules engine.

Pool arithmetic, reach selection and evaluation, spell combination,
dice resolution, and the SpellCaster that ties them together.
"""

from src.spellcasting.pool_calculator import (
    DicePool,
    calculate_available_reaches,
    calculate_pool,
    compute_pool,
)
from src.spellcasting.reach_selection import ReachSelection
from src.spellcasting.reach_evaluator import (
    ReachEffects,
    ReachEvaluator,
    discounted_duration_penalty,
    effective_primary_factor,
    evaluate_reaches,
)
from src.spellcasting.spell_combiner import (
    CombinationCheck,
    CombinationRejection,
    CombinationResult,
    check_combination,
    combine_spells,
    find_lowest_arcanum,
    max_combined_spells,
)
from src.spellcasting.dice_resolver import (
    DiceResolver,
    ExplodingDiceError,
    RollOutcome,
    explode_threshold_for,
)
from src.spellcasting.casting import (
    CastingRequest,
    CastingSummary,
    CastResult,
    SpellCaster,
    calculate_mana_cost,
    calculate_potency,
)

__all__ = [
    # Pool
    "DicePool",
    "calculate_available_reaches",
    "calculate_pool",
    "compute_pool",
    # Reaches
    "ReachSelection",
    "ReachEffects",
    "ReachEvaluator",
    "discounted_duration_penalty",
    "effective_primary_factor",
    "evaluate_reaches",
    # Combination
    "CombinationCheck",
    "CombinationRejection",
    "CombinationResult",
    "check_combination",
    "combine_spells",
    "find_lowest_arcanum",
    "max_combined_spells",
    # Dice
    "DiceResolver",
    "ExplodingDiceError",
    "RollOutcome",
    "explode_threshold_for",
    # Casting
    "CastingRequest",
    "CastingSummary",
    "CastResult",
    "SpellCaster",
    "calculate_mana_cost",
    "calculate_potency",
]
