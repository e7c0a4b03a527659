"""
Dice pool and reach allowance arithmetic.

The base pool is Gnosis + the spell's domain rating for every casting type.
Penalties never make a spell uncastable: the pool bottoms out at a single
chance die.
"""

import logging
from dataclasses import dataclass

from src.data_models import CastingType


logger = logging.getLogger(__name__)


MIN_DICE_POOL = 1

# Rotes are treated as if the caster had a perfect domain rating
ROTE_EFFECTIVE_ARCANUM = 5
BASE_FREE_REACHES = 1


@dataclass
class DicePool:
    """A dice pool before and after flooring."""

    base: int
    yantra_bonus: int
    effective_penalty: int
    raw_size: int  # Before flooring, may be zero or negative
    size: int  # What actually gets rolled

    @property
    def is_chance_die(self) -> bool:
        """Pools that collapse to one die or fewer are rolled as a chance die."""
        return self.raw_size <= MIN_DICE_POOL


def raw_pool_size(
    gnosis: int,
    domain_value: int,
    casting_type: CastingType,
    yantra_bonus: int,
    effective_penalty: int,
) -> int:
    """Pool size before the minimum of one die is applied."""
    return gnosis + domain_value + yantra_bonus - effective_penalty


def compute_pool(
    gnosis: int,
    domain_value: int,
    casting_type: CastingType,
    yantra_bonus: int,
    effective_penalty: int,
) -> int:
    """
    Calculate the number of dice to roll.

    Args:
        gnosis: Character's Gnosis
        domain_value: Rating in the spell's domain
        casting_type: How the spell is cast (does not change the base)
        yantra_bonus: Flat bonus dice
        effective_penalty: Sum of all dice penalties, already sign-combined
            with any manual dice modifier

    Returns:
        Pool size, never below 1
    """
    return max(
        MIN_DICE_POOL,
        raw_pool_size(gnosis, domain_value, casting_type, yantra_bonus, effective_penalty),
    )


def calculate_pool(
    gnosis: int,
    domain_value: int,
    casting_type: CastingType,
    yantra_bonus: int,
    effective_penalty: int,
) -> DicePool:
    """Same as compute_pool, keeping the unfloored size for chance-die checks."""
    raw = raw_pool_size(gnosis, domain_value, casting_type, yantra_bonus, effective_penalty)
    pool = DicePool(
        base=gnosis + domain_value,
        yantra_bonus=yantra_bonus,
        effective_penalty=effective_penalty,
        raw_size=raw,
        size=max(MIN_DICE_POOL, raw),
    )
    logger.debug(
        f"Pool {pool.base} + {yantra_bonus} - {effective_penalty} = {raw} "
        f"(rolling {pool.size}, {casting_type.value})"
    )
    return pool


def calculate_available_reaches(
    arcanum_value: int,
    spell_level: int,
    casting_type: CastingType,
) -> int:
    """
    Free reaches a caster gets for a spell.

    One reach, plus one per dot the domain rating exceeds the spell's level.
    Rotes count as a domain rating of 5.
    """
    effective_arcanum = ROTE_EFFECTIVE_ARCANUM if casting_type == CastingType.ROTE else arcanum_value
    return BASE_FREE_REACHES + max(0, effective_arcanum - spell_level)
