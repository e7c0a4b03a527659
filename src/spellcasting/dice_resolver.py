"""
Dice Resolver for the Grimoire.

Rolls pools of ten-sided dice with the "again" rule: every die at or above
the explode threshold adds another die, which may itself explode.

Success counting depends on whether the pool collapsed to a chance die:
- Normal pools: each die showing 8 or more is a success
- Chance die: only a 10 succeeds, and a 1 is a dramatic failure
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from src.data_models import DiceResult, DiceRoller, RandomSource
from src.observability.run_log import get_run_log


logger = logging.getLogger(__name__)


DIE_SIDES = 10
DEFAULT_EXPLODE_THRESHOLD = 10
VALID_EXPLODE_THRESHOLDS = (8, 9, 10)
SUCCESS_THRESHOLD = 8
CHANCE_DIE_SUCCESS = 10
DRAMATIC_FAILURE_FACE = 1

# Safety net only; fair dice never get near it
MAX_DRAWS = 10_000


class ExplodingDiceError(Exception):
    """Raised when exploding dice exceed the draw safety cap."""
    pass


def explode_threshold_for(eight_again: bool = False, nine_again: bool = False) -> int:
    """Map the roll-option flags to an explode threshold. 8-again wins if both are set."""
    if eight_again:
        return 8
    if nine_again:
        return 9
    return DEFAULT_EXPLODE_THRESHOLD


def count_successes(rolls: list[int], is_chance_die: bool = False) -> int:
    """Count successes in a finished roll."""
    if is_chance_die:
        return sum(1 for r in rolls if r == CHANCE_DIE_SUCCESS)
    return sum(1 for r in rolls if r >= SUCCESS_THRESHOLD)


def is_dramatic_failure(rolls: list[int], is_chance_die: bool) -> bool:
    """A chance die whose first face is a 1."""
    return is_chance_die and bool(rolls) and rolls[0] == DRAMATIC_FAILURE_FACE


@dataclass
class RollOutcome:
    """A resolved pool roll."""

    pool_size: int  # Dice rolled before explosions
    raw_pool_size: int  # Pool before flooring, drives chance-die rules
    explode_threshold: int
    rolls: list[int] = field(default_factory=list)
    is_chance_die: bool = False
    successes: int = 0
    dramatic_failure: bool = False

    @property
    def dice_rolled(self) -> int:
        return len(self.rolls)

    @property
    def explosions(self) -> int:
        return len(self.rolls) - self.pool_size

    @property
    def is_success(self) -> bool:
        return self.successes > 0


class DiceResolver:
    """
    Rolls d10 pools.

    Draws come from the injected random source when one is given, otherwise
    from the shared DiceRoller.
    """

    def __init__(
        self,
        rng: Optional[RandomSource] = None,
        max_draws: int = MAX_DRAWS,
    ):
        self._rng = rng
        self._max_draws = max_draws

    def _draw(self) -> int:
        if self._rng is not None:
            return self._rng.randint(1, DIE_SIDES)
        return DiceRoller.randint(1, DIE_SIDES)

    def roll(self, pool_size: int, explode_threshold: int = DEFAULT_EXPLODE_THRESHOLD) -> list[int]:
        """
        Roll pool_size dice, adding a die for every face at or above the threshold.

        Raises:
            ValueError: If the threshold is not 8, 9 or 10
            ExplodingDiceError: If the safety cap on draws is reached
        """
        if explode_threshold not in VALID_EXPLODE_THRESHOLDS:
            raise ValueError(
                f"Explode threshold must be one of {VALID_EXPLODE_THRESHOLDS}, got {explode_threshold}"
            )

        results: list[int] = []
        remaining = max(0, pool_size)
        while remaining > 0:
            if len(results) >= self._max_draws:
                raise ExplodingDiceError(
                    f"Exploding dice exceeded {self._max_draws} draws from a pool of {pool_size}"
                )
            face = self._draw()
            results.append(face)
            remaining -= 1
            if face >= explode_threshold:
                remaining += 1
        return results

    def resolve(
        self,
        raw_pool_size: int,
        explode_threshold: int = DEFAULT_EXPLODE_THRESHOLD,
        reason: str = "",
    ) -> RollOutcome:
        """
        Roll a pool and classify the result.

        Args:
            raw_pool_size: Pool size before flooring; one or fewer is a chance die
            explode_threshold: 8, 9 or 10
            reason: Why this roll is being made (for logging)

        Returns:
            RollOutcome with rolls, successes and chance-die flags
        """
        pool_size = max(1, raw_pool_size)
        is_chance_die = raw_pool_size <= 1
        rolls = self.roll(pool_size, explode_threshold)

        outcome = RollOutcome(
            pool_size=pool_size,
            raw_pool_size=raw_pool_size,
            explode_threshold=explode_threshold,
            rolls=rolls,
            is_chance_die=is_chance_die,
            successes=count_successes(rolls, is_chance_die),
            dramatic_failure=is_dramatic_failure(rolls, is_chance_die),
        )

        notation = f"{pool_size}d10 ({explode_threshold}-again)"
        if is_chance_die:
            notation = f"chance die ({explode_threshold}-again)"
        DiceRoller.record(DiceResult(
            notation=notation,
            rolls=list(rolls),
            successes=outcome.successes,
            reason=reason,
        ))
        get_run_log().log_roll(
            pool_size=pool_size,
            rolls=list(rolls),
            explode_threshold=explode_threshold,
            successes=outcome.successes,
            chance_die=is_chance_die,
            reason=reason,
        )
        logger.debug(f"Rolled {notation}: {rolls} -> {outcome.successes} successes")
        return outcome
