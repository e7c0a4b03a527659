"""
Test helpers for the Grimoire test suite.

Provides:
- ScriptedRng and ConstantRng random sources for exact dice sequences
- GrimoireTestBuilder for Grimoire setup without touching real save files
- Deterministic seeding utilities
"""

import random
from pathlib import Path
from typing import Optional

from src.content_loader.spell_registry import SpellRegistry
from src.data_models import CastingType, DiceRoller, SpellDefinition
from src.main import Grimoire, GrimoireConfig


SPELL_DATA_DIR = Path(__file__).parent.parent / "data" / "content" / "spells"


# =============================================================================
# RANDOM SOURCES
# =============================================================================


class ScriptedRng:
    """
    Returns a fixed sequence of draws.

    Raises AssertionError if a test draws more values than it scripted.
    """

    def __init__(self, draws: list[int]):
        self._draws = list(draws)
        self.calls: list[tuple[int, int]] = []

    @property
    def remaining(self) -> int:
        return len(self._draws)

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        assert self._draws, "ScriptedRng ran out of draws"
        value = self._draws.pop(0)
        assert a <= value <= b, f"scripted draw {value} outside [{a}, {b}]"
        return value


class ConstantRng:
    """Always draws the same face."""

    def __init__(self, value: int):
        self.value = value

    def randint(self, a: int, b: int) -> int:
        return self.value


# =============================================================================
# GRIMOIRE TEST BUILDER
# =============================================================================


class GrimoireTestBuilder:
    """
    Builder for Grimoire instances in tests.

    Usage:
        grimoire = (GrimoireTestBuilder(tmp_path)
            .with_seed(42)
            .with_gnosis(3)
            .with_arcanum("death", 3)
            .with_known_spell("Unseen Aegis")
            .build())
    """

    def __init__(self, save_dir: Path):
        self._save_dir = Path(save_dir)
        self._seed: Optional[int] = 42
        self._gnosis: Optional[int] = None
        self._arcana: dict[str, int] = {}
        self._known: list[tuple[str, CastingType]] = []
        self._catalog_spells: Optional[list[SpellDefinition]] = None

    def with_seed(self, seed: Optional[int]) -> "GrimoireTestBuilder":
        self._seed = seed
        return self

    def with_gnosis(self, gnosis: int) -> "GrimoireTestBuilder":
        self._gnosis = gnosis
        return self

    def with_arcanum(self, arcanum: str, rating: int) -> "GrimoireTestBuilder":
        self._arcana[arcanum] = rating
        return self

    def with_known_spell(
        self, name: str, casting_type: CastingType = CastingType.IMPROVISED
    ) -> "GrimoireTestBuilder":
        self._known.append((name, casting_type))
        return self

    def with_catalog(self, spells: list[SpellDefinition]) -> "GrimoireTestBuilder":
        """Use these spells instead of the bundled catalog."""
        self._catalog_spells = spells
        return self

    def build(self) -> Grimoire:
        registry = SpellRegistry()
        if self._catalog_spells is None:
            registry.load_from_directory(SPELL_DATA_DIR)
        else:
            for spell in self._catalog_spells:
                registry.register(spell)

        config = GrimoireConfig(
            spell_dir=SPELL_DATA_DIR,
            save_dir=self._save_dir,
            seed=self._seed,
        )
        grimoire = Grimoire(config, registry=registry)

        if self._gnosis is not None:
            grimoire.set_gnosis(self._gnosis)
        for arcanum, rating in self._arcana.items():
            grimoire.set_arcanum(arcanum, rating)
        for name, casting_type in self._known:
            grimoire.learn(name, casting_type)
        return grimoire


# =============================================================================
# SEEDING UTILITIES
# =============================================================================


def seed_all_randomness(seed: int = 42) -> None:
    """Seed every random source the engine draws from."""
    DiceRoller.set_seed(seed)
    DiceRoller.clear_roll_log()


def reset_randomness() -> None:
    """Return the DiceRoller to an unseeded source with an empty log."""
    DiceRoller.set_rng(random.Random())
    DiceRoller.clear_roll_log()
