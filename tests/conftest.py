"""
Pytest fixtures for the Grimoire test suite.

Provides reusable fixtures for dice, the reach catalog, characters,
sample spells and save directories.
"""

import random

import pytest

from src.content_loader.reach_catalog import get_reach_catalog, reset_reach_catalog
from src.content_loader.spell_registry import reset_spell_registry
from src.data_models import (
    CastingType,
    CharacterState,
    DiceRoller,
    SpecialReach,
    SpellDefinition,
    default_arcana_values,
)
from src.observability.run_log import reset_run_log


# =============================================================================
# DICE FIXTURES
# =============================================================================


@pytest.fixture
def seeded_dice():
    """Provide a seeded DiceRoller for reproducible tests."""
    DiceRoller.clear_roll_log()
    DiceRoller.set_seed(42)
    yield DiceRoller()
    DiceRoller.clear_roll_log()
    DiceRoller.set_rng(random.Random())


@pytest.fixture
def clean_dice():
    """Provide a clean DiceRoller without seed."""
    DiceRoller.clear_roll_log()
    DiceRoller.set_rng(random.Random())
    yield DiceRoller()
    DiceRoller.clear_roll_log()
    DiceRoller.set_rng(random.Random())


# =============================================================================
# SINGLETON FIXTURES
# =============================================================================


@pytest.fixture(autouse=True)
def fresh_run_log():
    """Every test starts with an empty run log."""
    log = reset_run_log()
    yield log
    reset_run_log()


@pytest.fixture
def reach_catalog():
    """The default reach catalog, rebuilt for the test."""
    reset_reach_catalog()
    yield get_reach_catalog()
    reset_reach_catalog()


@pytest.fixture
def clean_spell_registry():
    reset_spell_registry()
    yield
    reset_spell_registry()


# =============================================================================
# CHARACTER FIXTURES
# =============================================================================


@pytest.fixture
def sample_character():
    """Gnosis 3 caster, strongest in Death."""
    arcana = default_arcana_values()
    arcana.update({"death": 3, "forces": 2, "mind": 1, "prime": 2})
    return CharacterState(
        gnosis=3,
        arcana_values=arcana,
        major_arcana=["mind"],
        yantras=0,
    )


@pytest.fixture
def veteran_character():
    """Gnosis 6 caster, able to combine three spells."""
    arcana = default_arcana_values()
    arcana.update({"death": 4, "fate": 3, "forces": 3, "mind": 2, "time": 5})
    return CharacterState(
        gnosis=6,
        arcana_values=arcana,
        major_arcana=["death", "time"],
        yantras=2,
    )


# =============================================================================
# SPELL FIXTURES
# =============================================================================


@pytest.fixture
def unseen_aegis():
    """Death 1, Duration primary, one spell-specific reach."""
    return SpellDefinition(
        name="Unseen Aegis",
        arcanum="death",
        level=1,
        primary_factor="Duration",
        practice="Compelling",
        skills=["Athletics", "Occult"],
        special_reaches=[
            SpecialReach(
                name="Unseen Aegis: Affect another",
                cost=1,
                description="Affect another",
            ),
        ],
    )


@pytest.fixture
def forensic_gaze():
    """Death 1, Potency primary."""
    return SpellDefinition(
        name="Forensic Gaze",
        arcanum="death",
        level=1,
        primary_factor="Potency",
        practice="Knowing",
        skills=["Medicine", "Investigation"],
    )


@pytest.fixture
def kinetic_blow():
    """Forces 2, Duration primary."""
    return SpellDefinition(
        name="Kinetic Blow",
        arcanum="forces",
        level=2,
        primary_factor="Duration",
        practice="Ruling",
        withstand=None,
        skills=["Brawl", "Weaponry"],
    )


@pytest.fixture
def interconnections():
    """Fate 1, Potency primary, known as a praxis."""
    return SpellDefinition(
        name="Interconnections",
        arcanum="fate",
        level=1,
        casting_type=CastingType.PRAXIS,
        primary_factor="Potency",
        practice="Knowing",
    )


# =============================================================================
# FILESYSTEM FIXTURES
# =============================================================================


@pytest.fixture
def temp_save_dir(tmp_path):
    """A save directory that does not exist yet."""
    return tmp_path / "saves"
