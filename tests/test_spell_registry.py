"""
Tests for spell catalog lookup, castable filtering and search.
"""

from src.content_loader.spell_registry import (
    SpellRegistry,
    get_spell_registry,
    reset_spell_registry,
)
from src.data_models import SpellDefinition, default_arcana_values
from tests.helpers import SPELL_DATA_DIR


def _loaded_registry() -> SpellRegistry:
    registry = SpellRegistry()
    registry.load_from_directory(SPELL_DATA_DIR)
    return registry


def _ratings(**values) -> dict[str, int]:
    arcana = default_arcana_values()
    arcana.update(values)
    return arcana


class TestLookup:
    """Tests for name lookup."""

    def test_load(self):
        registry = _loaded_registry()
        assert registry.is_loaded
        assert registry.spell_count == 10

    def test_get_by_name_case_insensitive(self):
        lookup = _loaded_registry().get_by_name("unseen aegis")
        assert lookup.found
        assert lookup.spell.name == "Unseen Aegis"

    def test_not_found(self):
        lookup = _loaded_registry().get_by_name("Fireball")
        assert not lookup.found
        assert lookup.error == "Spell not found: Fireball"

    def test_register_replaces_same_name(self):
        registry = SpellRegistry()
        registry.register(SpellDefinition(name="Echo", arcanum="mind", level=1))
        registry.register(SpellDefinition(name="echo", arcanum="space", level=2))
        assert registry.spell_count == 1
        assert registry.get_by_arcanum("mind").count == 0
        assert registry.get_by_arcanum("space").count == 1


class TestBrowsing:
    """Tests for arcanum listing and castable filtering."""

    def test_get_by_arcanum_sorted_by_level(self):
        spells = _loaded_registry().get_by_arcanum("Death").spells
        assert [s.name for s in spells] == ["Forensic Gaze", "Unseen Aegis", "Corpse Mask"]

    def test_castable_requires_rating(self):
        registry = _loaded_registry()
        castable = registry.get_castable(_ratings(death=1), "death")
        assert [s.name for s in castable.spells] == ["Forensic Gaze", "Unseen Aegis"]

        castable = registry.get_castable(_ratings(death=3), "death")
        assert castable.count == 3

    def test_castable_across_arcana(self):
        castable = _loaded_registry().get_castable(_ratings(forces=2, time=4))
        assert [s.name for s in castable.spells] == ["Influence Electricity", "Kinetic Blow"]

    def test_nothing_castable_at_zero(self):
        assert _loaded_registry().get_castable(default_arcana_values()).count == 0


class TestSearch:
    """Tests for free-text search."""

    def test_search_name(self):
        result = _loaded_registry().search("CORPSE")
        assert [s.name for s in result.spells] == ["Corpse Mask"]

    def test_search_description(self):
        names = {s.name for s in _loaded_registry().search("Potency").spells}
        assert "Unseen Aegis" in names

    def test_search_limited_to_castable(self):
        registry = _loaded_registry()
        assert registry.search("corpse", _ratings(death=1)).count == 0
        assert registry.search("corpse", _ratings(death=3)).count == 1

    def test_blank_term_matches_nothing(self):
        assert _loaded_registry().search("   ").count == 0


class TestSingleton:
    """Tests for the shared registry."""

    def test_reset(self, clean_spell_registry):
        registry = get_spell_registry()
        registry.register(SpellDefinition(name="Echo", arcanum="mind", level=1))
        assert get_spell_registry() is registry

        reset_spell_registry()
        assert get_spell_registry().spell_count == 0
