"""
Tests for loading the spell catalog from JSON.
"""

import json

import pytest

from src.content_loader.spell_loader import (
    SpellDataLoader,
    level_for_tier,
    load_all_spells,
    parse_spell_record,
)
from src.data_models import CastingType


RAW_AEGIS = {
    "name": "Unseen Aegis",
    "path": "Death",
    "tier": "Initiate",
    "primaryFactor": "Duration",
    "practice": "Compelling",
    "withstand": None,
    "skills": ["Athletics", "Occult"],
    "short_description": "Shadow ward.",
    "description": "Wraps the subject in shadow.",
    "reaches": [{"level": 1, "effect": "Affect another"}, {"level": 2, "effect": "Ward ghosts"}],
    "source": "p. 127",
}


class TestParseSpellRecord:
    """Tests for normalizing a single record."""

    def test_normalized_fields(self):
        spell = parse_spell_record(RAW_AEGIS)
        assert spell.name == "Unseen Aegis"
        assert spell.arcanum == "death"
        assert spell.level == 1
        assert spell.casting_type == CastingType.IMPROVISED
        assert spell.primary_factor == "Duration"
        assert spell.withstand is None
        assert spell.source == "p. 127"

    def test_reaches_become_special_reaches(self):
        spell = parse_spell_record(RAW_AEGIS)
        assert [(r.name, r.cost, r.description) for r in spell.special_reaches] == [
            ("Unseen Aegis: Affect another", 1, "Affect another"),
            ("Unseen Aegis: Ward ghosts", 2, "Ward ghosts"),
        ]

    @pytest.mark.parametrize("tier,level", [
        ("Initiate", 1), ("Apprentice", 2), ("Disciple", 3), ("Adept", 4), ("Master", 5),
        ("Archmaster", 1), (None, 1),
    ])
    def test_tier_mapping(self, tier, level):
        assert level_for_tier(tier) == level

    def test_missing_primary_factor_defaults_to_potency(self):
        record = dict(RAW_AEGIS)
        del record["primaryFactor"]
        assert parse_spell_record(record).primary_factor == "Potency"

    def test_missing_path_raises(self):
        with pytest.raises(ValueError):
            parse_spell_record({"name": "Nowhere"})

    def test_malformed_reach_skipped(self):
        record = dict(RAW_AEGIS, reaches=[{"level": 1}, "junk", {"effect": "Fine"}])
        spell = parse_spell_record(record)
        assert [r.name for r in spell.special_reaches] == ["Unseen Aegis: Fine"]


class TestSpellDataLoader:
    """Tests for file and directory loading."""

    def test_load_wrapped_file(self, tmp_path):
        path = tmp_path / "spells.json"
        path.write_text(json.dumps({
            "_metadata": {"source_file": "core", "item_count": 1},
            "items": [RAW_AEGIS],
        }))
        result = SpellDataLoader().load_file(path)
        assert result.success
        assert result.spells_loaded == 1
        assert result.metadata.source_file == "core"

    def test_load_bare_list(self, tmp_path):
        path = tmp_path / "spells.json"
        path.write_text(json.dumps([RAW_AEGIS]))
        result = SpellDataLoader().load_file(path)
        assert result.success
        assert result.loaded_spells[0].name == "Unseen Aegis"

    def test_bad_record_does_not_stop_file(self, tmp_path):
        path = tmp_path / "spells.json"
        path.write_text(json.dumps([{"name": "No Path"}, RAW_AEGIS, 42]))
        result = SpellDataLoader().load_file(path)
        assert not result.success
        assert result.spells_loaded == 1
        assert result.spells_failed == 2
        assert len(result.errors) == 2

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        result = SpellDataLoader().load_file(path)
        assert not result.success
        assert "JSON parse error" in result.errors[0]

    def test_missing_file(self, tmp_path):
        result = SpellDataLoader().load_file(tmp_path / "absent.json")
        assert not result.success
        assert result.errors

    def test_load_directory(self, tmp_path):
        (tmp_path / "a.json").write_text(json.dumps([RAW_AEGIS]))
        (tmp_path / "b.json").write_text(json.dumps([dict(RAW_AEGIS, name="Other", path="Mind")]))
        (tmp_path / "notes.txt").write_text("ignored")

        result = SpellDataLoader().load_directory(tmp_path)
        assert result.files_processed == 2
        assert result.files_successful == 2
        assert result.total_spells_loaded == 2

    def test_missing_directory(self, tmp_path):
        result = SpellDataLoader().load_directory(tmp_path / "nope")
        assert result.errors
        assert result.all_spells == []

    def test_bundled_catalog_loads(self):
        """The shipped catalog loads without errors."""
        result = load_all_spells()
        assert result.files_failed == 0
        assert result.total_spells_loaded == 10
        assert {s.arcanum for s in result.all_spells} >= {"death", "forces", "time"}
