"""
Tests for combining spells.
"""

import pytest

from src.data_models import CastingType, LowestArcanum, SpellDefinition
from src.spellcasting.spell_combiner import (
    CombinationRejection,
    check_combination,
    combination_penalty,
    combine_spells,
    find_lowest_arcanum,
    max_combined_spells,
)


class TestLimits:
    """Tests for the Gnosis limit and the penalty."""

    @pytest.mark.parametrize("gnosis,allowed", [
        (1, 1), (2, 1), (3, 2), (5, 2), (6, 3), (8, 3), (9, 4), (10, 4),
    ])
    def test_max_combined_spells(self, gnosis, allowed):
        assert max_combined_spells(gnosis) == allowed

    @pytest.mark.parametrize("count,penalty", [(1, 0), (2, 2), (3, 4), (4, 6)])
    def test_combination_penalty(self, count, penalty):
        assert combination_penalty(count) == penalty


class TestCheckCombination:
    """Tests for eligibility checks."""

    def test_three_spells_rejected_at_gnosis_five(self, unseen_aegis, forensic_gaze, kinetic_blow):
        """Gnosis 5 allows only two spells."""
        check = check_combination([unseen_aegis, forensic_gaze, kinetic_blow], 5, "Triple")
        assert not check.valid
        assert check.rejections == [CombinationRejection.GNOSIS_LIMIT]
        assert check.max_allowed == 2

    def test_three_spells_accepted_at_gnosis_six(self, unseen_aegis, forensic_gaze, kinetic_blow):
        """Gnosis 6 allows three spells."""
        check = check_combination([unseen_aegis, forensic_gaze, kinetic_blow], 6, "Triple")
        assert check.valid

    def test_single_spell_rejected(self, unseen_aegis):
        check = check_combination([unseen_aegis], 6, "Solo")
        assert CombinationRejection.TOO_FEW_SPELLS in check.rejections

    def test_rote_component_rejected(self, unseen_aegis, forensic_gaze):
        rote = forensic_gaze.with_casting_type(CastingType.ROTE)
        check = check_combination([unseen_aegis, rote], 6, "Mixed")
        assert CombinationRejection.ROTE_COMPONENT in check.rejections

    def test_combined_component_rejected(self, sample_character, unseen_aegis, forensic_gaze, kinetic_blow):
        combined = combine_spells(
            [unseen_aegis, forensic_gaze], sample_character.arcana_values, "Pair", 6
        ).spell
        check = check_combination([combined, kinetic_blow], 6, "Nested")
        assert CombinationRejection.COMBINED_COMPONENT in check.rejections

    def test_duplicate_component_rejected(self, unseen_aegis):
        check = check_combination([unseen_aegis, unseen_aegis], 6, "Twice")
        assert CombinationRejection.DUPLICATE_COMPONENT in check.rejections

    def test_blank_name_rejected(self, unseen_aegis, forensic_gaze):
        check = check_combination([unseen_aegis, forensic_gaze], 6, "   ")
        assert check.rejections == [CombinationRejection.MISSING_NAME]
        assert check.messages == ["Name your combined spell."]

    def test_unknown_component_rejected(self, unseen_aegis, forensic_gaze):
        """Requested names that were not found reject an otherwise valid set."""
        check = check_combination(
            [unseen_aegis, forensic_gaze], 6, "Triple", unknown_names=["Kinetic Blo"]
        )
        assert check.rejections == [CombinationRejection.UNKNOWN_COMPONENT]
        assert check.unknown_names == ["Kinetic Blo"]

    def test_taken_name_rejected(self, sample_character, unseen_aegis, forensic_gaze):
        """Name clashes are case-insensitive and ignore surrounding spaces."""
        result = combine_spells(
            [unseen_aegis, forensic_gaze],
            sample_character.arcana_values,
            " unseen AEGIS ",
            3,
            taken_names=["Unseen Aegis", "Forensic Gaze"],
        )
        assert not result.success
        assert result.spell is None
        assert result.check.rejections == [CombinationRejection.NAME_TAKEN]

    def test_free_name_accepted(self, unseen_aegis, forensic_gaze):
        check = check_combination(
            [unseen_aegis, forensic_gaze], 3, "Grave Sight", taken_names=["Unseen Aegis"]
        )
        assert check.valid

    def test_mixing_praxis_is_reported(self, unseen_aegis, interconnections):
        """Praxis plus improvised is allowed but cast as improvised."""
        check = check_combination([unseen_aegis, interconnections], 6, "Mix")
        assert check.valid
        assert check.cast_as_improvised
        assert not check.all_praxes


class TestLowestArcanum:
    """Tests for picking the weakest component domain."""

    def test_uses_character_ratings(self, sample_character, unseen_aegis, kinetic_blow):
        """Ratings, not spell levels, decide the lowest domain."""
        lowest = find_lowest_arcanum([unseen_aegis, kinetic_blow], sample_character.arcana_values)
        assert lowest == LowestArcanum(name="forces", value=2)

    def test_ties_go_to_first(self, sample_character, unseen_aegis, forensic_gaze):
        lowest = find_lowest_arcanum([forensic_gaze, unseen_aegis], sample_character.arcana_values)
        assert lowest.value == 3
        assert lowest.name == "death"

    def test_empty_list(self, sample_character):
        assert find_lowest_arcanum([], sample_character.arcana_values) is None


class TestCombineSpells:
    """Tests for building the combined spell."""

    def test_combined_fields(self, sample_character, unseen_aegis, kinetic_blow):
        """Component fields are joined in selection order."""
        result = combine_spells(
            [unseen_aegis, kinetic_blow], sample_character.arcana_values, "Iron Shroud", 3
        )
        assert result.success
        spell = result.spell
        assert spell.name == "Iron Shroud"
        assert spell.arcanum == "death/forces"
        assert spell.level == "1/2"
        assert spell.max_level == 2
        assert spell.primary_factor == "Duration/Duration"
        assert spell.combined
        assert spell.additional_penalty == 2
        assert spell.lowest_arcanum == LowestArcanum(name="forces", value=2)
        assert spell.casting_type == CastingType.IMPROVISED
        assert [s.name for s in spell.component_spells] == ["Unseen Aegis", "Kinetic Blow"]

    def test_special_reaches_and_skills_merged(self, sample_character, unseen_aegis, kinetic_blow):
        spell = combine_spells(
            [unseen_aegis, kinetic_blow], sample_character.arcana_values, "Iron Shroud", 3
        ).spell
        assert [r.name for r in spell.special_reaches] == ["Unseen Aegis: Affect another"]
        assert spell.skills == ["Athletics", "Occult", "Brawl", "Weaponry"]

    def test_three_spell_penalty(self, veteran_character, unseen_aegis, forensic_gaze, kinetic_blow):
        """Three components cost four dice."""
        result = combine_spells(
            [unseen_aegis, forensic_gaze, kinetic_blow],
            veteran_character.arcana_values,
            "Triple",
            veteran_character.gnosis,
        )
        assert result.spell.additional_penalty == 4

    def test_all_praxes_stay_praxis(self, veteran_character, interconnections):
        other = SpellDefinition(
            name="Mental Scan", arcanum="mind", level=1,
            casting_type=CastingType.PRAXIS, primary_factor="Potency",
        )
        result = combine_spells(
            [interconnections, other], veteran_character.arcana_values, "Insight", 6
        )
        assert result.spell.casting_type == CastingType.PRAXIS

    def test_rejected_combination_has_no_spell(self, sample_character, unseen_aegis):
        result = combine_spells([unseen_aegis], sample_character.arcana_values, "Solo", 3)
        assert not result.success
        assert result.spell is None
