"""
Tests for reach selection slots and eviction.
"""

from src.content_loader.reach_catalog import CHANGE_PRIMARY_FACTOR_DURATION, CHANGE_PRIMARY_FACTOR_POTENCY
from src.data_models import PrimaryFactor
from src.spellcasting.reach_selection import ReachSelection


class TestSlots:
    """Tests for single-occupancy slots."""

    def test_duration_evicts_previous_duration(self, reach_catalog):
        """Selecting a second duration replaces the first."""
        selection = ReachSelection()
        selection.select("Duration: 5 turns", reach_catalog)
        selection.select("Duration: One day", reach_catalog)

        assert selection.duration_choice == "Duration: One day"
        assert not selection.is_selected("Duration: 5 turns")

    def test_primary_factor_change_evicts(self, reach_catalog):
        """Only one primary factor change can be selected."""
        selection = ReachSelection()
        selection.select(CHANGE_PRIMARY_FACTOR_DURATION, reach_catalog)
        selection.select(CHANGE_PRIMARY_FACTOR_POTENCY, reach_catalog)

        assert selection.primary_factor_override == CHANGE_PRIMARY_FACTOR_POTENCY
        assert selection.override_factor == PrimaryFactor.POTENCY.value

    def test_other_reaches_accumulate(self, reach_catalog):
        """Ordinary reaches do not evict each other."""
        selection = ReachSelection.from_names(
            ["Range: Sensory", "Casting Time: Instant", "Scale: Large building, 5 subjects"],
            reach_catalog,
        )
        assert selection.other_reaches == [
            "Range: Sensory",
            "Casting Time: Instant",
            "Scale: Large building, 5 subjects",
        ]

    def test_other_reaches_not_duplicated(self, reach_catalog):
        """Selecting the same reach twice keeps one copy."""
        selection = ReachSelection.from_names(["Range: Sensory", "Range: Sensory"], reach_catalog)
        assert selection.names == ["Range: Sensory"]

    def test_slots_are_independent(self, reach_catalog):
        """A duration and a factor change can be held together."""
        selection = ReachSelection.from_names(
            [CHANGE_PRIMARY_FACTOR_DURATION, "Duration: 10 turns", "Range: Sensory"],
            reach_catalog,
        )
        assert set(selection.names) == {
            CHANGE_PRIMARY_FACTOR_DURATION,
            "Duration: 10 turns",
            "Range: Sensory",
        }

    def test_no_override_by_default(self):
        """An empty selection does not change the primary factor."""
        assert ReachSelection().override_factor is None


class TestToggle:
    """Tests for toggling and clearing."""

    def test_toggle_on_and_off(self, reach_catalog):
        """Toggle flips a reach and reports its new state."""
        selection = ReachSelection()
        assert selection.toggle("Duration: 3 turns", reach_catalog) is True
        assert selection.toggle("Duration: 3 turns", reach_catalog) is False
        assert selection.duration_choice is None

    def test_deselect_other_reach(self, reach_catalog):
        """Deselecting removes only that reach."""
        selection = ReachSelection.from_names(["Range: Sensory", "Casting Time: Instant"], reach_catalog)
        selection.deselect("Range: Sensory")
        assert selection.names == ["Casting Time: Instant"]

    def test_clear(self, reach_catalog):
        """Clear empties every slot."""
        selection = ReachSelection.from_names(
            [CHANGE_PRIMARY_FACTOR_DURATION, "Duration: 10 turns", "Range: Sensory"],
            reach_catalog,
        )
        selection.clear()
        assert selection.names == []
