"""
Reach selection state.

A selection has two single-occupancy slots, one for a duration reach and one
for a primary factor change, plus an ordered set of every other reach.
Selecting into an occupied slot evicts the previous occupant.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from src.content_loader.reach_catalog import (
    PRIMARY_FACTOR_CHANGES,
    ReachCatalog,
    ReachKind,
    get_reach_catalog,
)


logger = logging.getLogger(__name__)


@dataclass
class ReachSelection:
    """The reaches chosen for one casting."""

    duration_choice: Optional[str] = None
    primary_factor_override: Optional[str] = None  # Name of the change reach
    other_reaches: list[str] = field(default_factory=list)

    @classmethod
    def from_names(
        cls,
        names: Iterable[str],
        catalog: Optional[ReachCatalog] = None,
    ) -> "ReachSelection":
        """Build a selection by selecting each name in turn (later ones evict earlier)."""
        selection = cls()
        for name in names:
            selection.select(name, catalog)
        return selection

    @property
    def names(self) -> list[str]:
        """Every selected reach name."""
        selected = list(self.other_reaches)
        if self.duration_choice:
            selected.append(self.duration_choice)
        if self.primary_factor_override:
            selected.append(self.primary_factor_override)
        return selected

    @property
    def override_factor(self) -> Optional[str]:
        """The primary factor the selection switches to, if any."""
        if self.primary_factor_override is None:
            return None
        return PRIMARY_FACTOR_CHANGES.get(self.primary_factor_override)

    def is_selected(self, name: str) -> bool:
        return name in self.names

    def select(self, name: str, catalog: Optional[ReachCatalog] = None) -> None:
        """Add a reach, evicting whatever held its slot."""
        if catalog is None:
            catalog = get_reach_catalog()
        kind = catalog.kind_of(name)

        if kind == ReachKind.DURATION:
            if self.duration_choice and self.duration_choice != name:
                logger.debug(f"{name} replaces {self.duration_choice}")
            self.duration_choice = name
        elif kind == ReachKind.PRIMARY_FACTOR_CHANGE:
            if self.primary_factor_override and self.primary_factor_override != name:
                logger.debug(f"{name} replaces {self.primary_factor_override}")
            self.primary_factor_override = name
        elif name not in self.other_reaches:
            self.other_reaches.append(name)

    def deselect(self, name: str) -> None:
        if self.duration_choice == name:
            self.duration_choice = None
        elif self.primary_factor_override == name:
            self.primary_factor_override = None
        elif name in self.other_reaches:
            self.other_reaches.remove(name)

    def toggle(self, name: str, catalog: Optional[ReachCatalog] = None) -> bool:
        """
        Flip a reach on or off.

        Returns:
            True if the reach is selected after the call
        """
        if self.is_selected(name):
            self.deselect(name)
            return False
        self.select(name, catalog)
        return True

    def clear(self) -> None:
        self.duration_choice = None
        self.primary_factor_override = None
        self.other_reaches = []
