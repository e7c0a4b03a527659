"""
Spell Registry for the Grimoire.

Holds the loaded spell catalog and answers the lookups the spellbook needs:
by name, by arcanum, spells a character can cast, and free-text search.

Usage:
    registry = get_spell_registry()
    registry.load_from_directory()

    aegis = registry.get_by_name("Unseen Aegis")
    castable = registry.get_castable(character.arcana_values, "death")
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

from src.data_models import SpellDefinition


logger = logging.getLogger(__name__)


# Singleton instance
_spell_registry: Optional["SpellRegistry"] = None


@dataclass
class SpellLookupResult:
    """Result of a spell lookup operation."""

    found: bool
    spell: Optional[SpellDefinition] = None
    error: str = ""


@dataclass
class SpellListResult:
    """Result of a spell list operation."""

    spells: list[SpellDefinition] = field(default_factory=list)
    count: int = 0


def can_cast(spell: SpellDefinition, arcana_values: Mapping[str, int]) -> bool:
    """A character can cast a catalog spell once their rating reaches its level."""
    return arcana_values.get(spell.arcanum_key, 0) >= spell.max_level


class SpellRegistry:
    """
    Catalog of every known spell, indexed by name and arcanum.

    Names are unique case-insensitively; registering a duplicate name
    replaces the earlier entry.
    """

    def __init__(self):
        self._by_name: dict[str, SpellDefinition] = {}  # lowercase name -> spell
        self._by_arcanum: dict[str, list[SpellDefinition]] = {}
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def spell_count(self) -> int:
        return len(self._by_name)

    def load_from_directory(
        self,
        spell_directory: Optional[Path] = None,
    ) -> int:
        """
        Load all spells from a directory.

        Args:
            spell_directory: Path to spell JSON files.
                Defaults to data/content/spells.

        Returns:
            Number of spells in the registry afterwards
        """
        from src.content_loader.spell_loader import load_all_spells

        result = load_all_spells(spell_directory)

        for error in result.errors:
            logger.error(f"Spell loading error: {error}")
        for file_result in result.file_results:
            for error in file_result.errors:
                logger.warning(f"{file_result.file_path.name}: {error}")

        for spell in result.all_spells:
            self.register(spell)

        self._loaded = True
        logger.info(f"Loaded {self.spell_count} spells into registry")
        return self.spell_count

    def register(self, spell: SpellDefinition) -> None:
        """Register a spell, replacing any earlier spell of the same name."""
        key = spell.name.lower()
        previous = self._by_name.get(key)
        if previous is not None:
            logger.debug(f"Replacing catalog spell {previous.name}")
            self._by_arcanum[previous.arcanum_key].remove(previous)

        self._by_name[key] = spell
        self._by_arcanum.setdefault(spell.arcanum_key, []).append(spell)

    def get_by_name(self, name: str) -> SpellLookupResult:
        """Look up a spell by name (case-insensitive)."""
        spell = self._by_name.get(name.strip().lower())
        if spell:
            return SpellLookupResult(found=True, spell=spell)
        return SpellLookupResult(found=False, error=f"Spell not found: {name}")

    def get_by_arcanum(self, arcanum: str) -> SpellListResult:
        """All spells of one arcanum, lowest level first."""
        spells = sorted(
            self._by_arcanum.get(arcanum.lower(), []),
            key=lambda s: (s.max_level, s.name),
        )
        return SpellListResult(spells=spells, count=len(spells))

    def get_castable(
        self,
        arcana_values: Mapping[str, int],
        arcanum: Optional[str] = None,
    ) -> SpellListResult:
        """
        Spells the character's ratings allow them to cast.

        Args:
            arcana_values: The character's domain ratings
            arcanum: Restrict to one arcanum (None = all)
        """
        if arcanum is not None:
            candidates = self.get_by_arcanum(arcanum).spells
        else:
            candidates = sorted(self._by_name.values(), key=lambda s: (s.arcanum_key, s.max_level, s.name))
        spells = [s for s in candidates if can_cast(s, arcana_values)]
        return SpellListResult(spells=spells, count=len(spells))

    def search(
        self,
        term: str,
        arcana_values: Optional[Mapping[str, int]] = None,
    ) -> SpellListResult:
        """
        Find spells whose name or description contains the term.

        Args:
            term: Case-insensitive substring; blank terms match nothing
            arcana_values: If given, only spells the character can cast
        """
        needle = term.strip().lower()
        if not needle:
            return SpellListResult()

        results = []
        for spell in self._by_name.values():
            if needle not in spell.name.lower() and needle not in spell.description.lower():
                continue
            if arcana_values is not None and not can_cast(spell, arcana_values):
                continue
            results.append(spell)

        return SpellListResult(spells=results, count=len(results))

    def get_all(self) -> list[SpellDefinition]:
        return list(self._by_name.values())

    def clear(self) -> None:
        """Clear all registered spells."""
        self._by_name.clear()
        self._by_arcanum.clear()
        self._loaded = False


def get_spell_registry() -> SpellRegistry:
    """Get the singleton SpellRegistry instance."""
    global _spell_registry
    if _spell_registry is None:
        _spell_registry = SpellRegistry()
    return _spell_registry


def reset_spell_registry() -> None:
    """Reset the singleton SpellRegistry instance."""
    global _spell_registry
    if _spell_registry:
        _spell_registry.clear()
    _spell_registry = None
