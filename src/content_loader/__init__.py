"""Content loading: the spell catalog and the shared reach catalog."""

from src.content_loader.reach_catalog import (
    DEFAULT_REACHES,
    DurationScale,
    ReachCatalog,
    ReachDefinition,
    ReachKind,
    get_reach_catalog,
    reset_reach_catalog,
)
from src.content_loader.spell_loader import (
    SpellDataLoader,
    SpellFileLoadResult,
    SpellDirectoryLoadResult,
    SpellFileMetadata,
    load_all_spells,
    parse_spell_record,
)
from src.content_loader.spell_registry import (
    SpellRegistry,
    SpellLookupResult,
    SpellListResult,
    get_spell_registry,
    reset_spell_registry,
)

__all__ = [
    # Reach catalog
    "DEFAULT_REACHES",
    "DurationScale",
    "ReachCatalog",
    "ReachDefinition",
    "ReachKind",
    "get_reach_catalog",
    "reset_reach_catalog",
    # Spell loader
    "SpellDataLoader",
    "SpellFileLoadResult",
    "SpellDirectoryLoadResult",
    "SpellFileMetadata",
    "load_all_spells",
    "parse_spell_record",
    # Spell registry
    "SpellRegistry",
    "SpellLookupResult",
    "SpellListResult",
    "get_spell_registry",
    "reset_spell_registry",
]
