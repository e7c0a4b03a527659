"""
Spell Data Loader for the Grimoire.

Loads the spell catalog from JSON files in the data/content/spells directory
and normalizes each raw record into a SpellDefinition.

JSON File Format (either a bare list of records, or):
{
    "_metadata": {
        "source_file": "Mage: The Awakening 2e",
        "content_type": "spells",
        "item_count": 2
    },
    "items": [
        {
            "name": "Unseen Aegis",
            "path": "Death",
            "tier": "Initiate",
            "primaryFactor": "Duration",
            "practice": "Compelling",
            "withstand": null,
            "skills": ["Athletics", "Occult"],
            "short_description": "...",
            "description": "...",
            "reaches": [{"level": 1, "effect": "Affect another"}],
            "source": "Mage: The Awakening 2e p. 128"
        }
    ]
}

Normalization:
- tier maps to a level via TIER_MAPPING (unknown tiers become level 1)
- path is lowercased into the arcanum
- each reach {effect, level} becomes a special reach named "<spell>: <effect>"
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from src.data_models import (
    TIER_MAPPING,
    CastingType,
    PrimaryFactor,
    SpecialReach,
    SpellDefinition,
    coerce_int,
)


logger = logging.getLogger(__name__)


DEFAULT_SPELL_DIRECTORY = Path(__file__).parent.parent.parent / "data" / "content" / "spells"


# =============================================================================
# RESULT DATACLASSES
# =============================================================================


@dataclass
class SpellFileMetadata:
    """Metadata from a spell JSON file."""

    source_file: str = ""
    content_type: str = "spells"
    item_count: int = 0
    note: str = ""


@dataclass
class SpellFileLoadResult:
    """Result of loading a single spell JSON file."""

    file_path: Path
    success: bool
    metadata: Optional[SpellFileMetadata] = None
    spells_loaded: int = 0
    spells_failed: int = 0
    errors: list[str] = field(default_factory=list)
    loaded_spells: list[SpellDefinition] = field(default_factory=list)


@dataclass
class SpellDirectoryLoadResult:
    """Result of loading all spell files from a directory."""

    directory: Path
    files_processed: int = 0
    files_successful: int = 0
    files_failed: int = 0
    total_spells_loaded: int = 0
    total_spells_failed: int = 0
    file_results: list[SpellFileLoadResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    all_spells: list[SpellDefinition] = field(default_factory=list)


# =============================================================================
# RECORD NORMALIZATION
# =============================================================================


def level_for_tier(tier: Any) -> int:
    """Spell level for a tier label; unknown or missing tiers are level 1."""
    if isinstance(tier, str):
        return TIER_MAPPING.get(tier.strip(), 1)
    return 1


def parse_spell_record(record: dict[str, Any]) -> SpellDefinition:
    """
    Normalize one raw catalog record.

    Raises:
        ValueError: If the record has no name or no path
    """
    name = record.get("name")
    path = record.get("path")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("spell record has no name")
    if not isinstance(path, str) or not path.strip():
        raise ValueError(f"spell '{name}' has no path")
    name = name.strip()

    special_reaches = []
    for reach in record.get("reaches") or []:
        if not isinstance(reach, dict) or not reach.get("effect"):
            logger.debug(f"Skipping malformed reach on {name}: {reach}")
            continue
        effect = str(reach["effect"])
        special_reaches.append(SpecialReach(
            name=f"{name}: {effect}",
            cost=coerce_int(reach.get("level"), 1),
            description=effect,
        ))

    skills = record.get("skills") or []
    return SpellDefinition(
        name=name,
        arcanum=path.strip().lower(),
        level=level_for_tier(record.get("tier")),
        casting_type=CastingType.IMPROVISED,
        primary_factor=str(record.get("primaryFactor") or PrimaryFactor.POTENCY.value),
        description=str(record.get("description") or ""),
        short_description=str(record.get("short_description") or ""),
        practice=str(record.get("practice") or ""),
        withstand=record.get("withstand") or None,
        skills=[s for s in skills if isinstance(s, str)],
        special_reaches=special_reaches,
        source=str(record.get("source") or ""),
    )


# =============================================================================
# SPELL DATA LOADER
# =============================================================================


class SpellDataLoader:
    """
    Loads spell catalog files.

    Malformed records are counted and reported, never fatal: one bad entry
    does not stop the rest of the file from loading.
    """

    def load_records(
        self,
        records: list[Any],
        result: Optional[SpellFileLoadResult] = None,
    ) -> SpellFileLoadResult:
        """Normalize a list of raw records into a load result."""
        if result is None:
            result = SpellFileLoadResult(file_path=Path("<memory>"), success=False)

        for record in records:
            if not isinstance(record, dict):
                result.errors.append(f"Spell record is not an object: {record!r}")
                result.spells_failed += 1
                continue
            try:
                spell = parse_spell_record(record)
            except ValueError as e:
                result.errors.append(f"Error parsing spell '{record.get('name', 'unknown')}': {e}")
                result.spells_failed += 1
                continue
            result.loaded_spells.append(spell)
            result.spells_loaded += 1

        result.success = result.spells_failed == 0
        return result

    def load_file(self, file_path: Path) -> SpellFileLoadResult:
        """
        Load spells from a single JSON file.

        Args:
            file_path: Path to the JSON file

        Returns:
            SpellFileLoadResult with loaded spells and any errors
        """
        result = SpellFileLoadResult(file_path=file_path, success=False)

        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            result.errors.append(f"JSON parse error: {e}")
            return result
        except FileNotFoundError:
            result.errors.append(f"File not found: {file_path}")
            return result
        except OSError as e:
            result.errors.append(f"Error reading file: {e}")
            return result

        if isinstance(data, list):
            items = data
            result.metadata = SpellFileMetadata(item_count=len(items))
        elif isinstance(data, dict):
            metadata_dict = data.get("_metadata", {})
            result.metadata = SpellFileMetadata(
                source_file=metadata_dict.get("source_file", ""),
                content_type=metadata_dict.get("content_type", "spells"),
                item_count=metadata_dict.get("item_count", 0),
                note=metadata_dict.get("note", ""),
            )
            items = data.get("items", [])
        else:
            result.errors.append(f"Unexpected top-level JSON type: {type(data).__name__}")
            return result

        self.load_records(items, result)
        if result.errors:
            logger.warning(f"{file_path.name}: {len(result.errors)} spell records failed")
        return result

    def load_directory(self, directory: Path) -> SpellDirectoryLoadResult:
        """
        Load all spell JSON files from a directory.

        Args:
            directory: Path to the directory containing spell JSON files

        Returns:
            SpellDirectoryLoadResult with all loaded spells
        """
        result = SpellDirectoryLoadResult(directory=directory)

        if not directory.exists():
            result.errors.append(f"Directory not found: {directory}")
            return result

        if not directory.is_dir():
            result.errors.append(f"Path is not a directory: {directory}")
            return result

        json_files = sorted(directory.glob("*.json"))
        result.files_processed = len(json_files)

        for json_file in json_files:
            file_result = self.load_file(json_file)
            result.file_results.append(file_result)

            if file_result.success:
                result.files_successful += 1
            else:
                result.files_failed += 1

            result.total_spells_loaded += file_result.spells_loaded
            result.total_spells_failed += file_result.spells_failed
            result.all_spells.extend(file_result.loaded_spells)

        logger.info(
            f"Loaded {result.total_spells_loaded} spells from {result.files_processed} files "
            f"in {directory}"
        )
        return result


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def load_all_spells(
    spell_directory: Optional[Path] = None,
) -> SpellDirectoryLoadResult:
    """
    Load all spells from the default directory.

    Args:
        spell_directory: Optional custom directory path.
            Defaults to data/content/spells relative to project root.
    """
    if spell_directory is None:
        spell_directory = DEFAULT_SPELL_DIRECTORY

    loader = SpellDataLoader()
    return loader.load_directory(Path(spell_directory))
