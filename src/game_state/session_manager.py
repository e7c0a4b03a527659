"""
Session Manager for the Grimoire.

Saves and loads the character state as a single JSON blob under a fixed
storage key. The blob shape is:

    {
        "gnosis": int,
        "arcanaValues": {domain: int},
        "userSpells": [spell, ...],
        "yantras": int,
        "majorArcana": [domain, ...]
    }

Loading is tolerant: each field is validated on its own, and a missing or
malformed field falls back to its default without affecting the others.
A save or load that fails on I/O leaves the in-memory state untouched.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
import json
import logging

from src.data_models import (
    ARCANA_NAMES,
    MAX_MAJOR_ARCANA,
    MIN_GNOSIS,
    CharacterState,
    SpellDefinition,
    default_arcana_values,
)

logger = logging.getLogger(__name__)


STORAGE_KEY = "mage-spell-caster-data"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# =============================================================================
# SERIALIZABLE STATE
# =============================================================================


@dataclass
class SerializableCharacter:
    """
    Persisted form of the character state.

    Field names follow the stored blob, not the Python attribute names.
    """
    gnosis: int = MIN_GNOSIS
    arcanaValues: dict[str, int] = field(default_factory=default_arcana_values)
    userSpells: list[dict[str, Any]] = field(default_factory=list)
    yantras: int = 0
    majorArcana: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "gnosis": self.gnosis,
            "arcanaValues": dict(self.arcanaValues),
            "userSpells": list(self.userSpells),
            "yantras": self.yantras,
            "majorArcana": list(self.majorArcana),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "SerializableCharacter":
        """Validate each field independently, defaulting any that are malformed."""
        result = cls()
        if not isinstance(data, dict):
            logger.warning(f"Character blob is not an object ({type(data).__name__}), using defaults")
            return result

        gnosis = data.get("gnosis")
        if _is_int(gnosis):
            result.gnosis = gnosis
        elif gnosis is not None:
            logger.warning(f"Ignoring malformed gnosis: {gnosis!r}")

        arcana = data.get("arcanaValues")
        if isinstance(arcana, dict):
            for name, value in arcana.items():
                if name in ARCANA_NAMES and _is_int(value):
                    result.arcanaValues[name] = value
        elif arcana is not None:
            logger.warning("Ignoring malformed arcanaValues")

        spells = data.get("userSpells")
        if isinstance(spells, list):
            result.userSpells = [s for s in spells if isinstance(s, dict)]
        elif spells is not None:
            logger.warning("Ignoring malformed userSpells")

        yantras = data.get("yantras")
        if _is_int(yantras):
            result.yantras = yantras
        elif yantras is not None:
            logger.warning(f"Ignoring malformed yantras: {yantras!r}")

        major = data.get("majorArcana")
        if isinstance(major, list):
            result.majorArcana = [
                m for m in major if isinstance(m, str) and m in ARCANA_NAMES
            ][:MAX_MAJOR_ARCANA]
        elif major is not None:
            logger.warning("Ignoring malformed majorArcana")

        return result

    @classmethod
    def from_character_state(cls, char: CharacterState) -> "SerializableCharacter":
        return cls(
            gnosis=char.gnosis,
            arcanaValues=dict(char.arcana_values),
            userSpells=[s.to_dict() for s in char.user_spells],
            yantras=char.yantras,
            majorArcana=list(char.major_arcana),
        )

    def to_character_state(self) -> CharacterState:
        """Build a CharacterState, dropping spell records that cannot be read."""
        char = CharacterState()
        char.set_gnosis(self.gnosis)
        for name, value in self.arcanaValues.items():
            char.set_arcanum(name, value)
        char.set_yantras(self.yantras)
        char.major_arcana = list(dict.fromkeys(self.majorArcana))

        for record in self.userSpells:
            try:
                char.add_spell(SpellDefinition.from_dict(record))
            except ValueError as e:
                logger.warning(f"Skipping unreadable saved spell: {e}")
        return char


# =============================================================================
# CHARACTER STORE
# =============================================================================


class CharacterStore:
    """
    Reads and writes the character blob.

    The blob lives at <save_directory>/<storage_key>.json.
    """

    def __init__(
        self,
        save_directory: Optional[Path] = None,
        storage_key: str = STORAGE_KEY,
    ):
        """
        Initialize the store.

        Args:
            save_directory: Directory for the save file. Defaults to ./saves/
            storage_key: Name of the stored blob
        """
        self.save_directory = Path(save_directory or Path("./saves"))
        self.storage_key = storage_key

    @property
    def path(self) -> Path:
        return self.save_directory / f"{self.storage_key}.json"

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, character: CharacterState) -> bool:
        """
        Write the character blob.

        Returns:
            True if the blob was written, False on an I/O failure
        """
        data = SerializableCharacter.from_character_state(character).to_dict()
        try:
            self.save_directory.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            logger.error(f"Error saving character to {self.path}: {e}")
            return False

        logger.debug(f"Saved character to: {self.path}")
        return True

    def load(self) -> Optional[CharacterState]:
        """
        Read the character blob.

        Returns:
            The stored character, or None if nothing readable is stored
        """
        if not self.path.exists():
            logger.info(f"No saved character at {self.path}")
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error loading character from {self.path}: {e}")
            return None

        character = SerializableCharacter.from_dict(data).to_character_state()
        logger.info(
            f"Loaded character: gnosis {character.gnosis}, "
            f"{len(character.user_spells)} spells"
        )
        return character

    def load_or_default(self) -> CharacterState:
        """The stored character, or a fresh one with default values."""
        return self.load() or CharacterState()

    def clear(self) -> bool:
        """Delete the stored blob. Returns True if a file was removed."""
        if self.path.exists():
            self.path.unlink()
            logger.info(f"Deleted save file: {self.path}")
            return True
        return False
