"""Character state persistence."""

from src.game_state.session_manager import (
    STORAGE_KEY,
    CharacterStore,
    SerializableCharacter,
)

__all__ = [
    "STORAGE_KEY",
    "CharacterStore",
    "SerializableCharacter",
]
