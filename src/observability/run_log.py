"""
Run Log for the Grimoire.

Records every pool roll and every completed casting so a session can be
reviewed afterwards or saved alongside the character.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Callable
import json
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events that can be logged."""

    ROLL = "roll"  # Dice pool roll
    CAST = "cast"  # Completed casting
    CUSTOM = "custom"  # Anything else (character edits, spellbook changes)


@dataclass
class LogEvent:
    """Base class for all logged events."""

    # Subclasses set the correct value in __post_init__
    event_type: EventType = EventType.CUSTOM
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
            "context": self.context,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        return cls(
            event_type=EventType(data["event_type"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
        )

    def __str__(self) -> str:
        name = self.context.get("event_name", self.event_type.value)
        return f"[{self.sequence_number}] {name.upper()} {self.context}"


@dataclass
class RollEvent(LogEvent):
    """A d10 pool roll."""

    pool_size: int = 0
    rolls: list[int] = field(default_factory=list)  # Every face, explosions included
    explode_threshold: int = 10
    successes: int = 0
    chance_die: bool = False
    reason: str = ""

    def __post_init__(self):
        self.event_type = EventType.ROLL

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "pool_size": self.pool_size,
                "rolls": self.rolls,
                "explode_threshold": self.explode_threshold,
                "successes": self.successes,
                "chance_die": self.chance_die,
                "reason": self.reason,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RollEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
            pool_size=data.get("pool_size", 0),
            rolls=data.get("rolls", []),
            explode_threshold=data.get("explode_threshold", 10),
            successes=data.get("successes", 0),
            chance_die=data.get("chance_die", False),
            reason=data.get("reason", ""),
        )

    def __str__(self) -> str:
        pool = "chance die" if self.chance_die else f"{self.pool_size}d10"
        return (
            f"[{self.sequence_number}] ROLL {pool} ({self.explode_threshold}-again): "
            f"{self.rolls} = {self.successes} successes ({self.reason})"
        )


@dataclass
class CastEvent(LogEvent):
    """A spell that was cast."""

    spell_name: str = ""
    casting_type: str = ""
    dice_pool: int = 0
    potency: int = 0
    mana_cost: int = 0
    reaches: list[str] = field(default_factory=list)
    successes: int = 0

    def __post_init__(self):
        self.event_type = EventType.CAST

    def to_dict(self) -> dict[str, Any]:
        base = super().to_dict()
        base.update(
            {
                "spell_name": self.spell_name,
                "casting_type": self.casting_type,
                "dice_pool": self.dice_pool,
                "potency": self.potency,
                "mana_cost": self.mana_cost,
                "reaches": self.reaches,
                "successes": self.successes,
            }
        )
        return base

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CastEvent":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            context=data.get("context", {}),
            spell_name=data.get("spell_name", ""),
            casting_type=data.get("casting_type", ""),
            dice_pool=data.get("dice_pool", 0),
            potency=data.get("potency", 0),
            mana_cost=data.get("mana_cost", 0),
            reaches=data.get("reaches", []),
            successes=data.get("successes", 0),
        )

    def __str__(self) -> str:
        reaches = f" reaches: {', '.join(self.reaches)}" if self.reaches else ""
        return (
            f"[{self.sequence_number}] CAST {self.spell_name} ({self.casting_type}): "
            f"{self.dice_pool} dice, potency {self.potency}, {self.mana_cost} Mana, "
            f"{self.successes} successes{reaches}"
        )


_EVENT_CLASSES: dict[EventType, type[LogEvent]] = {
    EventType.ROLL: RollEvent,
    EventType.CAST: CastEvent,
}


class RunLog:
    """
    Central run log for rolls and castings.

    Singleton pattern - use get_run_log() to access.
    """

    _instance: Optional["RunLog"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._initialized = True
        self._events: list[LogEvent] = []
        self._sequence: int = 0
        self._seed: Optional[int] = None
        self._session_start: datetime = datetime.now()
        self._subscribers: list[Callable[[LogEvent], None]] = []

    def reset(self) -> None:
        """Reset the log for a new session."""
        self._events = []
        self._sequence = 0
        self._seed = None
        self._session_start = datetime.now()
        logger.debug("RunLog reset")

    def set_seed(self, seed: Optional[int]) -> None:
        """Record the RNG seed used for this session."""
        self._seed = seed
        logger.info(f"RunLog seed set: {seed}")

    def get_seed(self) -> Optional[int]:
        return self._seed

    def subscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Subscribe to receive events as they are logged."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[LogEvent], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _log_event(self, event: LogEvent) -> None:
        self._sequence += 1
        event.sequence_number = self._sequence
        self._events.append(event)

        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Subscriber error: {e}")

    def log_roll(
        self,
        pool_size: int,
        rolls: list[int],
        explode_threshold: int = 10,
        successes: int = 0,
        chance_die: bool = False,
        reason: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> RollEvent:
        """Log a pool roll."""
        event = RollEvent(
            pool_size=pool_size,
            rolls=rolls,
            explode_threshold=explode_threshold,
            successes=successes,
            chance_die=chance_die,
            reason=reason,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_cast(
        self,
        spell_name: str,
        casting_type: str,
        dice_pool: int,
        potency: int,
        mana_cost: int,
        reaches: Optional[list[str]] = None,
        successes: int = 0,
        context: Optional[dict[str, Any]] = None,
    ) -> CastEvent:
        """Log a completed casting."""
        event = CastEvent(
            spell_name=spell_name,
            casting_type=casting_type,
            dice_pool=dice_pool,
            potency=potency,
            mana_cost=mana_cost,
            reaches=list(reaches or []),
            successes=successes,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_custom(
        self,
        event_name: str,
        details: dict[str, Any],
    ) -> LogEvent:
        """Log a custom event."""
        event = LogEvent(
            event_type=EventType.CUSTOM,
            context={"event_name": event_name, **details},
        )
        self._log_event(event)
        return event

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Get logged events.

        Args:
            event_type: Filter by event type (None = all)
            since_sequence: Only events after this sequence number
        """
        events = [e for e in self._events if e.sequence_number > since_sequence]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    def get_rolls(self) -> list[RollEvent]:
        return [e for e in self._events if isinstance(e, RollEvent)]

    def get_casts(self) -> list[CastEvent]:
        return [e for e in self._events if isinstance(e, CastEvent)]

    def get_roll_stream(self) -> list[int]:
        """Every die face drawn this session, in order."""
        return [face for e in self.get_rolls() for face in e.rolls]

    def get_event_count(self) -> int:
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the run log."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "total_events": len(self._events),
            "rolls": len(self.get_rolls()),
            "casts": len(self.get_casts()),
            "last_sequence": self._sequence,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "sequence": self._sequence,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, filepath: str) -> None:
        """Save the log to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"RunLog saved to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "RunLog":
        """Replace the global log with one read from a file."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        log = get_run_log()
        log.reset()
        log._session_start = datetime.fromisoformat(data["session_start"])
        log._seed = data.get("seed")
        log._sequence = data.get("sequence", 0)

        for event_data in data.get("events", []):
            event_class = _EVENT_CLASSES.get(EventType(event_data["event_type"]), LogEvent)
            log._events.append(event_class.from_dict(event_data))

        logger.info(f"RunLog loaded from {filepath}: {len(log._events)} events")
        return log

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
    ) -> str:
        """Format the log as a human-readable string."""
        lines = [
            "=== Run Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Seed: {self._seed if self._seed is not None else 'not set'}",
            f"Total Events: {len(self._events)}",
            "",
        ]

        events = self._events
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if max_events:
            events = events[-max_events:]

        lines.extend(str(event) for event in events)
        return "\n".join(lines)


# Singleton access
_run_log: Optional[RunLog] = None


def get_run_log() -> RunLog:
    """Get the global RunLog instance."""
    global _run_log
    if _run_log is None:
        _run_log = RunLog()
    return _run_log


def reset_run_log() -> RunLog:
    """Reset and return the global RunLog instance."""
    log = get_run_log()
    log.reset()
    return log
