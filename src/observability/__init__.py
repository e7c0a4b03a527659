"""
Observability for the Grimoire.

Keeps a run log of every pool roll and casting made in a session.
"""

from src.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    RollEvent,
    CastEvent,
    get_run_log,
    reset_run_log,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "RollEvent",
    "CastEvent",
    "get_run_log",
    "reset_run_log",
]
