"""Room lifecycle management for sketchroom."""

from __future__ import annotations

from sketchroom.sessions.registry import SessionRegistry
from sketchroom.sessions.scheduler import LoopScheduler, Scheduler, TimerHandle

__all__ = [
    "LoopScheduler",
    "Scheduler",
    "SessionRegistry",
    "TimerHandle",
]
