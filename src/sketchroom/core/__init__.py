"""Core domain models and types for sketchroom."""

from __future__ import annotations

from sketchroom.core.models import CursorPosition, Operation, Participant, Room, image_geometry
from sketchroom.core.settings import RoomSettings
from sketchroom.core.types import ConnectionStatus, OperationType

__all__ = [
    "ConnectionStatus",
    "CursorPosition",
    "Operation",
    "OperationType",
    "Participant",
    "Room",
    "RoomSettings",
    "image_geometry",
]
