"""Core type definitions for sketchroom."""

from __future__ import annotations

from enum import StrEnum


class OperationType(StrEnum):
    """Kinds of drawing operations retained in a room's history."""

    FREEHAND = "freehand"
    TEXT = "text"
    IMAGE = "image"


class ConnectionStatus(StrEnum):
    """Lifecycle states of a single client connection."""

    UNJOINED = "unjoined"
    JOINED = "joined"
    CLOSED = "closed"
