"""Custom exceptions for sketchroom."""

from __future__ import annotations


class SketchroomError(Exception):
    """Base exception class for all sketchroom errors."""


class RoomNotFoundError(SketchroomError):
    """Raised when a room with the specified ID is not registered.

    Attributes:
        room_id: The identifier of the room that was not found.
    """

    def __init__(self, room_id: str) -> None:
        """Initialize the exception with the room ID.

        Args:
            room_id: The identifier of the room that was not found.
        """
        self.room_id = room_id
        super().__init__(f"Room {room_id!r} not found")


class InvalidEventError(SketchroomError):
    """Raised when a client event payload does not have the expected shape.

    Attributes:
        event: Name of the rejected event.
        field: The offending field, if a single field is to blame.
    """

    def __init__(self, event: str, message: str, field: str | None = None) -> None:
        """Initialize the exception.

        Args:
            event: Name of the rejected event.
            message: Description of why the payload is invalid.
            field: The offending field, if known.
        """
        self.event = event
        self.field = field
        super().__init__(message)
