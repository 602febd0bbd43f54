"""Core domain models for sketchroom sessions."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from sketchroom.core.types import OperationType

IMAGE_GEOMETRY_FIELDS = ("x", "y", "width", "height")


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


@dataclass(frozen=True)
class Participant:
    """A connected identity within a room.

    Name and color are supplied by the client on join and stay fixed for
    the lifetime of the connection.

    Attributes:
        id: Opaque connection identifier assigned by the transport.
        name: Display name.
        color: Display color, usually a CSS hex string.
    """

    id: str
    name: str
    color: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"id": self.id, "name": self.name, "color": self.color}


@dataclass
class CursorPosition:
    """Latest known pointer position of a participant."""

    connection_id: str
    name: str
    color: str
    x: Any
    y: Any

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "connectionId": self.connection_id,
            "name": self.name,
            "color": self.color,
            "x": self.x,
            "y": self.y,
        }


@dataclass
class Operation:
    """A single accepted drawing operation recorded in room history.

    Attributes:
        payload: The event payload as retained (geometry only for images).
        user_id: Connection ID of the author.
        user_name: Author display name at the time the operation was accepted.
        timestamp: Server-assigned acceptance time.
        type: Kind of operation.
    """

    payload: Any
    user_id: str
    user_name: str
    timestamp: datetime
    type: OperationType = OperationType.FREEHAND

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "type": self.type.value,
            "payload": self.payload,
            "userId": self.user_id,
            "username": self.user_name,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class Room:
    """State of one collaboration session.

    All mutations are expected to happen while holding ``lock`` so that
    members, cursors, history and snapshot change together.

    Attributes:
        room_id: Opaque room identifier chosen by clients.
        members: Joined participants keyed by connection ID, in join order.
        history: Append-only list of accepted operations.
        snapshot: Latest saved full-surface blob, or None.
        cursors: Latest cursor position keyed by connection ID.
        created_at: When the room was created.
    """

    room_id: str
    members: dict[str, Participant] = field(default_factory=dict)
    history: list[Operation] = field(default_factory=list)
    snapshot: Any | None = None
    cursors: dict[str, CursorPosition] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)
    _last_timestamp: datetime | None = field(default=None, init=False, repr=False, compare=False)

    @property
    def is_empty(self) -> bool:
        """Whether the room currently has no members."""
        return not self.members

    @property
    def participants(self) -> list[Participant]:
        """Current members in join order."""
        return list(self.members.values())

    def add_member(self, participant: Participant) -> None:
        """Register a participant as a member of the room."""
        self.members[participant.id] = participant

    def remove_member(self, connection_id: str) -> Participant | None:
        """Remove a member and its cursor together.

        Args:
            connection_id: The departing connection.

        Returns:
            The removed participant, or None if it was not a member.
        """
        self.cursors.pop(connection_id, None)
        return self.members.pop(connection_id, None)

    def next_timestamp(self, now: datetime) -> datetime:
        """Return an acceptance timestamp that never goes backwards in this room.

        Args:
            now: The current clock reading.

        Returns:
            ``now``, or the previous timestamp if the clock stepped back.
        """
        if self._last_timestamp is not None and now < self._last_timestamp:
            now = self._last_timestamp
        self._last_timestamp = now
        return now

    def record(
        self,
        operation_type: OperationType,
        payload: Any,
        author: Participant,
        now: datetime,
    ) -> Operation:
        """Append an operation to history.

        Image placements keep only their bounding geometry.

        Args:
            operation_type: Kind of operation.
            payload: The payload as sent by the client.
            author: The authoring participant.
            now: The current clock reading.

        Returns:
            The recorded operation.
        """
        if operation_type is OperationType.IMAGE:
            payload = image_geometry(payload)
        operation = Operation(
            payload=payload,
            user_id=author.id,
            user_name=author.name,
            timestamp=self.next_timestamp(now),
            type=operation_type,
        )
        self.history.append(operation)
        return operation

    def clear(self) -> None:
        """Truncate history and drop the snapshot."""
        self.history.clear()
        self.snapshot = None

    def save_snapshot(self, snapshot: Any) -> None:
        """Replace the stored snapshot."""
        self.snapshot = snapshot

    def update_cursor(self, author: Participant, x: Any, y: Any) -> CursorPosition:
        """Store the latest cursor position of a member.

        Args:
            author: The participant moving the cursor.
            x: X coordinate.
            y: Y coordinate.

        Returns:
            The stored cursor position.
        """
        cursor = CursorPosition(
            connection_id=author.id,
            name=author.name,
            color=author.color,
            x=x,
            y=y,
        )
        self.cursors[author.id] = cursor
        return cursor

    def to_summary(self) -> dict[str, Any]:
        """Introspection view of the room."""
        return {
            "room_id": self.room_id,
            "members": [p.to_dict() for p in self.participants],
            "history_length": len(self.history),
            "has_snapshot": self.snapshot is not None,
            "cursor_count": len(self.cursors),
            "created_at": self.created_at.isoformat(),
        }


def image_geometry(payload: Any) -> dict[str, Any]:
    """Extract the bounding geometry from an image placement payload.

    Args:
        payload: The ``draw-image`` payload, normally carrying pixel data.

    Returns:
        Only the x, y, width and height fields that are present.
    """
    if not isinstance(payload, dict):
        return {}
    return {key: payload[key] for key in IMAGE_GEOMETRY_FIELDS if key in payload}
