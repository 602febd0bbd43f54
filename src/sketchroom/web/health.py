"""Health and introspection endpoints for sketchroom.

Provides a liveness probe reporting aggregate counts and a per-room view
used for debugging live sessions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, ClassVar

from litestar import Controller, get

from sketchroom.exceptions import RoomNotFoundError
from sketchroom.realtime.manager import ConnectionManager
from sketchroom.sessions.registry import SessionRegistry


@dataclass
class HealthResponse:
    """Health check response."""

    rooms: int
    participants: int
    connections: int
    status: str = "ok"
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": self.status,
            "rooms": self.rooms,
            "participants": self.participants,
            "connections": self.connections,
            "timestamp": self.timestamp,
        }


class HealthController(Controller):
    """Liveness and room introspection endpoints."""

    path = ""
    tags: ClassVar[list[str]] = ["Health"]

    @get("/health")
    async def health(self, registry: SessionRegistry, connection_manager: ConnectionManager) -> dict[str, Any]:
        """Liveness probe endpoint.

        Returns:
            Status with the number of rooms, joined participants and live
            connections.
        """
        response = HealthResponse(
            rooms=registry.room_count,
            participants=registry.participant_count,
            connections=connection_manager.total_connections,
        )
        return response.to_dict()

    @get("/rooms/{room_id:str}")
    async def room_detail(self, room_id: str, registry: SessionRegistry) -> dict[str, Any]:
        """Describe a single room.

        Args:
            room_id: The room identifier.

        Returns:
            Member list, history length and snapshot presence.

        Raises:
            RoomNotFoundError: If the room is not registered.
        """
        room = registry.get(room_id)
        if room is None:
            raise RoomNotFoundError(room_id)
        summary = room.to_summary()
        summary["pending_deletion"] = registry.is_pending_deletion(room_id)
        return summary
