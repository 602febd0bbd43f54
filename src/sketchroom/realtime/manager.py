"""Connection manager for WebSocket sessions."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from litestar import WebSocket

logger = structlog.get_logger(__name__)


@dataclass
class Connection:
    """A live WebSocket connection known to the manager."""

    connection_id: str
    websocket: WebSocket
    connected_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class ConnectionManager:
    """WebSocket-backed transport for the event router.

    Keeps every accepted socket by connection ID plus the set of
    connections subscribed to each room, and provides single-connection
    sends and per-room broadcasts. A failed send to one connection is
    logged and never affects delivery to the others.
    """

    def __init__(self) -> None:
        """Initialize the connection manager."""
        self._connections: dict[str, Connection] = {}
        self._rooms: dict[str, set[str]] = {}
        self._lock = asyncio.Lock()

    async def register(self, connection_id: str, websocket: WebSocket) -> Connection:
        """Track a newly accepted WebSocket.

        Args:
            connection_id: The identifier assigned to the socket.
            websocket: The accepted WebSocket.

        Returns:
            The Connection instance.
        """
        async with self._lock:
            connection = Connection(connection_id=connection_id, websocket=websocket)
            self._connections[connection_id] = connection
            logger.debug(
                "Connection registered",
                connection_id=connection_id,
                total_connections=len(self._connections),
            )
            return connection

    async def unregister(self, connection_id: str) -> None:
        """Forget a connection and drop it from every room subscription."""
        async with self._lock:
            self._connections.pop(connection_id, None)
            for room_id in list(self._rooms):
                members = self._rooms[room_id]
                members.discard(connection_id)
                if not members:
                    del self._rooms[room_id]
            logger.debug(
                "Connection unregistered",
                connection_id=connection_id,
                total_connections=len(self._connections),
            )

    async def join_room(self, room_id: str, connection_id: str) -> None:
        """Subscribe a connection to a room's broadcasts."""
        async with self._lock:
            self._rooms.setdefault(room_id, set()).add(connection_id)

    async def leave_room(self, room_id: str, connection_id: str) -> None:
        """Unsubscribe a connection from a room's broadcasts."""
        async with self._lock:
            members = self._rooms.get(room_id)
            if members is None:
                return
            members.discard(connection_id)
            if not members:
                del self._rooms[room_id]

    async def get_room_connections(self, room_id: str) -> list[Connection]:
        """Get all live connections subscribed to a room.

        Args:
            room_id: The room to query.

        Returns:
            List of connections.
        """
        async with self._lock:
            return [
                self._connections[connection_id]
                for connection_id in self._rooms.get(room_id, ())
                if connection_id in self._connections
            ]

    async def send(self, connection_id: str, message: dict[str, Any]) -> bool:
        """Send a message to a specific connection.

        Args:
            connection_id: The target connection.
            message: The message to send.

        Returns:
            True if sent successfully, False otherwise.
        """
        connection = self._connections.get(connection_id)
        if not connection:
            return False

        try:
            await connection.websocket.send_json(message)
            return True
        except Exception:
            logger.exception("Failed to send message to connection", connection_id=connection_id)
            return False

    async def broadcast(
        self,
        room_id: str,
        message: dict[str, Any],
        exclude: str | None = None,
    ) -> None:
        """Broadcast a message to all connections in a room.

        Args:
            room_id: The room to broadcast to.
            message: The message to send.
            exclude: Optional connection ID to exclude from broadcast.
        """
        connections = await self.get_room_connections(room_id)
        json_message = json.dumps(message)

        tasks = [
            self._send_text(connection, json_message, room_id)
            for connection in connections
            if connection.connection_id != exclude
        ]

        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def _send_text(self, connection: Connection, message: str, room_id: str) -> None:
        try:
            await connection.websocket.send_text(message)
        except Exception:
            logger.exception(
                "Failed to send message",
                connection_id=connection.connection_id,
                room_id=room_id,
            )

    async def close_all(self, code: int = 1001, reason: str = "Server shutting down") -> None:
        """Close every live connection.

        Args:
            code: WebSocket close code.
            reason: Close reason sent to clients.
        """
        async with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()
            self._rooms.clear()

        for connection in connections:
            try:
                await connection.websocket.close(code=code, reason=reason)
            except Exception:  # noqa: BLE001
                logger.warning("Failed to close connection", connection_id=connection.connection_id)

        if connections:
            logger.info("Closed all connections", count=len(connections))

    @property
    def total_connections(self) -> int:
        """Get the number of live connections."""
        return len(self._connections)

    @property
    def active_rooms(self) -> int:
        """Get the number of rooms with at least one subscribed connection."""
        return len(self._rooms)
