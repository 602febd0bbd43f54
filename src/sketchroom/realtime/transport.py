"""Transport protocol the event router delivers through."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class TransportProtocol(Protocol):
    """Best-effort delivery capability used by the event router.

    Implementations track which connections are subscribed to which room
    so that the router can fan out without knowing about sockets. Delivery
    failures are handled by the implementation and never raised to callers.
    """

    async def join_room(self, room_id: str, connection_id: str) -> None:
        """Subscribe a connection to a room's broadcasts.

        Args:
            room_id: The room identifier.
            connection_id: The connection to subscribe.
        """
        ...

    async def leave_room(self, room_id: str, connection_id: str) -> None:
        """Unsubscribe a connection from a room's broadcasts.

        Args:
            room_id: The room identifier.
            connection_id: The connection to unsubscribe.
        """
        ...

    async def send(self, connection_id: str, message: dict[str, Any]) -> bool:
        """Deliver a message to a single connection.

        Args:
            connection_id: The target connection.
            message: The outbound frame.

        Returns:
            True if the message was handed to the connection, False otherwise.
        """
        ...

    async def broadcast(
        self,
        room_id: str,
        message: dict[str, Any],
        exclude: str | None = None,
    ) -> None:
        """Deliver a message to every connection subscribed to a room.

        Args:
            room_id: The room to broadcast to.
            message: The outbound frame.
            exclude: Optional connection ID to skip, usually the sender.
        """
        ...
