"""WebSocket handler for real-time room collaboration."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from litestar import Router, WebSocket, websocket

from sketchroom.exceptions import InvalidEventError
from sketchroom.realtime.messages import decode_frame
from sketchroom.realtime.router import ConnectionState

if TYPE_CHECKING:
    from sketchroom.realtime.manager import ConnectionManager
    from sketchroom.realtime.router import EventRouter

logger = structlog.get_logger(__name__)


class RoomWebSocketHandler:
    """Handler for room WebSocket connections.

    Accepts sockets, assigns each an opaque connection ID, decodes frames
    and feeds them to the event router one at a time. The disconnect is
    always reported to the router, however the receive loop ends.
    """

    def __init__(self, connection_manager: ConnectionManager, event_router: EventRouter) -> None:
        """Initialize the WebSocket handler.

        Args:
            connection_manager: The connection manager instance.
            event_router: The event router instance.
        """
        self._manager = connection_manager
        self._router = event_router

    async def handle_connection(self, socket: WebSocket) -> None:
        """Handle a WebSocket connection until it closes.

        Args:
            socket: The WebSocket connection.
        """
        await socket.accept()

        state = ConnectionState(connection_id=uuid4().hex)
        await self._manager.register(state.connection_id, socket)

        logger.debug("WebSocket connection accepted", connection_id=state.connection_id)

        try:
            await self._receive_loop(socket, state)
        except Exception:
            logger.exception("WebSocket error", connection_id=state.connection_id)
        finally:
            await self._router.disconnect(state)
            await self._manager.unregister(state.connection_id)
            logger.debug("WebSocket connection closed", connection_id=state.connection_id)

    async def _receive_loop(self, socket: WebSocket, state: ConnectionState) -> None:
        """Main receive loop for WebSocket messages.

        Args:
            socket: The WebSocket connection.
            state: The connection's state.
        """
        async for message in socket.iter_data():
            try:
                frame = decode_frame(message)
            except InvalidEventError as e:
                details = {"field": e.field} if e.field else None
                await self._router.send_error(state, "invalid_frame", str(e), details)
                continue

            try:
                await self._router.dispatch(state, frame.event, frame.data)
            except Exception:
                logger.exception(
                    "Error handling event",
                    client_event=frame.event,
                    connection_id=state.connection_id,
                    room_id=state.room_id,
                )
                await self._router.send_error(state, "internal_error", "Internal server error")


def create_websocket_handler(
    path: str,
    connection_manager: ConnectionManager,
    event_router: EventRouter,
) -> Router:
    """Create a WebSocket router for room collaboration.

    Args:
        path: Path of the WebSocket endpoint.
        connection_manager: The connection manager instance.
        event_router: The event router instance.

    Returns:
        A Litestar Router with the WebSocket handler.
    """
    handler = RoomWebSocketHandler(connection_manager, event_router)

    @websocket(path="/")
    async def room_websocket(socket: WebSocket) -> None:
        """WebSocket endpoint for room collaboration.

        Args:
            socket: The WebSocket connection.
        """
        await handler.handle_connection(socket)

    return Router(path=path, route_handlers=[room_websocket], tags=["WebSocket"])
