"""Tests for the WebSocket connection manager."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from sketchroom.realtime.manager import ConnectionManager
from sketchroom.realtime.transport import TransportProtocol


def make_socket() -> MagicMock:
    ws = MagicMock()
    ws.send_json = AsyncMock()
    ws.send_text = AsyncMock()
    ws.close = AsyncMock()
    return ws


class TestConnectionManager:
    """Tests for the ConnectionManager class."""

    @pytest.fixture
    def manager(self) -> ConnectionManager:
        """Create a connection manager for testing."""
        return ConnectionManager()

    def test_satisfies_transport_protocol(self, manager: ConnectionManager) -> None:
        """Test that the manager can be used as the router's transport."""
        assert isinstance(manager, TransportProtocol)

    async def test_register_and_unregister(self, manager: ConnectionManager) -> None:
        """Test connection bookkeeping."""
        connection = await manager.register("c1", make_socket())
        assert connection.connection_id == "c1"
        assert manager.total_connections == 1

        await manager.join_room("r1", "c1")
        await manager.unregister("c1")

        assert manager.total_connections == 0
        assert manager.active_rooms == 0

    async def test_leave_room_cleans_up_empty_room(self, manager: ConnectionManager) -> None:
        """Test that empty room subscriptions are dropped."""
        await manager.register("c1", make_socket())
        await manager.register("c2", make_socket())
        await manager.join_room("r1", "c1")
        await manager.join_room("r1", "c2")

        await manager.leave_room("r1", "c1")
        assert manager.active_rooms == 1

        await manager.leave_room("r1", "c2")
        assert manager.active_rooms == 0

        await manager.leave_room("missing", "c1")

    async def test_broadcast_excludes_sender(self, manager: ConnectionManager) -> None:
        """Test broadcasting with sender exclusion."""
        ws1, ws2 = make_socket(), make_socket()
        await manager.register("c1", ws1)
        await manager.register("c2", ws2)
        await manager.join_room("r1", "c1")
        await manager.join_room("r1", "c2")

        await manager.broadcast("r1", {"event": "draw", "data": {"x": 1}}, exclude="c1")

        ws1.send_text.assert_not_called()
        ws2.send_text.assert_called_once()
        assert json.loads(ws2.send_text.call_args[0][0]) == {"event": "draw", "data": {"x": 1}}

    async def test_broadcast_only_reaches_room(self, manager: ConnectionManager) -> None:
        """Test that other rooms do not receive a broadcast."""
        ws1, ws2 = make_socket(), make_socket()
        await manager.register("c1", ws1)
        await manager.register("c2", ws2)
        await manager.join_room("r1", "c1")
        await manager.join_room("r2", "c2")

        await manager.broadcast("r1", {"event": "draw"})

        ws1.send_text.assert_called_once()
        ws2.send_text.assert_not_called()

    async def test_broadcast_survives_failing_peer(self, manager: ConnectionManager) -> None:
        """Test that one broken socket does not stop delivery to others."""
        broken, healthy = make_socket(), make_socket()
        broken.send_text.side_effect = RuntimeError("connection reset")
        await manager.register("c1", broken)
        await manager.register("c2", healthy)
        await manager.join_room("r1", "c1")
        await manager.join_room("r1", "c2")

        await manager.broadcast("r1", {"event": "draw"})

        healthy.send_text.assert_called_once()

    async def test_send(self, manager: ConnectionManager) -> None:
        """Test sending to a specific connection."""
        ws = make_socket()
        await manager.register("c1", ws)

        assert await manager.send("c1", {"event": "pong"}) is True
        ws.send_json.assert_called_once_with({"event": "pong"})

    async def test_send_to_unknown_connection(self, manager: ConnectionManager) -> None:
        """Test sending to a connection that is not registered."""
        assert await manager.send("ghost", {"event": "pong"}) is False

    async def test_send_failure_reported(self, manager: ConnectionManager) -> None:
        """Test that a failed send returns False instead of raising."""
        ws = make_socket()
        ws.send_json.side_effect = RuntimeError("closed")
        await manager.register("c1", ws)

        assert await manager.send("c1", {"event": "pong"}) is False

    async def test_close_all(self, manager: ConnectionManager) -> None:
        """Test that shutdown closes every socket."""
        ws1, ws2 = make_socket(), make_socket()
        ws2.close.side_effect = RuntimeError("already closed")
        await manager.register("c1", ws1)
        await manager.register("c2", ws2)
        await manager.join_room("r1", "c1")

        await manager.close_all()

        ws1.close.assert_called_once_with(code=1001, reason="Server shutting down")
        ws2.close.assert_called_once()
        assert manager.total_connections == 0
        assert manager.active_rooms == 0
