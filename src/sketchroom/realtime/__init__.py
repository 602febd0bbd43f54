"""Real-time WebSocket module for sketchroom.

This module provides the event router that applies client events to rooms,
the WebSocket transport that delivers them, and the Litestar route handler
wiring both together.
"""

from __future__ import annotations

from sketchroom.realtime.handler import RoomWebSocketHandler, create_websocket_handler
from sketchroom.realtime.manager import Connection, ConnectionManager
from sketchroom.realtime.messages import ClientEvent, ErrorMessage, InboundFrame, ServerEvent, decode_frame, envelope
from sketchroom.realtime.router import ConnectionState, EventRouter
from sketchroom.realtime.transport import TransportProtocol

__all__ = [
    "ClientEvent",
    "Connection",
    "ConnectionManager",
    "ConnectionState",
    "ErrorMessage",
    "EventRouter",
    "InboundFrame",
    "RoomWebSocketHandler",
    "ServerEvent",
    "TransportProtocol",
    "create_websocket_handler",
    "decode_frame",
    "envelope",
]
