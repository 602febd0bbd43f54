"""sketchroom: a real-time collaborative drawing session broker for Litestar.

Clients join named rooms over a WebSocket, share incremental drawing
operations and cursor positions with everyone else in the room, and late
joiners fast-forward from the latest saved canvas snapshot.

Key Components:
    - Core Models: Room, Participant, Operation, CursorPosition
    - Sessions: SessionRegistry (room lifecycle with grace-period deletion)
    - Realtime: EventRouter, ConnectionManager, WebSocket handler
    - Web: health and room introspection endpoints
    - Plugin: SketchroomPlugin for Litestar integration

Quick Start:
    >>> from litestar import Litestar
    >>> from sketchroom import SketchroomPlugin, SketchroomConfig
    >>>
    >>> app = Litestar(plugins=[SketchroomPlugin(SketchroomConfig())])
"""

from __future__ import annotations

from sketchroom.core import (
    ConnectionStatus,
    CursorPosition,
    Operation,
    OperationType,
    Participant,
    Room,
    RoomSettings,
)
from sketchroom.exceptions import InvalidEventError, RoomNotFoundError, SketchroomError
from sketchroom.plugin import SketchroomConfig, SketchroomPlugin
from sketchroom.realtime import (
    ClientEvent,
    ConnectionManager,
    ConnectionState,
    EventRouter,
    ServerEvent,
    TransportProtocol,
    create_websocket_handler,
)
from sketchroom.sessions import SessionRegistry

__all__ = [
    "ClientEvent",
    "ConnectionManager",
    "ConnectionState",
    "ConnectionStatus",
    "CursorPosition",
    "EventRouter",
    "InvalidEventError",
    "Operation",
    "OperationType",
    "Participant",
    "Room",
    "RoomNotFoundError",
    "RoomSettings",
    "ServerEvent",
    "SessionRegistry",
    "SketchroomConfig",
    "SketchroomError",
    "SketchroomPlugin",
    "TransportProtocol",
    "create_websocket_handler",
]

__version__ = "0.1.0"
