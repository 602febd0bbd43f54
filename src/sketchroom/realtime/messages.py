"""WebSocket event names and frame shapes for real-time communication.

Every frame is a JSON object of the form ``{"event": <name>, "data": <payload>}``.
``data`` is omitted for events that carry no payload.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from sketchroom.exceptions import InvalidEventError


class ClientEvent(StrEnum):
    """Events sent by clients."""

    JOIN_ROOM = "join-room"
    DRAW = "draw"
    DRAW_TEXT = "draw-text"
    DRAW_IMAGE = "draw-image"
    CURSOR_MOVE = "cursor-move"
    CLEAR_CANVAS = "clear-canvas"
    SAVE_CANVAS = "save-canvas"
    REQUEST_CANVAS_STATE = "request-canvas-state"
    PING = "ping"
    UNDO = "undo"
    REDO = "redo"


class ServerEvent(StrEnum):
    """Events sent by the server."""

    CANVAS_STATE = "canvas-state"
    USERS_UPDATE = "users-update"
    CURSOR_MOVE = "cursor-move"
    USER_LEFT = "user-left"
    DRAW = "draw"
    DRAW_TEXT = "draw-text"
    DRAW_IMAGE = "draw-image"
    CLEAR_CANVAS = "clear-canvas"
    UNDO = "undo"
    REDO = "redo"
    PONG = "pong"
    ERROR = "error"


_NO_DATA = object()


def envelope(event: ServerEvent, data: Any = _NO_DATA) -> dict[str, Any]:
    """Build an outbound frame.

    Args:
        event: The server event name.
        data: Optional payload. Omitted from the frame when not given.

    Returns:
        The frame as a JSON-serializable dictionary.
    """
    frame: dict[str, Any] = {"event": event.value}
    if data is not _NO_DATA:
        frame["data"] = data
    return frame


@dataclass
class InboundFrame:
    """A decoded client frame."""

    event: str
    data: Any = None


def decode_frame(raw: str | bytes | dict[str, Any]) -> InboundFrame:
    """Decode a raw WebSocket message into an inbound frame.

    Args:
        raw: Text, bytes, or an already decoded mapping.

    Returns:
        The decoded frame.

    Raises:
        InvalidEventError: If the message is not JSON or lacks an event name.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise InvalidEventError("frame", "Invalid JSON message") from e

    if not isinstance(raw, dict):
        raise InvalidEventError("frame", "Message must be a JSON object")

    event = raw.get("event")
    if not isinstance(event, str) or not event:
        raise InvalidEventError("frame", "Message event is required", field="event")

    return InboundFrame(event=event, data=raw.get("data"))


@dataclass
class ErrorMessage:
    """Message for error responses."""

    code: str
    message: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to an outbound frame."""
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            payload["details"] = self.details
        return envelope(ServerEvent.ERROR, payload)
