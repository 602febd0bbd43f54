"""Payload shape checks applied when strict payload mode is enabled."""

from __future__ import annotations

from typing import Any

from sketchroom.exceptions import InvalidEventError
from sketchroom.realtime.messages import ClientEvent

_NUMERIC_FIELDS: dict[str, tuple[str, ...]] = {
    ClientEvent.DRAW_IMAGE: ("x", "y", "width", "height"),
    ClientEvent.CURSOR_MOVE: ("x", "y"),
}

_OBJECT_EVENTS = frozenset(
    {
        ClientEvent.JOIN_ROOM,
        ClientEvent.DRAW,
        ClientEvent.DRAW_TEXT,
        ClientEvent.DRAW_IMAGE,
        ClientEvent.CURSOR_MOVE,
    }
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_payload(event: str, data: Any) -> None:
    """Check that an event payload has the shape the router relies on.

    Events not listed here (``ping``, ``clear-canvas``, ...) accept anything.

    Args:
        event: The client event name.
        data: The decoded payload.

    Raises:
        InvalidEventError: If the payload is malformed.
    """
    if event in _OBJECT_EVENTS and not isinstance(data, dict):
        raise InvalidEventError(event, f"{event} payload must be an object")

    if event == ClientEvent.JOIN_ROOM:
        room_id = data.get("roomId")
        if not isinstance(room_id, str) or not room_id:
            raise InvalidEventError(event, "roomId must be a non-empty string", field="roomId")
        for key in ("username", "color"):
            if data.get(key) is not None and not isinstance(data[key], str):
                raise InvalidEventError(event, f"{key} must be a string", field=key)

    elif event == ClientEvent.DRAW_IMAGE:
        if not isinstance(data.get("imageData"), str):
            raise InvalidEventError(event, "imageData must be a string", field="imageData")

    elif event == ClientEvent.SAVE_CANVAS and not isinstance(data, str):
        raise InvalidEventError(event, "save-canvas payload must be a string")

    for key in _NUMERIC_FIELDS.get(event, ()):
        if not _is_number(data.get(key)):
            raise InvalidEventError(event, f"{key} must be a number", field=key)
