"""Event router applying client events to rooms and fanning them out."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from sketchroom.core.models import Participant
from sketchroom.core.settings import RoomSettings
from sketchroom.core.types import ConnectionStatus, OperationType
from sketchroom.exceptions import InvalidEventError
from sketchroom.realtime.messages import ClientEvent, ErrorMessage, ServerEvent, envelope
from sketchroom.realtime.validation import validate_payload

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from sketchroom.core.models import Room
    from sketchroom.realtime.transport import TransportProtocol
    from sketchroom.sessions.registry import SessionRegistry

    RoomHandler = Callable[["ConnectionState", Room, Any], Awaitable[None]]

logger = structlog.get_logger(__name__)


@dataclass
class ConnectionState:
    """Per-connection state machine value.

    A connection starts unjoined, becomes joined to exactly one room and
    ends closed once the transport reports the disconnect.

    Attributes:
        connection_id: Opaque identifier assigned by the transport.
        status: Current lifecycle state.
        room_id: The joined room, if any.
        participant: The identity registered in the room, if joined.
    """

    connection_id: str
    status: ConnectionStatus = ConnectionStatus.UNJOINED
    room_id: str | None = None
    participant: Participant | None = None

    @property
    def is_joined(self) -> bool:
        """Whether the connection is currently a room member."""
        return self.status is ConnectionStatus.JOINED


def attribute(data: Any, connection_id: str) -> Any:
    """Tag a relayed payload with its author.

    Non-object payloads are relayed unchanged.
    """
    if isinstance(data, dict):
        return {**data, "userId": connection_id}
    return data


class EventRouter:
    """Routes client events for connections to their rooms.

    The router owns no sockets. It records accepted operations in the
    room, decides the outbound payload shape and hands delivery to the
    transport. Events arriving before a successful join are dropped.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        transport: TransportProtocol,
        settings: RoomSettings | None = None,
    ) -> None:
        """Initialize the router.

        Args:
            registry: The session registry holding rooms.
            transport: Delivery capability for outbound frames.
            settings: Room behaviour settings. Defaults to RoomSettings().
        """
        self._registry = registry
        self._transport = transport
        self._settings = settings or RoomSettings()
        self._room_handlers: dict[str, RoomHandler] = {
            ClientEvent.DRAW: self._handle_draw,
            ClientEvent.DRAW_TEXT: self._handle_draw_text,
            ClientEvent.DRAW_IMAGE: self._handle_draw_image,
            ClientEvent.CURSOR_MOVE: self._handle_cursor_move,
            ClientEvent.CLEAR_CANVAS: self._handle_clear_canvas,
            ClientEvent.SAVE_CANVAS: self._handle_save_canvas,
            ClientEvent.REQUEST_CANVAS_STATE: self._handle_request_canvas_state,
            ClientEvent.UNDO: self._handle_undo,
            ClientEvent.REDO: self._handle_redo,
        }

    @property
    def settings(self) -> RoomSettings:
        """The settings this router applies."""
        return self._settings

    async def dispatch(self, state: ConnectionState, event: str, data: Any = None) -> None:
        """Apply one client event.

        Args:
            state: The sending connection's state.
            event: The client event name.
            data: The event payload.
        """
        if event == ClientEvent.PING:
            await self._transport.send(state.connection_id, envelope(ServerEvent.PONG))
            return

        if event == ClientEvent.JOIN_ROOM:
            if await self._validate(state, event, data):
                await self._handle_join(state, data)
            return

        handler = self._room_handlers.get(event)
        if handler is None:
            logger.warning("Unknown event ignored", client_event=event, connection_id=state.connection_id)
            return

        if not state.is_joined or state.room_id is None:
            logger.debug("Event dropped before join", client_event=event, connection_id=state.connection_id)
            return

        room = self._registry.get(state.room_id)
        if room is None:
            return

        if await self._validate(state, event, data):
            await handler(state, room, data)

    async def _validate(self, state: ConnectionState, event: str, data: Any) -> bool:
        if not self._settings.strict_payloads:
            return True
        try:
            validate_payload(event, data)
        except InvalidEventError as e:
            logger.info(
                "Invalid payload rejected",
                client_event=event,
                field=e.field,
                connection_id=state.connection_id,
            )
            details = {"event": event}
            if e.field:
                details["field"] = e.field
            await self.send_error(state, "invalid_payload", str(e), details)
            return False
        return True

    async def _handle_join(self, state: ConnectionState, data: Any) -> None:
        payload = data if isinstance(data, dict) else {}
        room_id = payload.get("roomId")
        if room_id is None or room_id == "":
            logger.warning("Join without room id ignored", connection_id=state.connection_id)
            return
        await self.join(state, str(room_id), payload.get("username"), payload.get("color"))

    async def join(
        self,
        state: ConnectionState,
        room_id: str,
        username: Any = None,
        color: Any = None,
    ) -> bool:
        """Join a connection to a room.

        The joiner receives the current snapshot (if any), every member
        receives the updated member list, and the joiner receives the live
        cursor of each peer.

        Args:
            state: The joining connection's state.
            room_id: The room to join.
            username: Requested display name.
            color: Requested display color.

        Returns:
            True if the connection joined, False if the join was ignored.
        """
        if state.status is not ConnectionStatus.UNJOINED:
            logger.debug(
                "Join ignored",
                connection_id=state.connection_id,
                status=state.status.value,
                room_id=room_id,
            )
            return False

        participant = Participant(
            id=state.connection_id,
            name=self._display_name(username, state.connection_id),
            color=self._display_color(color),
        )

        while True:
            room = await self._registry.get_or_create(room_id)
            async with room.lock:
                if self._registry.get(room_id) is not room:
                    continue
                room.add_member(participant)
                # a leave may have armed the timer while this join waited on the lock
                self._registry.cancel_deletion(room_id)
                members = [p.to_dict() for p in room.participants]
                cursors = [c.to_dict() for cid, c in room.cursors.items() if cid != participant.id]
                await self._transport.join_room(room_id, participant.id)

                state.status = ConnectionStatus.JOINED
                state.room_id = room_id
                state.participant = participant

                # member lists go out in the order the room changed
                await self._send_canvas_state(participant.id, room.snapshot)
                await self._transport.broadcast(room_id, envelope(ServerEvent.USERS_UPDATE, members))
            break

        logger.info(
            "Participant joined room",
            connection_id=participant.id,
            user_name=participant.name,
            room_id=room_id,
            members=len(members),
        )

        for cursor in cursors:
            await self._transport.send(participant.id, envelope(ServerEvent.CURSOR_MOVE, cursor))
        return True

    async def disconnect(self, state: ConnectionState) -> None:
        """Handle the transport reporting that a connection went away.

        Args:
            state: The departing connection's state.
        """
        previous = state.status
        state.status = ConnectionStatus.CLOSED
        if previous is not ConnectionStatus.JOINED or state.room_id is None:
            return

        room_id = state.room_id
        connection_id = state.connection_id
        room = self._registry.get(room_id)
        if room is None:
            await self._transport.leave_room(room_id, connection_id)
            return

        async with room.lock:
            room.remove_member(connection_id)
            members = [p.to_dict() for p in room.participants]
            await self._transport.leave_room(room_id, connection_id)

            if room.is_empty:
                self._registry.schedule_deletion(room_id)
            else:
                await self._transport.broadcast(
                    room_id,
                    envelope(ServerEvent.USER_LEFT, {"connectionId": connection_id}),
                )
                await self._transport.broadcast(room_id, envelope(ServerEvent.USERS_UPDATE, members))

        logger.info(
            "Participant left room",
            connection_id=connection_id,
            room_id=room_id,
            remaining=len(members),
        )

    async def _record_and_relay(
        self,
        state: ConnectionState,
        room: Room,
        data: Any,
        operation_type: OperationType,
        event: ServerEvent,
    ) -> None:
        async with room.lock:
            room.record(operation_type, data, state.participant, self._registry.clock())
        await self._transport.broadcast(
            room.room_id,
            envelope(event, attribute(data, state.connection_id)),
            exclude=state.connection_id,
        )

    async def _handle_draw(self, state: ConnectionState, room: Room, data: Any) -> None:
        await self._record_and_relay(state, room, data, OperationType.FREEHAND, ServerEvent.DRAW)

    async def _handle_draw_text(self, state: ConnectionState, room: Room, data: Any) -> None:
        await self._record_and_relay(state, room, data, OperationType.TEXT, ServerEvent.DRAW_TEXT)

    async def _handle_draw_image(self, state: ConnectionState, room: Room, data: Any) -> None:
        await self._record_and_relay(state, room, data, OperationType.IMAGE, ServerEvent.DRAW_IMAGE)

    async def _handle_cursor_move(self, state: ConnectionState, room: Room, data: Any) -> None:
        payload = data if isinstance(data, dict) else {}
        async with room.lock:
            cursor = room.update_cursor(state.participant, payload.get("x"), payload.get("y"))
        await self._transport.broadcast(
            room.room_id,
            envelope(ServerEvent.CURSOR_MOVE, cursor.to_dict()),
            exclude=state.connection_id,
        )

    async def _handle_clear_canvas(self, state: ConnectionState, room: Room, data: Any) -> None:
        async with room.lock:
            room.clear()
        logger.info("Canvas cleared", room_id=room.room_id, connection_id=state.connection_id)
        exclude = None if self._settings.echo_clear_to_sender else state.connection_id
        await self._transport.broadcast(
            room.room_id,
            envelope(ServerEvent.CLEAR_CANVAS, {"userId": state.connection_id}),
            exclude=exclude,
        )

    async def _handle_save_canvas(self, state: ConnectionState, room: Room, data: Any) -> None:
        async with room.lock:
            room.save_snapshot(data)
        logger.debug("Canvas snapshot saved", room_id=room.room_id, connection_id=state.connection_id)

    async def _handle_request_canvas_state(self, state: ConnectionState, room: Room, data: Any) -> None:
        async with room.lock:
            snapshot = room.snapshot
        await self._send_canvas_state(state.connection_id, snapshot)

    async def _handle_undo(self, state: ConnectionState, room: Room, data: Any) -> None:
        await self._transport.broadcast(
            room.room_id,
            envelope(ServerEvent.UNDO, {"userId": state.connection_id}),
            exclude=state.connection_id,
        )

    async def _handle_redo(self, state: ConnectionState, room: Room, data: Any) -> None:
        await self._transport.broadcast(
            room.room_id,
            envelope(ServerEvent.REDO, {"userId": state.connection_id}),
            exclude=state.connection_id,
        )

    async def _send_canvas_state(self, connection_id: str, snapshot: Any) -> None:
        # join and explicit requests must resynchronize identically
        if snapshot is None:
            return
        await self._transport.send(connection_id, envelope(ServerEvent.CANVAS_STATE, snapshot))

    async def send_error(
        self,
        state: ConnectionState,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Send an error frame to a single connection.

        Args:
            state: The target connection's state.
            code: Error code.
            message: Error message.
            details: Additional error details.
        """
        await self._transport.send(state.connection_id, ErrorMessage(code, message, details).to_dict())

    def _display_name(self, username: Any, connection_id: str) -> str:
        name = username.strip() if isinstance(username, str) else ""
        if not name:
            name = f"User {connection_id[:4]}"
        return name[: self._settings.max_name_length]

    def _display_color(self, color: Any) -> str:
        if isinstance(color, str) and color.strip():
            return color.strip()
        return random.choice(self._settings.palette)  # noqa: S311
