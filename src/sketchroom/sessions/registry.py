"""Session registry mapping room identifiers to live room state."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from sketchroom.core.models import Room, utc_now
from sketchroom.sessions.scheduler import LoopScheduler

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from sketchroom.sessions.scheduler import Scheduler, TimerHandle

logger = structlog.get_logger(__name__)


class SessionRegistry:
    """Owns every room held by this broker.

    Rooms are created lazily on first join and removed once they have been
    empty for the grace period. Deletion timers go through an injected
    scheduler so tests can drive time without waiting.
    """

    def __init__(
        self,
        grace_period: float = 300.0,
        scheduler: Scheduler | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the registry.

        Args:
            grace_period: Seconds an empty room survives before deletion.
            scheduler: Timer source for deletions. Defaults to the running loop.
            clock: Source of timestamps for accepted operations.
        """
        self._rooms: dict[str, Room] = {}
        self._timers: dict[str, TimerHandle] = {}
        self._lock = asyncio.Lock()
        self._scheduler = scheduler or LoopScheduler()
        self.grace_period = grace_period
        self.clock = clock

    async def get_or_create(self, room_id: str) -> Room:
        """Return the room for ``room_id``, creating it if needed.

        Any pending deletion of the room is cancelled.

        Args:
            room_id: The room identifier.

        Returns:
            The existing or newly created room.
        """
        async with self._lock:
            self.cancel_deletion(room_id)
            room = self._rooms.get(room_id)
            if room is None:
                room = Room(room_id=room_id)
                self._rooms[room_id] = room
                logger.info("Room created", room_id=room_id, total_rooms=len(self._rooms))
            return room

    def get(self, room_id: str) -> Room | None:
        """Look up a room without creating it."""
        return self._rooms.get(room_id)

    def delete(self, room_id: str) -> None:
        """Remove a room. Deleting an unknown room is a no-op."""
        self.cancel_deletion(room_id)
        if self._rooms.pop(room_id, None) is not None:
            logger.info("Room deleted", room_id=room_id, total_rooms=len(self._rooms))

    def schedule_deletion(self, room_id: str) -> None:
        """Arm the grace timer for an empty room, replacing any armed one."""
        room = self._rooms.get(room_id)
        if room is None:
            return
        self.cancel_deletion(room_id)
        self._timers[room_id] = self._scheduler.call_later(
            self.grace_period,
            lambda: self._expire(room_id, room),
        )
        logger.debug("Room deletion scheduled", room_id=room_id, grace_period=self.grace_period)

    def cancel_deletion(self, room_id: str) -> None:
        """Disarm a pending deletion timer, if any."""
        timer = self._timers.pop(room_id, None)
        if timer is not None:
            timer.cancel()
            logger.debug("Room deletion cancelled", room_id=room_id)

    def _expire(self, room_id: str, room: Room) -> None:
        self._timers.pop(room_id, None)
        if self._rooms.get(room_id) is not room:
            return
        # a locked room is mid join or leave; a leave re-arms the timer itself
        if not room.is_empty or room.lock.locked():
            return
        self.delete(room_id)

    def rooms(self) -> list[Room]:
        """All registered rooms."""
        return list(self._rooms.values())

    def is_pending_deletion(self, room_id: str) -> bool:
        """Whether the room has an armed deletion timer."""
        return room_id in self._timers

    def shutdown(self) -> None:
        """Cancel every pending deletion timer."""
        for room_id in list(self._timers):
            self.cancel_deletion(room_id)

    @property
    def room_count(self) -> int:
        """Get the number of registered rooms."""
        return len(self._rooms)

    @property
    def participant_count(self) -> int:
        """Get the number of participants across all rooms."""
        return sum(len(room.members) for room in self._rooms.values())
