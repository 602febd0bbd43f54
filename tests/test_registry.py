"""Tests for the session registry and grace-period deletion."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from sketchroom.core.models import Participant
from sketchroom.core.types import OperationType
from sketchroom.sessions.registry import SessionRegistry

if TYPE_CHECKING:
    from tests.conftest import ManualClock, ManualScheduler

ALICE = Participant(id="conn-a", name="alice", color="#f00")


class TestSessionRegistry:
    """Tests for room creation, lookup and deletion."""

    async def test_get_or_create_creates_once(self, registry: SessionRegistry) -> None:
        """Test that a room is created on first use and reused afterwards."""
        first = await registry.get_or_create("r1")
        second = await registry.get_or_create("r1")

        assert first is second
        assert registry.room_count == 1

    async def test_concurrent_first_joins_share_one_room(self, registry: SessionRegistry) -> None:
        """Test that simultaneous creations produce a single room."""
        rooms = await asyncio.gather(*(registry.get_or_create("r1") for _ in range(10)))

        assert all(room is rooms[0] for room in rooms)
        assert registry.room_count == 1

    async def test_get_unknown_room(self, registry: SessionRegistry) -> None:
        """Test that looking up an unknown room returns None."""
        assert registry.get("missing") is None

    async def test_delete_is_idempotent(self, registry: SessionRegistry) -> None:
        """Test that deleting twice, or deleting an unknown room, is harmless."""
        await registry.get_or_create("r1")

        registry.delete("r1")
        registry.delete("r1")
        registry.delete("never-existed")

        assert registry.get("r1") is None

    async def test_counts(self, registry: SessionRegistry) -> None:
        """Test aggregate room and participant counts."""
        room = await registry.get_or_create("r1")
        await registry.get_or_create("r2")
        room.add_member(ALICE)

        assert registry.room_count == 2
        assert registry.participant_count == 1
        assert {r.room_id for r in registry.rooms()} == {"r1", "r2"}


class TestGracePeriod:
    """Tests for delayed deletion of empty rooms."""

    async def test_empty_room_removed_after_grace_period(
        self, registry: SessionRegistry, scheduler: ManualScheduler
    ) -> None:
        """Test that an empty room survives until the grace period elapses."""
        await registry.get_or_create("r1")
        registry.schedule_deletion("r1")

        scheduler.advance(299)
        assert registry.get("r1") is not None
        assert registry.is_pending_deletion("r1")

        scheduler.advance(1)
        assert registry.get("r1") is None
        assert not registry.is_pending_deletion("r1")

    async def test_rejoin_cancels_deletion_and_keeps_state(
        self, registry: SessionRegistry, scheduler: ManualScheduler, clock: ManualClock
    ) -> None:
        """Test that a room reused before the timer fires keeps its state."""
        room = await registry.get_or_create("r1")
        room.record(OperationType.FREEHAND, {"x": 1}, ALICE, clock())
        room.save_snapshot("snap")
        registry.schedule_deletion("r1")

        scheduler.advance(100)
        again = await registry.get_or_create("r1")
        scheduler.advance(1000)

        assert again is room
        assert registry.get("r1") is room
        assert len(room.history) == 1
        assert room.snapshot == "snap"
        assert scheduler.pending == 0

    async def test_timer_skips_room_that_regained_members(
        self, registry: SessionRegistry, scheduler: ManualScheduler
    ) -> None:
        """Test that the timer re-checks emptiness when it fires."""
        room = await registry.get_or_create("r1")
        registry.schedule_deletion("r1")
        room.add_member(ALICE)

        scheduler.advance(300)

        assert registry.get("r1") is room

    async def test_rescheduling_replaces_timer(self, registry: SessionRegistry, scheduler: ManualScheduler) -> None:
        """Test that arming twice restarts the grace period."""
        await registry.get_or_create("r1")
        registry.schedule_deletion("r1")
        scheduler.advance(200)
        registry.schedule_deletion("r1")

        scheduler.advance(200)
        assert registry.get("r1") is not None

        scheduler.advance(100)
        assert registry.get("r1") is None

    async def test_schedule_unknown_room_is_noop(self, registry: SessionRegistry, scheduler: ManualScheduler) -> None:
        """Test that scheduling deletion of an unknown room arms nothing."""
        registry.schedule_deletion("missing")
        assert scheduler.pending == 0

    async def test_shutdown_cancels_timers(self, registry: SessionRegistry, scheduler: ManualScheduler) -> None:
        """Test that shutdown disarms every pending deletion."""
        await registry.get_or_create("r1")
        await registry.get_or_create("r2")
        registry.schedule_deletion("r1")
        registry.schedule_deletion("r2")

        registry.shutdown()
        scheduler.advance(1000)

        assert registry.room_count == 2
        assert scheduler.pending == 0

    async def test_loop_scheduler_default(self) -> None:
        """Test deletion with the real event loop scheduler."""
        registry = SessionRegistry(grace_period=0.01)
        await registry.get_or_create("r1")
        registry.schedule_deletion("r1")

        await asyncio.sleep(0.05)

        assert registry.get("r1") is None
