"""Pytest configuration and fixtures for sketchroom tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterator
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest
from litestar import Litestar
from litestar.testing import TestClient

from sketchroom.app import create_app
from sketchroom.core.settings import RoomSettings
from sketchroom.realtime.router import ConnectionState, EventRouter
from sketchroom.sessions.registry import SessionRegistry

GRACE_PERIOD = 300.0


class ManualTimer:
    """Timer handle returned by ManualScheduler."""

    def __init__(self, when: float, callback: Callable[[], None]) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler whose time only moves when a test advances it."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [t for t in self.timers if not t.cancelled and t.when <= self.now]
        self.timers = [t for t in self.timers if not t.cancelled and t not in due]
        for timer in due:
            timer.callback()

    @property
    def pending(self) -> int:
        return sum(1 for t in self.timers if not t.cancelled)


class ManualClock:
    """Clock returning a controllable UTC datetime."""

    def __init__(self) -> None:
        self.current = datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def step(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class RecordingTransport:
    """In-memory transport that records every delivered frame."""

    def __init__(self) -> None:
        self.rooms: dict[str, list[str]] = {}
        self.sent: list[tuple[str, dict[str, Any]]] = []
        self.failing: set[str] = set()

    async def join_room(self, room_id: str, connection_id: str) -> None:
        members = self.rooms.setdefault(room_id, [])
        if connection_id not in members:
            members.append(connection_id)

    async def leave_room(self, room_id: str, connection_id: str) -> None:
        members = self.rooms.get(room_id, [])
        if connection_id in members:
            members.remove(connection_id)

    async def send(self, connection_id: str, message: dict[str, Any]) -> bool:
        if connection_id in self.failing:
            return False
        self.sent.append((connection_id, message))
        return True

    async def broadcast(self, room_id: str, message: dict[str, Any], exclude: str | None = None) -> None:
        for connection_id in list(self.rooms.get(room_id, [])):
            if connection_id == exclude or connection_id in self.failing:
                continue
            self.sent.append((connection_id, message))

    def messages_for(self, connection_id: str, event: str | None = None) -> list[dict[str, Any]]:
        return [
            message
            for target, message in self.sent
            if target == connection_id and (event is None or message["event"] == event)
        ]

    def clear(self) -> None:
        self.sent.clear()


class YieldingTransport(RecordingTransport):
    """Recording transport that suspends on every call like a real socket.

    ``delays`` maps a connection ID to the seconds a send to it takes.
    """

    def __init__(self) -> None:
        super().__init__()
        self.delays: dict[str, float] = {}

    async def join_room(self, room_id: str, connection_id: str) -> None:
        await asyncio.sleep(0)
        await super().join_room(room_id, connection_id)

    async def leave_room(self, room_id: str, connection_id: str) -> None:
        await asyncio.sleep(0)
        await super().leave_room(room_id, connection_id)

    async def send(self, connection_id: str, message: dict[str, Any]) -> bool:
        await asyncio.sleep(self.delays.get(connection_id, 0))
        return await super().send(connection_id, message)

    async def broadcast(self, room_id: str, message: dict[str, Any], exclude: str | None = None) -> None:
        await asyncio.sleep(0)
        await super().broadcast(room_id, message, exclude)


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Create a manually driven scheduler."""
    return ManualScheduler()


@pytest.fixture
def clock() -> ManualClock:
    """Create a manually driven clock."""
    return ManualClock()


@pytest.fixture
def registry(scheduler: ManualScheduler, clock: ManualClock) -> SessionRegistry:
    """Create a registry with deterministic timers and timestamps."""
    return SessionRegistry(grace_period=GRACE_PERIOD, scheduler=scheduler, clock=clock)


@pytest.fixture
def transport() -> RecordingTransport:
    """Create a recording transport."""
    return RecordingTransport()


@pytest.fixture
def settings() -> RoomSettings:
    """Default room settings."""
    return RoomSettings(grace_period_seconds=GRACE_PERIOD)


@pytest.fixture
def router(registry: SessionRegistry, transport: RecordingTransport, settings: RoomSettings) -> EventRouter:
    """Create an event router wired to the recording transport."""
    return EventRouter(registry, transport, settings)


@pytest.fixture
def connect() -> Callable[[str], ConnectionState]:
    """Factory for fresh connection states."""

    def _connect(connection_id: str) -> ConnectionState:
        return ConnectionState(connection_id=connection_id)

    return _connect


@pytest.fixture
def app() -> Litestar:
    """Create the sketchroom application for testing."""
    return create_app(settings=RoomSettings(grace_period_seconds=GRACE_PERIOD))


@pytest.fixture
def client(app: Litestar) -> Iterator[TestClient[Litestar]]:
    """Create a test client running the app lifespan in a single portal."""
    with TestClient(app=app) as test_client:
        yield test_client


@pytest.fixture
def yielding_transport() -> YieldingTransport:
    """Create a transport whose deliveries suspend the caller."""
    return YieldingTransport()


@pytest.fixture
def yielding_router(
    registry: SessionRegistry, yielding_transport: YieldingTransport, settings: RoomSettings
) -> EventRouter:
    """Create an event router wired to the yielding transport."""
    return EventRouter(registry, yielding_transport, settings)
