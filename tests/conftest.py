import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from backend import RoomStore
from connections import ConnectionManager
from presence import PresenceManager


class FakeWebSocket:
    """Records every frame sent to it."""

    def __init__(self, fail: bool = False):
        self.sent = []
        self.fail = fail

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(data))

    def events(self, event_type: str) -> list:
        return [m for m in self.sent if m.get("type") == event_type]


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


async def drain_timers(presence: PresenceManager) -> None:
    """Wait until every grace timer (including ones scheduled by timers) has fired."""
    while presence._timers:
        await asyncio.gather(*list(presence._timers))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> RoomStore:
    return RoomStore(clock=clock)


@pytest.fixture
def connections() -> ConnectionManager:
    return ConnectionManager()


@pytest.fixture
def presence(store, connections) -> PresenceManager:
    return PresenceManager(store, connections, reconnect_grace=0.02, empty_room_grace=0.05)
