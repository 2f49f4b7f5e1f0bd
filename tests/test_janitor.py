"""Unit tests for the idle-room janitor."""

import asyncio

import pytest

from backend import RoomStore
from janitor import Janitor
from models import PresenceEntry, TranslationDirection


@pytest.mark.asyncio
async def test_sweep_removes_idle_empty_rooms(store, clock) -> None:
    idle = await store.create_room(TranslationDirection.EN_TO_HI)
    clock.advance(3000)
    recent = await store.create_room(TranslationDirection.HI_TO_EN)
    clock.advance(601)

    janitor = Janitor(store, interval=1800, idle_timeout=3600)
    assert await janitor.sweep() == [idle]
    assert not await store.exists(idle)
    assert await store.exists(recent)


@pytest.mark.asyncio
async def test_sweep_keeps_occupied_rooms(store, clock) -> None:
    code = await store.create_room(TranslationDirection.EN_TO_HI)
    await store.update(code, lambda room: room.users.append(PresenceEntry("c1", "Asha")))
    clock.advance(7200)

    janitor = Janitor(store, idle_timeout=3600)
    assert await janitor.sweep() == []
    assert await store.exists(code)


@pytest.mark.asyncio
async def test_sweep_idle_threshold_is_exclusive(store, clock) -> None:
    code = await store.create_room(TranslationDirection.EN_TO_HI)
    clock.advance(3600)

    janitor = Janitor(store, idle_timeout=3600)
    assert await janitor.sweep() == []
    clock.advance(1)
    assert await janitor.sweep() == [code]


@pytest.mark.asyncio
async def test_run_sweeps_periodically_until_stopped(clock) -> None:
    store = RoomStore(clock=clock)
    code = await store.create_room(TranslationDirection.EN_TO_HI)
    clock.advance(10)

    janitor = Janitor(store, interval=0.01, idle_timeout=5)
    janitor.start()
    await asyncio.sleep(0.1)
    await janitor.stop()

    assert not await store.exists(code)
    assert janitor._task is None
