import asyncio
import itertools
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, List, Optional, Set

from backend import RoomStore
from connections import ConnectionManager
from constants import EMPTY_ROOM_GRACE_SECONDS, RECONNECT_GRACE_SECONDS
from errors import RoomNotFound
from logging_config import get_logger
from models import PresenceEntry, Room, TranslationDirection

logger = get_logger(__name__)


def copy_entry(entry: Optional[PresenceEntry]) -> Optional[PresenceEntry]:
    return replace(entry) if entry is not None else None


@dataclass
class JoinResult:
    direction: TranslationDirection
    users: List[dict]
    reconnected: bool


class PresenceManager:
    """Join/leave/reconnect lifecycle for room members.

    A member moves Absent -> Active on join, Active -> grace period on
    disconnect, and either back to Active (rejoin under the same display name)
    or to Absent once the reconnect grace window runs out. Pending departures
    are never cancelled explicitly: the check re-reads the room when it fires
    and does nothing if the name has been joined again since, whether by a
    newer connection or by the same one coming back from another room.
    """

    def __init__(
        self,
        store: RoomStore,
        connections: ConnectionManager,
        reconnect_grace: float = RECONNECT_GRACE_SECONDS,
        empty_room_grace: float = EMPTY_ROOM_GRACE_SECONDS,
    ):
        self.store = store
        self.connections = connections
        self.reconnect_grace = reconnect_grace
        self.empty_room_grace = empty_room_grace
        self._timers: Set[asyncio.Task] = set()
        self._generations = itertools.count(1)

    async def join(self, room_code: str, display_name: str, connection_id: str) -> JoinResult:
        generation = next(self._generations)

        def apply(room: Room) -> JoinResult:
            entry = room.find_by_name(display_name)
            # one connection holds at most one entry per room
            previous = room.find_by_connection(connection_id)
            if previous is not None and previous is not entry:
                room.users.remove(previous)
                logger.info(f"Connection {connection_id} renamed from {previous.display_name} to {display_name} in room {room_code}")
            if entry is not None:
                entry.connection_id = connection_id
                entry.generation = generation
            else:
                room.users.append(PresenceEntry(connection_id=connection_id, display_name=display_name, generation=generation))
            room.last_activity = self.store.clock()
            return JoinResult(direction=room.direction, users=room.users_payload(), reconnected=entry is not None)

        result = await self.store.update(room_code, apply)
        if result is None:
            raise RoomNotFound(room_code)

        if result.reconnected:
            logger.info(f"User {display_name} reconnected to room {room_code} with new connection {connection_id}")
        else:
            logger.info(f"User {display_name} joined room {room_code}. Total users: {len(result.users)}")
        return result

    async def touch(self, room_code: str) -> Optional[TranslationDirection]:
        """Refresh the room's activity timestamp; returns its direction, or None if absent."""
        def apply(room: Room) -> TranslationDirection:
            room.last_activity = self.store.clock()
            return room.direction

        return await self.store.update(room_code, apply)

    async def heartbeat(self, room_code: str) -> bool:
        return await self.touch(room_code) is not None

    async def disconnect(self, room_code: str, connection_id: str) -> bool:
        """Start the reconnect grace window for whoever holds ``connection_id``.

        Returns False when no entry holds that connection id any more (the
        user already came back on a new connection, or the room is gone).
        """
        entry = await self.store.update(room_code, lambda room: copy_entry(room.find_by_connection(connection_id)))
        if entry is None:
            logger.debug(f"Connection {connection_id} has no presence in room {room_code}")
            return False

        logger.info(f"User {entry.display_name} ({connection_id}) disconnected from room {room_code}, waiting {self.reconnect_grace}s for reconnection")
        self._schedule(self.reconnect_grace, self._departure_check, room_code, entry.display_name, connection_id, entry.generation)
        return True

    async def _departure_check(self, room_code: str, display_name: str, connection_id: str, generation: int) -> None:
        def apply(room: Room) -> Optional[Room]:
            entry = room.find_by_name(display_name)
            if entry is None or entry.connection_id != connection_id or entry.generation != generation:
                return None
            room.users.remove(entry)
            room.last_activity = self.store.clock()
            return room.snapshot()

        room = await self.store.update(room_code, apply)
        if room is None:
            logger.debug(f"User {display_name} reconnected to room {room_code} or room is gone, skipping departure")
            return

        logger.info(f"User {display_name} permanently left room {room_code}")
        await self.connections.broadcast(room_code, {
            "type": "user-left",
            "userId": connection_id,
            "userName": display_name,
            "users": room.users_payload(),
        })

        if not room.users:
            logger.info(f"Room {room_code} is empty, deleting in {self.empty_room_grace}s unless someone joins")
            self._schedule(self.empty_room_grace, self._empty_room_check, room_code)

    async def _empty_room_check(self, room_code: str) -> None:
        if await self.store.delete_if(room_code, lambda room: not room.users):
            logger.info(f"Room {room_code} deleted due to inactivity")

    def _schedule(self, delay: float, check: Callable[..., Awaitable[None]], *args) -> asyncio.Task:
        async def runner():
            await asyncio.sleep(delay)
            try:
                await check(*args)
            except Exception as e:
                logger.error(f"Presence timer {check.__name__} failed: {e}", exc_info=True)

        task = asyncio.create_task(runner())
        self._timers.add(task)
        task.add_done_callback(self._timers.discard)
        return task

    @property
    def pending_timers(self) -> int:
        return len(self._timers)

    async def shutdown(self) -> None:
        """Cancel every outstanding grace timer."""
        timers = list(self._timers)
        for task in timers:
            task.cancel()
        await asyncio.gather(*timers, return_exceptions=True)
        logger.debug(f"Cancelled {len(timers)} presence timers")
