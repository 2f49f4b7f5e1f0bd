import asyncio
import random
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, TypeVar

from constants import ROOM_CODE_MAX_ATTEMPTS
from errors import RoomCodeExhausted
from logging_config import get_logger
from models import Room, TranslationDirection

logger = get_logger(__name__)

T = TypeVar("T")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_room_code() -> str:
    """Six digit numeric code, easy to type on a phone."""
    return str(random.randint(100000, 999999))


class RoomStore:
    """In-memory registry of rooms keyed by room code.

    Every read and write goes through one asyncio lock, so timer callbacks,
    the janitor and live message handling never see a half-updated user list.
    Rooms handed out by ``get_room``/``list_rooms`` are snapshots; mutations
    go through ``update``.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        code_factory: Callable[[], str] = generate_room_code,
        max_code_attempts: int = ROOM_CODE_MAX_ATTEMPTS,
    ):
        self.clock = clock
        self.code_factory = code_factory
        self.max_code_attempts = max_code_attempts
        self.lock = asyncio.Lock()
        self._rooms: Dict[str, Room] = {}
        logger.info("Initializing in-memory RoomStore")

    async def create_room(self, direction: TranslationDirection) -> str:
        async with self.lock:
            for attempt in range(1, self.max_code_attempts + 1):
                code = self.code_factory()
                if code not in self._rooms:
                    break
                logger.debug(f"Room code {code} already in use (draw {attempt}/{self.max_code_attempts})")
            else:
                raise RoomCodeExhausted(f"No free room code after {self.max_code_attempts} draws")

            now = self.clock()
            self._rooms[code] = Room(code=code, direction=direction, created_at=now, last_activity=now)
        logger.info(f"Created room {code} with direction {direction.value}")
        return code

    async def get_room(self, code: str) -> Optional[Room]:
        async with self.lock:
            room = self._rooms.get(code)
            return room.snapshot() if room else None

    async def exists(self, code: str) -> bool:
        async with self.lock:
            return code in self._rooms

    async def delete_room(self, code: str) -> bool:
        async with self.lock:
            deleted = self._rooms.pop(code, None) is not None
        if deleted:
            logger.info(f"Deleted room {code}")
        return deleted

    async def list_rooms(self) -> List[Room]:
        async with self.lock:
            return [room.snapshot() for room in self._rooms.values()]

    async def update(self, code: str, fn: Callable[[Room], T]) -> Optional[T]:
        """Run ``fn`` against the live room under the lock.

        Returns whatever ``fn`` returns, or None when the room does not exist.
        """
        async with self.lock:
            room = self._rooms.get(code)
            if room is None:
                return None
            return fn(room)

    async def delete_if(self, code: str, predicate: Callable[[Room], bool]) -> bool:
        async with self.lock:
            room = self._rooms.get(code)
            if room is None or not predicate(room):
                return False
            del self._rooms[code]
        logger.info(f"Deleted room {code}")
        return True

    async def sweep(self, predicate: Callable[[Room], bool]) -> List[Room]:
        """Delete every room matching ``predicate``; returns the removed rooms."""
        async with self.lock:
            doomed = [room for room in self._rooms.values() if predicate(room)]
            for room in doomed:
                del self._rooms[room.code]
        return doomed

    def __len__(self) -> int:
        return len(self._rooms)
