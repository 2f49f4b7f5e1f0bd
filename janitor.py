import asyncio
from typing import List, Optional

from backend import RoomStore
from constants import JANITOR_INTERVAL_SECONDS, ROOM_IDLE_TIMEOUT_SECONDS
from logging_config import get_logger
from models import Room

logger = get_logger(__name__)


class Janitor:
    """Periodically deletes empty rooms that have been idle too long.

    Backstop for rooms that never went through a tracked disconnect, e.g.
    rooms that were created but never joined.
    """

    def __init__(
        self,
        store: RoomStore,
        interval: float = JANITOR_INTERVAL_SECONDS,
        idle_timeout: float = ROOM_IDLE_TIMEOUT_SECONDS,
    ):
        self.store = store
        self.interval = interval
        self.idle_timeout = idle_timeout
        self._task: Optional[asyncio.Task] = None

    async def sweep(self) -> List[str]:
        now = self.store.clock()

        def abandoned(room: Room) -> bool:
            return not room.users and (now - room.last_activity).total_seconds() > self.idle_timeout

        removed = await self.store.sweep(abandoned)
        for room in removed:
            idle_minutes = int((now - room.last_activity).total_seconds() // 60)
            logger.info(f"Room {room.code} deleted due to extended inactivity ({idle_minutes} minutes)")
        return [room.code for room in removed]

    async def run(self) -> None:
        logger.info(f"Janitor started: sweeping every {self.interval}s, idle timeout {self.idle_timeout}s")
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"Janitor sweep failed: {e}", exc_info=True)

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Janitor stopped")
