import asyncio
import json
from typing import Dict, Optional

from fastapi import WebSocket

from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionManager:
    """Broadcast groups: which live WebSockets belong to which room.

    Format: {room_code: {connection_id: websocket}}. This only tracks
    transport handles; room membership itself lives in the RoomStore.
    """

    def __init__(self):
        self.rooms: Dict[str, Dict[str, WebSocket]] = {}

    def subscribe(self, room_code: str, connection_id: str, websocket: WebSocket) -> None:
        self.rooms.setdefault(room_code, {})[connection_id] = websocket
        logger.debug(f"Subscribed {connection_id} to room {room_code} (local connections: {len(self.rooms[room_code])})")

    def unsubscribe(self, room_code: str, connection_id: str) -> None:
        group = self.rooms.get(room_code)
        if group is None:
            return
        group.pop(connection_id, None)
        if not group:
            del self.rooms[room_code]
            logger.debug(f"No more local connections in room {room_code}")

    def members(self, room_code: str) -> Dict[str, WebSocket]:
        return dict(self.rooms.get(room_code, {}))

    async def broadcast(self, room_code: str, message: dict, exclude: Optional[str] = None) -> int:
        """Send ``message`` to every connection in the room except ``exclude``.

        Returns the number of connections the message was delivered to.
        """
        targets = {cid: ws for cid, ws in self.members(room_code).items() if cid != exclude}
        if not targets:
            return 0

        payload = json.dumps(message)
        results = await asyncio.gather(*(ws.send_text(payload) for ws in targets.values()), return_exceptions=True)

        delivered = 0
        for conn_id, result in zip(targets, results):
            if isinstance(result, Exception):
                # the connection's own handler runs the disconnect path
                logger.warning(f"Error sending {message.get('type')} to connection {conn_id} in room {room_code}: {result}")
            else:
                delivered += 1
        logger.debug(f"Broadcasted {message.get('type')} to {delivered}/{len(targets)} connections in room {room_code}")
        return delivered
