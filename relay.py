import json
import uuid
from typing import Optional

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from backend import RoomStore
from connections import ConnectionManager
from errors import RoomNotFound
from logging_config import get_logger
from presence import PresenceManager
from schemas.events import ConnectionStatusEvent, HeartbeatEvent, JoinRoomEvent, SpeechDataEvent
from translation import TranslationGateway, preview

logger = get_logger(__name__)

ROOM_NOT_FOUND = "Room not found"
TRANSLATION_FAILED = "Translation failed. Please try again."


class RelaySession:
    """Binds one WebSocket connection to at most one room.

    Frames are handled one at a time, so a sender's utterances reach the
    room in the order they were sent even when translation has to retry.
    """

    def __init__(
        self,
        websocket: WebSocket,
        store: RoomStore,
        presence: PresenceManager,
        gateway: TranslationGateway,
        connections: ConnectionManager,
        connection_id: Optional[str] = None,
    ):
        self.websocket = websocket
        self.store = store
        self.presence = presence
        self.gateway = gateway
        self.connections = connections
        self.connection_id = connection_id or uuid.uuid4().hex
        self.room_code: Optional[str] = None

        self.handlers = {
            "join-room": (JoinRoomEvent, self.on_join_room),
            "heartbeat": (HeartbeatEvent, self.on_heartbeat),
            "speech-data": (SpeechDataEvent, self.on_speech_data),
            "connection-status": (ConnectionStatusEvent, self.on_connection_status),
        }

    async def run(self) -> None:
        await self.websocket.accept()
        logger.info(f"Client connected: {self.connection_id}")
        try:
            while True:
                data = await self.websocket.receive_text()
                await self.dispatch(data)
        except WebSocketDisconnect as e:
            logger.info(f"Client disconnected: {self.connection_id}. Code: {e.code}")
        except Exception as e:
            logger.error(f"WebSocket error for connection {self.connection_id}: {e}", exc_info=True)
        finally:
            await self.on_disconnect()

    async def dispatch(self, data: str) -> None:
        try:
            message = json.loads(data)
        except json.JSONDecodeError:
            logger.debug(f"Ignoring non-JSON frame from {self.connection_id}")
            return
        if not isinstance(message, dict):
            logger.debug(f"Ignoring non-object frame from {self.connection_id}")
            return

        event_type = message.get("type")
        if event_type not in self.handlers:
            logger.debug(f"Ignoring unknown event {event_type!r} from {self.connection_id}")
            return

        schema, handler = self.handlers[event_type]
        try:
            event = schema.model_validate(message)
        except ValidationError as e:
            logger.warning(f"Invalid {event_type} payload from {self.connection_id}: {e.errors()}")
            await self.send_error(f"Invalid {event_type} payload")
            return
        await handler(event)

    async def on_join_room(self, event: JoinRoomEvent) -> None:
        logger.info(f"User {event.user_name} ({self.connection_id}) trying to join room {event.room_code}")
        try:
            result = await self.presence.join(event.room_code, event.user_name, self.connection_id)
        except RoomNotFound:
            logger.warning(f"Join failed: room {event.room_code} not found")
            await self.send_error(ROOM_NOT_FOUND)
            return

        if self.room_code and self.room_code != event.room_code:
            await self.leave_current_room()

        self.connections.subscribe(event.room_code, self.connection_id, self.websocket)
        self.room_code = event.room_code

        await self.send({
            "type": "room-joined",
            "roomCode": event.room_code,
            "translationDirection": result.direction.value,
            "users": result.users,
        })
        await self.connections.broadcast(event.room_code, {
            "type": "user-joined",
            "userId": self.connection_id,
            "userName": event.user_name,
            "users": result.users,
        })

    async def on_heartbeat(self, event: HeartbeatEvent) -> None:
        if await self.presence.heartbeat(event.room_code):
            await self.send({"type": "heartbeat-ack"})

    async def on_speech_data(self, event: SpeechDataEvent) -> None:
        logger.info(f"Received speech data in room {event.room_code} from {self.connection_id}: \"{preview(event.text)}\"")
        direction = await self.presence.touch(event.room_code)
        if direction is None:
            await self.send_error(ROOM_NOT_FOUND)
            return

        source_language, target_language = direction.languages()
        try:
            translated_text = await self.gateway.translate(event.text, source_language, target_language)
            logger.info(f"Translated text: \"{preview(translated_text)}\"")

            # the room may have been reclaimed while translation was in flight
            if not await self.store.exists(event.room_code):
                raise RoomNotFound(event.room_code)

            await self.connections.broadcast(event.room_code, {
                "type": "translated-speech",
                "originalText": event.text,
                "translatedText": translated_text,
                "userId": self.connection_id,
            }, exclude=self.connection_id)
        except Exception as e:
            logger.error(f"Translation processing error: {e}", exc_info=True)
            await self.send_error(TRANSLATION_FAILED)

    async def on_connection_status(self, event: ConnectionStatusEvent) -> None:
        logger.info(f"Client {self.connection_id} reported status: {event.status} in room {event.room_code}")

    async def leave_current_room(self) -> None:
        room_code, self.room_code = self.room_code, None
        if room_code is None:
            return
        self.connections.unsubscribe(room_code, self.connection_id)
        await self.presence.disconnect(room_code, self.connection_id)

    async def on_disconnect(self) -> None:
        try:
            await self.leave_current_room()
        except Exception as e:
            logger.error(f"Error during disconnect cleanup for {self.connection_id}: {e}", exc_info=True)

    async def send(self, message: dict) -> None:
        await self.websocket.send_text(json.dumps(message))

    async def send_error(self, message: str) -> None:
        await self.send({"type": "error", "message": message})
