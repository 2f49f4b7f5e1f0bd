from fastapi import APIRouter, HTTPException, Request

from errors import RoomCodeExhausted
from logging_config import get_logger
from schemas.rooms import CheckRoomResponse, CreateRoomRequest, CreateRoomResponse

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/api", tags=["rooms"])


@rooms_router.post("/create-room", response_model=CreateRoomResponse)
async def create_room(room: CreateRoomRequest, request: Request):
    # Body: { "translationDirection": "en-to-hi" | "hi-to-en" }
    # Response 200: { "roomCode": "482913" }
    client_host = request.client.host if request.client else "unknown"
    logger.info(f"Room creation request from {client_host}, direction: {room.translation_direction.value}")
    try:
        room_code = await request.app.state.store.create_room(room.translation_direction)
    except RoomCodeExhausted as e:
        logger.error(f"Error creating room: {e}")
        raise HTTPException(status_code=503, detail="No room codes available, try again later")
    return CreateRoomResponse(room_code=room_code)


@rooms_router.get("/check-room/{room_code}", response_model=CheckRoomResponse)
async def check_room(room_code: str, request: Request):
    exists = await request.app.state.store.exists(room_code)
    logger.debug(f"Check room {room_code}: exists={exists}")
    return CheckRoomResponse(exists=exists)
