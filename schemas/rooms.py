from pydantic import BaseModel, ConfigDict, Field

from models import TranslationDirection


class CreateRoomRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    translation_direction: TranslationDirection = Field(alias="translationDirection")

class CreateRoomResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_code: str = Field(alias="roomCode")

class CheckRoomResponse(BaseModel):
    exists: bool
