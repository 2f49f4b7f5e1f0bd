from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    room_code: str = Field(alias="roomCode", min_length=1)

    @field_validator("room_code", mode="before")
    @classmethod
    def coerce_room_code(cls, value):
        # some clients send the code as a number
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

class JoinRoomEvent(EventPayload):
    user_name: str = Field(alias="userName", min_length=1)

    @field_validator("user_name")
    @classmethod
    def strip_user_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("userName must not be blank")
        return value

class HeartbeatEvent(EventPayload):
    pass

class SpeechDataEvent(EventPayload):
    text: str

class ConnectionStatusEvent(EventPayload):
    status: Optional[str] = None
