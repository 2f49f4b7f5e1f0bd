class RelayError(Exception):
    """Base class for relay errors reported back to a single connection."""


class RoomNotFound(RelayError):
    def __init__(self, room_code: str):
        super().__init__(f"Room {room_code} not found")
        self.room_code = room_code


class RoomCodeExhausted(RelayError):
    """No free room code was found within the allowed number of draws."""


class TranslationError(RelayError):
    """The translation provider failed to produce a translation."""
