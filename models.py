from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

ENGLISH = "English"
HINDI = "Hindi"


class TranslationDirection(str, Enum):
    EN_TO_HI = "en-to-hi"
    HI_TO_EN = "hi-to-en"

    def languages(self) -> Tuple[str, str]:
        """Return the (source, target) language pair for this direction."""
        if self is TranslationDirection.EN_TO_HI:
            return ENGLISH, HINDI
        return HINDI, ENGLISH


@dataclass
class PresenceEntry:
    connection_id: str
    display_name: str
    # bumped on every join, so a departure check can tell a rejoin on the same connection
    generation: int = 0

    def to_dict(self) -> dict:
        return {"id": self.connection_id, "name": self.display_name}


@dataclass
class Room:
    code: str
    direction: TranslationDirection
    created_at: datetime
    last_activity: datetime
    users: List[PresenceEntry] = field(default_factory=list)

    def find_by_name(self, display_name: str) -> Optional[PresenceEntry]:
        for entry in self.users:
            if entry.display_name == display_name:
                return entry
        return None

    def find_by_connection(self, connection_id: str) -> Optional[PresenceEntry]:
        for entry in self.users:
            if entry.connection_id == connection_id:
                return entry
        return None

    def users_payload(self) -> List[dict]:
        return [entry.to_dict() for entry in self.users]

    def snapshot(self) -> "Room":
        # entries are copied so callers never see later mutations
        return replace(self, users=[replace(entry) for entry in self.users])
