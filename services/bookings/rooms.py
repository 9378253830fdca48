"""Read-only room lookups used during admission."""
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from common.cache import SimpleTTLCache
from common.models import Room

from .errors import PersistenceError


def _room_key(room_id: int) -> str:
    return f"room-exists:{room_id}"


class RoomDirectory:
    """Looks rooms up by id. Inactive rooms are treated as absent."""

    def __init__(self, db: Session, cache: Optional[SimpleTTLCache[bool]] = None) -> None:
        self.db = db
        self.cache = cache

    def find_by_id(self, room_id: int) -> Optional[Room]:
        try:
            return self.db.query(Room).filter(Room.id == room_id, Room.is_active.is_(True)).first()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError("could not look up room") from exc

    def exists(self, room_id: int) -> bool:
        if self.cache is None:
            return self.find_by_id(room_id) is not None
        # Only hits are cached, so a newly added room is visible immediately.
        found = self.cache.get_or_load(_room_key(room_id), lambda: True if self.find_by_id(room_id) else None)
        return bool(found)
