from __future__ import annotations

import logging
import random
import string
from threading import RLock
from typing import Callable

from ..config import Config
from .errors import CapacityError
from .models import Player, Room, RoomConfig

logger = logging.getLogger(__name__)


def random_code(length: int | None = None) -> str:
    length = length or Config.ROOM_CODE_LENGTH
    return "".join(random.choice(string.ascii_uppercase) for _ in range(length))


def normalize_code(code) -> str:
    return str(code or "").strip().upper()


class RoomRegistry:
    """Owns the room code -> Room mapping. create/destroy are the only mutators."""

    def __init__(
        self,
        code_factory: Callable[[], str] = random_code,
        max_attempts: int | None = None,
    ) -> None:
        self._lock = RLock()
        self._rooms: dict[str, Room] = {}
        self._code_factory = code_factory
        self._max_attempts = max_attempts or Config.ROOM_CODE_ATTEMPTS

    def create(self, config: RoomConfig | None = None, host: Player | None = None) -> Room:
        """Registers a new room, already holding its host when one is given."""
        with self._lock:
            for _ in range(self._max_attempts):
                code = normalize_code(self._code_factory())
                if code and code not in self._rooms:
                    room = Room(code=code, config=config or RoomConfig())
                    if host is not None:
                        host.is_host = True
                        room.players.append(host)
                    self._rooms[code] = room
                    logger.info("[ROOM] %s created", code)
                    return room
            raise CapacityError()

    def get(self, code) -> Room | None:
        with self._lock:
            return self._rooms.get(normalize_code(code))

    def destroy(self, code: str) -> bool:
        with self._lock:
            if self._rooms.pop(normalize_code(code), None) is None:
                return False
        logger.info("[ROOM] %s destroyed", code)
        return True

    def list(self) -> list[Room]:
        with self._lock:
            return list(self._rooms.values())

    def __contains__(self, code) -> bool:
        with self._lock:
            return normalize_code(code) in self._rooms

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)
