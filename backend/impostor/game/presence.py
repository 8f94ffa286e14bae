from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass
from threading import Lock
from typing import Callable

logger = logging.getLogger(__name__)

# start_timer(delay_sec, callback) runs callback once after delay_sec.
TimerStarter = Callable[[float, Callable[[], None]], None]


@dataclass(frozen=True)
class PendingRemoval:
    token: int
    room_code: str
    name: str
    sid: str


class PresenceManager:
    """Grace-period timers for disconnected players.

    Every connection loss gets a fresh loss token. A timer can only act while its
    token is still the pending one for that (room, player); reconnecting or a newer
    disconnect replaces or drops the entry, so a superseded timer fires into nothing.
    Callers hold the room lock around arm/cancel/claim.
    """

    def __init__(self, grace_period_sec: float, start_timer: TimerStarter) -> None:
        self.grace_period_sec = grace_period_sec
        self._start_timer = start_timer
        self._tokens = itertools.count(1)
        self._lock = Lock()
        self._pending: dict[tuple[str, str], PendingRemoval] = {}

    def arm(self, room_code: str, name: str, sid: str, on_expire: Callable[[PendingRemoval], None]) -> PendingRemoval:
        with self._lock:
            pending = PendingRemoval(next(self._tokens), room_code, name, sid)
            self._pending[(room_code, name)] = pending

        logger.info(
            "[PRESENCE] %s lost %s (sid=%s token=%s), grace %.1fs",
            room_code, name, sid, pending.token, self.grace_period_sec,
        )
        self._start_timer(self.grace_period_sec, lambda: on_expire(pending))
        return pending

    def cancel(self, room_code: str, name: str) -> PendingRemoval | None:
        with self._lock:
            pending = self._pending.pop((room_code, name), None)
        if pending is not None:
            logger.info("[PRESENCE] %s cancelled removal of %s (token=%s)", room_code, name, pending.token)
        return pending

    def claim(self, pending: PendingRemoval) -> bool:
        """Consumes the entry if this timer is still the current one."""
        with self._lock:
            current = self._pending.get((pending.room_code, pending.name))
            if current is None or current.token != pending.token:
                return False
            del self._pending[(pending.room_code, pending.name)]
            return True

    def is_pending(self, room_code: str, name: str) -> bool:
        with self._lock:
            return (room_code, name) in self._pending

    def discard_room(self, room_code: str) -> None:
        with self._lock:
            for key in [k for k in self._pending if k[0] == room_code]:
                del self._pending[key]
