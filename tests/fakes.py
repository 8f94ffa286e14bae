from __future__ import annotations

import random

from backend.impostor.game.presence import PresenceManager
from backend.impostor.game.registry import RoomRegistry
from backend.impostor.game.service import GameService


class RecordingGateway:
    def __init__(self):
        self.sent = []
        self.broadcasts = []
        self.channels: dict[str, set[str]] = {}

    def send(self, sid, event, payload):
        self.sent.append((sid, event, payload))

    def broadcast(self, room_code, event, payload):
        self.broadcasts.append((room_code, event, payload))

    def subscribe(self, sid, room_code):
        self.channels.setdefault(room_code, set()).add(sid)

    def unsubscribe(self, sid, room_code):
        self.channels.get(room_code, set()).discard(sid)

    def to(self, sid, event):
        return [payload for s, e, payload in self.sent if s == sid and e == event]

    def last_broadcast(self, room_code, event):
        matches = [payload for code, e, payload in self.broadcasts if code == room_code and e == event]
        return matches[-1] if matches else None

    def clear(self):
        self.sent.clear()
        self.broadcasts.clear()


class ManualTimers:
    """Collects grace timers so tests decide when they fire."""

    def __init__(self):
        self.pending = []

    def start(self, delay, callback):
        self.pending.append((delay, callback))

    def fire_all(self):
        pending, self.pending = self.pending, []
        for _, callback in pending:
            callback()


def fixed_word(category, rng):
    return "Pizza", ("comida_internacional" if category == "random" else category)


def make_service(seed=7, word_source=fixed_word, code_factory=None, gateway=None):
    gateway = gateway or RecordingGateway()
    timers = ManualTimers()
    registry = RoomRegistry(code_factory=code_factory) if code_factory else RoomRegistry()
    game = GameService(
        registry=registry,
        gateway=gateway,
        presence=PresenceManager(grace_period_sec=30, start_timer=timers.start),
        rng=random.Random(seed),
        word_source=word_source,
        min_players=3,
    )
    return game, gateway, timers


def room_with(game, names, settings=None):
    """Creates a room hosted by names[0] with the rest joined; sids are 'sid-<name>'."""
    room = game.create_room(f"sid-{names[0]}", names[0], settings=settings)
    for name in names[1:]:
        game.join_room(f"sid-{name}", room.code, name)
    return room
