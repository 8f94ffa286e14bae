"""Maps connection ids to durable player identities (nicknames).

Everything that needs to survive a reconnect refers to players by name; the
connection id is only an attribute of the Player, so rebinding a player to a
new connection is a single assignment.
"""
from __future__ import annotations

from typing import Any

from .models import Player, Room
from .registry import RoomRegistry

MAX_NAME_LENGTH = 16


def validate_name(name: str) -> bool:
    n = (name or "").strip()
    if not n:
        return False
    if len(n) > MAX_NAME_LENGTH:
        return False
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        return False
    # No control characters.
    for ch in n:
        if ord(ch) < 32:
            return False
    return True


def name_key(name: str) -> str:
    return (name or "").strip().casefold()


def normalize_avatar(raw: Any) -> Any:
    # Rendered by clients only; passed through as long as it is JSON-shaped.
    if isinstance(raw, (dict, list, str, int, float)) or raw is None:
        return raw
    return None


def find_by_sid(room: Room, sid: str) -> Player | None:
    for p in room.players:
        if p.id == sid:
            return p
    return None


def find_by_name(room: Room, name: str) -> Player | None:
    key = name_key(name)
    for p in room.players:
        if name_key(p.name) == key:
            return p
    return None


def sid_for(room: Room, name: str | None) -> str | None:
    if name is None:
        return None
    player = find_by_name(room, name)
    return player.id if player else None


def rebind(player: Player, sid: str) -> str:
    """Points a player at a new connection; returns the old connection id."""
    old_sid = player.id
    player.id = sid
    player.connected = True
    return old_sid


def locate(registry: RoomRegistry, sid: str) -> list[tuple[Room, Player]]:
    # Linear scan; a connection normally sits in at most one room.
    found = []
    for room in registry.list():
        player = find_by_sid(room, sid)
        if player is not None:
            found.append((room, player))
    return found
