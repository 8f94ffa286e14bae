from __future__ import annotations

from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Literal


Phase = Literal["lobby", "active", "debate", "resolved"]
Role = Literal["impostor", "crew"]

RANDOM_CATEGORY = "random"


@dataclass
class Player:
    # id is the current connection id and changes on every reconnect;
    # name is the durable identity within a room.
    id: str
    name: str
    avatar: Any = None
    is_host: bool = False
    connected: bool = True
    role: Role | None = None
    score: int = 0


@dataclass
class RoomConfig:
    max_players: int = 10
    allowed_categories: set[str] = field(default_factory=lambda: {RANDOM_CATEGORY})
    impostor_count: int = 1


@dataclass
class Round:
    round_id: str
    word: str
    category: str
    # Durable names, never connection ids.
    impostors: set[str] = field(default_factory=set)
    # Public view of every player as dealt, for players who leave mid-round.
    seats: dict[str, dict] = field(default_factory=dict)
    # Filled on resolution, keyed by target name.
    tally: dict[str, int] | None = None
    most_voted: str | None = None
    is_tie: bool = False


@dataclass
class Room:
    code: str
    config: RoomConfig = field(default_factory=RoomConfig)
    phase: Phase = "lobby"
    players: list[Player] = field(default_factory=list)
    round: Round | None = None
    # voter name -> target name
    votes: dict[str, str] = field(default_factory=dict)
    lock: RLock = field(default_factory=RLock, repr=False, compare=False)

    @property
    def host(self) -> Player | None:
        for p in self.players:
            if p.is_host:
                return p
        return None

    @property
    def host_id(self) -> str | None:
        host = self.host
        return host.id if host else None
