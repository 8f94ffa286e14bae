from __future__ import annotations

import logging
import random
import uuid
from typing import Any, Callable, Protocol

from ..config import Config
from . import errors, identity, words
from .models import RANDOM_CATEGORY, Player, Room, RoomConfig, Round
from .presence import PendingRemoval, PresenceManager
from .registry import RoomRegistry, normalize_code

logger = logging.getLogger(__name__)


class Gateway(Protocol):
    def send(self, sid: str, event: str, payload: Any) -> None: ...

    def broadcast(self, room_code: str, event: str, payload: Any) -> None: ...

    def subscribe(self, sid: str, room_code: str) -> None: ...

    def unsubscribe(self, sid: str, room_code: str) -> None: ...


WordSource = Callable[[str, random.Random], "tuple[str, str]"]


def player_public(p: Player) -> dict:
    # Roles stay server-side until the round is resolved.
    return {
        "id": p.id,
        "name": p.name,
        "avatar": p.avatar,
        "isHost": p.is_host,
        "connected": p.connected,
        "score": p.score,
    }


def roster(room: Room) -> list[dict]:
    return [player_public(p) for p in room.players]


def _as_int(raw: Any, default: int) -> int:
    if isinstance(raw, bool):
        return default
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def normalize_settings(raw: dict | None, base: RoomConfig | None = None) -> RoomConfig:
    """Builds a RoomConfig from client settings. Bad values are clamped, not rejected."""
    raw = raw if isinstance(raw, dict) else {}
    base = base or RoomConfig(
        max_players=Config.DEFAULT_MAX_PLAYERS,
        impostor_count=Config.DEFAULT_IMPOSTOR_COUNT,
    )

    max_players = _as_int(raw.get("maxPlayers"), base.max_players)
    max_players = max(Config.MIN_PLAYERS, min(max_players, Config.MAX_PLAYERS_LIMIT))

    impostor_count = max(1, _as_int(raw.get("impostorCount"), base.impostor_count))

    allowed = set(base.allowed_categories)
    requested = raw.get("allowedCategories", raw.get("categories"))
    if isinstance(raw.get("categoryId"), str):
        requested = [raw["categoryId"]]
    if isinstance(requested, str):
        requested = [requested]
    if isinstance(requested, (list, tuple, set)):
        known = set(words.categories()) | {RANDOM_CATEGORY}
        allowed = {c for c in requested if isinstance(c, str) and c in known} or {RANDOM_CATEGORY}

    return RoomConfig(max_players=max_players, allowed_categories=allowed, impostor_count=impostor_count)


def clamp_impostor_count(desired: int, player_count: int) -> int:
    upper = max(1, (player_count - 1) // 2)
    return max(1, min(desired, upper))


def tally_votes(votes: dict[str, str]) -> tuple[dict[str, int], str | None, bool]:
    """Returns (counts per target, sole leader or None, tie at the top)."""
    counts: dict[str, int] = {}
    for target in votes.values():
        counts[target] = counts.get(target, 0) + 1

    max_votes = 0
    leader = None
    is_tie = False
    for target, n in counts.items():
        if n > max_votes:
            max_votes = n
            leader = target
            is_tie = False
        elif n == max_votes:
            is_tie = True

    if is_tie:
        leader = None
    return counts, leader, is_tie


def room_public_state(room: Room) -> dict:
    with room.lock:
        return {
            "code": room.code,
            "phase": room.phase,
            "hostId": room.host_id,
            "players": roster(room),
            "config": {
                "maxPlayers": room.config.max_players,
                "allowedCategories": sorted(room.config.allowed_categories),
                "impostorCount": room.config.impostor_count,
            },
            "roundId": room.round.round_id if room.round else None,
        }


class GameService:
    """Room state machine. Every transition runs under the room's lock."""

    def __init__(
        self,
        registry: RoomRegistry,
        gateway: Gateway,
        presence: PresenceManager,
        rng: random.Random | None = None,
        word_source: WordSource = words.random_word,
        min_players: int | None = None,
    ) -> None:
        self.registry = registry
        self.gateway = gateway
        self.presence = presence
        self.rng = rng or random.Random()
        self.word_source = word_source
        self.min_players = min_players or Config.MIN_PLAYERS

    # -- joining -------------------------------------------------------------

    def create_room(self, sid: str, nickname: str, avatar: Any = None, settings: dict | None = None) -> Room:
        if not identity.validate_name(nickname):
            raise errors.invalid_payload()

        host = Player(id=sid, name=nickname.strip(), avatar=identity.normalize_avatar(avatar), is_host=True)
        room = self.registry.create(normalize_settings(settings), host=host)
        with room.lock:
            self.gateway.subscribe(sid, room.code)
            logger.info("[ROOM] %s host %s (sid=%s)", room.code, host.name, sid)
            self.gateway.send(sid, "room_created", {"roomCode": room.code, "players": roster(room)})
        return room

    def join_room(self, sid: str, code, nickname: str, avatar: Any = None) -> Room:
        if not identity.validate_name(nickname):
            raise errors.invalid_payload()

        room = self.registry.get(code)
        if room is None:
            raise errors.room_not_found()

        with room.lock:
            # Destroyed while we waited for the lock.
            if room.code not in self.registry:
                raise errors.room_not_found()

            existing = identity.find_by_name(room, nickname)
            same_sid = identity.find_by_sid(room, sid)
            if same_sid is not None and same_sid is not existing:
                raise errors.already_joined()

            if existing is not None:
                if existing.id == sid:
                    self.gateway.send(sid, "room_joined", self._joined_payload(room))
                    return room
                # Lobby: another person. Mid-round: the same player on a new
                # connection before the old one timed out.
                if existing.connected and room.phase == "lobby":
                    raise errors.nickname_taken()
                self._rebind(room, existing, sid, avatar)
                return room

            if room.phase != "lobby":
                raise errors.game_in_progress()
            if len(room.players) >= room.config.max_players:
                raise errors.room_full()

            player = Player(
                id=sid,
                name=nickname.strip(),
                avatar=identity.normalize_avatar(avatar),
                is_host=not room.players,
            )
            room.players.append(player)
            self.gateway.subscribe(sid, room.code)
            logger.info("[ROOM] %s joined by %s (sid=%s)", room.code, player.name, sid)

            self.gateway.broadcast(room.code, "update_players", roster(room))
            self.gateway.send(sid, "room_joined", self._joined_payload(room))
        return room

    def _joined_payload(self, room: Room) -> dict:
        return {"roomCode": room.code, "players": roster(room), "phase": room.phase}

    def _rebind(self, room: Room, player: Player, sid: str, avatar: Any) -> None:
        self.presence.cancel(room.code, player.name)
        was_connected = player.connected
        old_sid = identity.rebind(player, sid)
        if was_connected:
            self.gateway.unsubscribe(old_sid, room.code)
        if avatar is not None:
            player.avatar = identity.normalize_avatar(avatar)
        self.gateway.subscribe(sid, room.code)
        logger.info("[ROOM] %s rejoined by %s (sid %s -> %s)", room.code, player.name, old_sid, sid)

        self.gateway.broadcast(room.code, "update_players", roster(room))
        self.gateway.send(sid, "room_joined", self._joined_payload(room))
        self._sync_round(room, player)

    def _sync_round(self, room: Room, player: Player) -> None:
        if room.round is None or room.phase == "lobby":
            return
        self.gateway.send(player.id, "game_started", self._round_view(room, player))
        if room.phase == "debate":
            self.gateway.send(player.id, "debate_started", {"roundId": room.round.round_id})
        elif room.phase == "resolved":
            self.gateway.send(player.id, "voting_results", self._results_payload(room))

    # -- round ---------------------------------------------------------------

    def _pick_category(self, config: RoomConfig) -> str:
        if RANDOM_CATEGORY in config.allowed_categories:
            return RANDOM_CATEGORY
        return self.rng.choice(sorted(config.allowed_categories))

    def _round_view(self, room: Room, player: Player) -> dict:
        rnd = room.round
        is_impostor = player.name in rnd.impostors
        return {
            "roundId": rnd.round_id,
            "role": "impostor" if is_impostor else "crew",
            "word": Config.MASKED_WORD if is_impostor else rnd.word,
            "category": rnd.category,
            "players": roster(room),
            "impostorCount": len(rnd.impostors),
            "phase": room.phase,
        }

    def start_game(self, sid: str, code, settings: dict | None = None) -> Round | None:
        room = self.registry.get(code)
        if room is None:
            return None

        with room.lock:
            if room.code not in self.registry:
                return None
            # Non-host callers are ignored without feedback.
            if room.host_id != sid:
                return None
            if room.phase in ("active", "debate"):
                raise errors.game_in_progress()
            if len(room.players) < self.min_players:
                raise errors.not_enough_players(self.min_players)

            config = normalize_settings(settings, room.config) if settings else room.config
            word, category = self.word_source(self._pick_category(config), self.rng)

            count = clamp_impostor_count(config.impostor_count, len(room.players))
            shuffled = list(room.players)
            self.rng.shuffle(shuffled)
            impostors = {p.name for p in shuffled[:count]}

            room.config = config
            room.round = Round(
                round_id=uuid.uuid4().hex,
                word=word,
                category=category,
                impostors=impostors,
                seats={p.name: player_public(p) for p in room.players},
            )
            room.votes = {}
            room.phase = "active"
            for p in room.players:
                p.role = "impostor" if p.name in impostors else "crew"

            logger.info(
                "[ROOM] %s round %s started: %d players, %d impostor(s), category %s",
                room.code, room.round.round_id, len(room.players), count, category,
            )
            logger.debug("[ROOM] %s word=%s impostors=%s", room.code, word, sorted(impostors))

            for p in room.players:
                if p.connected:
                    self.gateway.send(p.id, "game_started", self._round_view(room, p))
            return room.round

    def start_debate(self, sid: str, code) -> bool:
        room = self.registry.get(code)
        if room is None:
            return False

        with room.lock:
            if identity.find_by_sid(room, sid) is None:
                return False
            if room.phase != "active" or room.round is None:
                return False

            room.votes = {}
            room.phase = "debate"
            logger.info("[ROOM] %s debate started (round %s)", room.code, room.round.round_id)

            # Per player rather than to the room channel, so freshly rebound
            # connections get it too.
            for p in room.players:
                if p.connected:
                    self.gateway.send(p.id, "debate_started", {"roundId": room.round.round_id})
            return True

    def vote(self, sid: str, code, voted_id: str) -> dict | None:
        """Records a ballot. Returns the results payload if this vote closed the round."""
        room = self.registry.get(code)
        if room is None:
            return None

        with room.lock:
            if room.phase != "debate" or room.round is None:
                return None
            voter = identity.find_by_sid(room, sid)
            target = identity.find_by_sid(room, voted_id)
            if voter is None or target is None:
                return None

            room.votes[voter.name] = target.name
            logger.debug("[ROOM] %s vote %s -> %s", room.code, voter.name, target.name)
            return self._maybe_resolve(room)

    def _maybe_resolve(self, room: Room) -> dict | None:
        if room.phase != "debate" or room.round is None:
            return None
        connected = sum(1 for p in room.players if p.connected)
        if connected == 0 or len(room.votes) < connected:
            return None
        return self._resolve(room)

    def _resolve(self, room: Room) -> dict:
        counts, leader, is_tie = tally_votes(room.votes)
        rnd = room.round
        rnd.tally = counts
        rnd.most_voted = leader
        rnd.is_tie = is_tie
        room.phase = "resolved"

        payload = self._results_payload(room)
        logger.info(
            "[ROOM] %s round %s resolved: caught=%s tie=%s",
            room.code, rnd.round_id, payload["impostorCaught"], is_tie,
        )
        for p in room.players:
            if p.connected:
                self.gateway.send(p.id, "voting_results", payload)
        return payload

    def _seat(self, room: Room, name: str) -> dict | None:
        """Current public view of a round participant, or the dealt one if they left."""
        player = identity.find_by_name(room, name)
        if player is not None:
            return player_public(player)
        seat = room.round.seats.get(name)
        return dict(seat, connected=False, isHost=False) if seat else None

    def _results_payload(self, room: Room) -> dict:
        # Built from names each time so reconnected players see current ids.
        rnd = room.round
        most = self._seat(room, rnd.most_voted) if rnd.most_voted else None
        impostors = [self._seat(room, name) for name in sorted(rnd.impostors)]
        return {
            "roundId": rnd.round_id,
            "impostorCaught": rnd.most_voted is not None and rnd.most_voted in rnd.impostors,
            "mostVotedPlayer": most,
            "impostors": [seat["id"] for seat in impostors if seat],
            "impostorNames": sorted(rnd.impostors),
            "isTie": rnd.is_tie,
            "votesDetail": {
                self._seat(room, target)["id"]: n
                for target, n in (rnd.tally or {}).items()
            },
        }

    def return_to_lobby(self, sid: str, code) -> bool:
        room = self.registry.get(code)
        if room is None:
            return False

        with room.lock:
            if room.host_id != sid or room.phase != "resolved":
                return False
            room.phase = "lobby"
            room.round = None
            room.votes = {}
            for p in room.players:
                p.role = None
            logger.info("[ROOM] %s back to lobby", room.code)
            self.gateway.broadcast(room.code, "returned_to_lobby", {"roomCode": room.code, "players": roster(room)})
            return True

    # -- presence ------------------------------------------------------------

    def disconnect(self, sid: str) -> None:
        for room, _ in identity.locate(self.registry, sid):
            with room.lock:
                # Re-read under the lock; a concurrent leave or rebind may have won.
                player = identity.find_by_sid(room, sid)
                if room.code not in self.registry or player is None or not player.connected:
                    continue
                player.connected = False
                self.gateway.broadcast(room.code, "update_players", roster(room))
                self.presence.arm(room.code, player.name, sid, self._expire)
                self._maybe_resolve(room)

    def _expire(self, pending: PendingRemoval) -> None:
        room = self.registry.get(pending.room_code)
        if room is None:
            return

        with room.lock:
            if not self.presence.claim(pending):
                return
            player = identity.find_by_name(room, pending.name)
            if player is None or player.connected or player.id != pending.sid:
                return
            logger.info("[PRESENCE] %s grace expired for %s (token=%s)", room.code, player.name, pending.token)
            self._remove(room, player)

    def leave(self, sid: str, code=None) -> None:
        """Voluntary exit: no grace period."""
        for room, _ in identity.locate(self.registry, sid):
            if code and room.code != normalize_code(code):
                continue
            with room.lock:
                player = identity.find_by_sid(room, sid)
                if room.code not in self.registry or player is None:
                    continue
                self.presence.cancel(room.code, player.name)
                self.gateway.unsubscribe(sid, room.code)
                logger.info("[ROOM] %s left by %s", room.code, player.name)
                self._remove(room, player)

    def _remove(self, room: Room, player: Player) -> None:
        was_host = player.is_host
        room.players.remove(player)
        room.votes = {v: t for v, t in room.votes.items() if player.name not in (v, t)}

        if not room.players:
            self.presence.discard_room(room.code)
            self.registry.destroy(room.code)
            return

        if was_host:
            successor = next((p for p in room.players if p.connected), room.players[0])
            successor.is_host = True
            logger.info("[ROOM] %s host passed from %s to %s", room.code, player.name, successor.name)

        self.gateway.broadcast(room.code, "update_players", roster(room))
        self._maybe_resolve(room)
