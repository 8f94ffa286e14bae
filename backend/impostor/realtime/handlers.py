from __future__ import annotations

import logging
from typing import Any

from flask import request
from flask_socketio import SocketIO, emit

from ..game.errors import CapacityError, RoomRejection
from ..game.service import GameService
from ..utils.ip import get_client_ip

logger = logging.getLogger(__name__)


def _reject(exc: RoomRejection | CapacityError) -> dict:
    emit("error_message", exc.message)
    return {"ok": False, "error": exc.code}


def _avatar(payload: dict) -> Any:
    # Older clients send the avatar as avatarConfig.
    if "avatar" in payload:
        return payload.get("avatar")
    return payload.get("avatarConfig")


def register_socketio_handlers(socketio: SocketIO, game: GameService) -> None:
    @socketio.on("connect")
    def on_connect(auth=None):
        logger.info("[CONN] %s connected from %s", request.sid, get_client_ip(request))

    @socketio.on("create_room")
    def create_room(data):
        payload = data or {}
        nickname = str(payload.get("nickname", "")).strip()
        settings = payload.get("settings")

        try:
            room = game.create_room(request.sid, nickname, _avatar(payload), settings)
        except (RoomRejection, CapacityError) as exc:
            return _reject(exc)

        return {"ok": True, "roomCode": room.code}

    @socketio.on("join_room")
    def join_room(data):
        payload = data or {}
        room_code = str(payload.get("roomCode", "")).strip()
        nickname = str(payload.get("nickname", "")).strip()

        if not room_code:
            emit("error_message", "Room does not exist")
            return {"ok": False, "error": "room_not_found"}

        try:
            room = game.join_room(request.sid, room_code, nickname, _avatar(payload))
        except RoomRejection as exc:
            return _reject(exc)

        return {"ok": True, "roomCode": room.code}

    @socketio.on("start_game")
    def start_game(data):
        payload = data or {}
        room_code = str(payload.get("roomCode", "")).strip()
        if not room_code:
            return {"ok": False}

        settings: dict[str, Any] = {}
        if isinstance(payload.get("config"), dict):
            settings.update(payload["config"])
        if isinstance(payload.get("categoryId"), str) and payload["categoryId"].strip():
            settings["categoryId"] = payload["categoryId"].strip()

        try:
            rnd = game.start_game(request.sid, room_code, settings or None)
        except RoomRejection as exc:
            return _reject(exc)

        if rnd is None:
            return {"ok": False}
        return {"ok": True, "roundId": rnd.round_id}

    @socketio.on("start_debate")
    def start_debate(data):
        payload = data or {}
        room_code = str(payload.get("roomCode", "")).strip()
        if not room_code:
            return {"ok": False}

        return {"ok": game.start_debate(request.sid, room_code)}

    @socketio.on("vote_player")
    def vote_player(data):
        payload = data or {}
        room_code = str(payload.get("roomCode", "")).strip()
        voted_id = str(payload.get("votedId", "")).strip()
        if not room_code or not voted_id:
            return {"ok": False}

        results = game.vote(request.sid, room_code, voted_id)
        return {"ok": True, "resolved": results is not None}

    @socketio.on("return_to_lobby")
    def return_to_lobby(data):
        payload = data or {}
        room_code = str(payload.get("roomCode", "")).strip()
        if not room_code:
            return {"ok": False}

        return {"ok": game.return_to_lobby(request.sid, room_code)}

    @socketio.on("leave_room")
    def leave_room(data=None):
        payload = data or {}
        room_code = str(payload.get("roomCode", "")).strip() or None
        game.leave(request.sid, room_code)
        return {"ok": True}

    @socketio.on("disconnect")
    def on_disconnect(reason=None):
        logger.info("[CONN] %s disconnected (%s)", request.sid, reason)
        game.disconnect(request.sid)

    @socketio.on_error_default
    def on_error(exc):
        logger.exception("[CONN] unhandled error for %s: %s", request.sid, exc)
