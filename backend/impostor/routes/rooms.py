from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..game import words
from ..game.service import room_public_state

bp = Blueprint("rooms", __name__)


def _game():
    return current_app.extensions["impostor"]


@bp.get("/rooms/<code>")
def get_room(code: str):
    room = _game().registry.get(code)
    if not room:
        return jsonify({"error": "room_not_found"}), 404
    return jsonify(room_public_state(room))


@bp.get("/categories")
def get_categories():
    return jsonify({"categories": words.categories()})
