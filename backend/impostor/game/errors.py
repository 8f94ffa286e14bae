from __future__ import annotations


class RoomRejection(Exception):
    """A user-facing refusal. Room state is left untouched."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


class CapacityError(Exception):
    code = "capacity_exhausted"
    message = "No room codes available, try again later"


def room_not_found() -> RoomRejection:
    return RoomRejection("room_not_found", "Room does not exist")


def room_full() -> RoomRejection:
    return RoomRejection("room_full", "Room is full")


def game_in_progress() -> RoomRejection:
    return RoomRejection("game_in_progress", "Game already started")


def not_enough_players(minimum: int) -> RoomRejection:
    return RoomRejection("not_enough_players", f"At least {minimum} players are needed to start")


def nickname_taken() -> RoomRejection:
    return RoomRejection("nickname_taken", "Nickname already in use in this room")


def invalid_payload() -> RoomRejection:
    return RoomRejection("invalid_payload", "Invalid request")


def already_joined() -> RoomRejection:
    return RoomRejection("already_joined", "This connection already joined the room under another nickname")
