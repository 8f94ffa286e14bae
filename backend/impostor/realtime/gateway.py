from __future__ import annotations

from typing import Any

from flask_socketio import SocketIO


class SocketIOGateway:
    """Delivers game events over Socket.IO.

    Channel membership goes through the underlying server rather than
    flask_socketio.join_room, so it also works outside a request context
    (grace-period timers run as background tasks).
    """

    namespace = "/"

    def __init__(self, socketio: SocketIO) -> None:
        self.socketio = socketio

    def send(self, sid: str, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, to=sid, namespace=self.namespace)

    def broadcast(self, room_code: str, event: str, payload: Any) -> None:
        self.socketio.emit(event, payload, to=room_code, namespace=self.namespace)

    def subscribe(self, sid: str, room_code: str) -> None:
        self.socketio.server.enter_room(sid, room_code, namespace=self.namespace)

    def unsubscribe(self, sid: str, room_code: str) -> None:
        self.socketio.server.leave_room(sid, room_code, namespace=self.namespace)
