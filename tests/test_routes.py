import os
import unittest
from unittest import mock

from backend.impostor.config import socketio_async_mode
from backend.impostor.game import words
from backend.impostor.server import create_app
from fakes import ManualTimers


class TestHttpRoutes(unittest.TestCase):
    def setUp(self):
        self.app, self.socketio = create_app(async_mode="threading", start_timer=ManualTimers().start)
        self.http = self.app.test_client()
        self.game = self.app.extensions["impostor"]

    def test_health(self):
        resp = self.http.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json(), {"ok": True})

    def test_categories(self):
        resp = self.http.get("/api/categories")
        self.assertEqual(resp.get_json()["categories"], words.categories())

    def test_unknown_room(self):
        resp = self.http.get("/api/rooms/ZZZZ")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.get_json(), {"error": "room_not_found"})

    def test_room_state_hides_round_secrets(self):
        host = self.socketio.test_client(self.app)
        code = host.emit("create_room", {"nickname": "Host"}, callback=True)["roomCode"]
        guests = [self.socketio.test_client(self.app) for _ in range(2)]
        for name, guest in zip(("Ana", "Bo"), guests):
            guest.emit("join_room", {"roomCode": code, "nickname": name}, callback=True)
        host.emit("start_game", {"roomCode": code}, callback=True)
        room = self.game.registry.get(code)

        state = self.http.get(f"/api/rooms/{room.code.lower()}").get_json()
        self.assertEqual(state["code"], room.code)
        self.assertEqual(state["phase"], "active")
        self.assertEqual(state["hostId"], room.players[0].id)
        self.assertEqual(state["roundId"], room.round.round_id)
        self.assertNotIn("word", state)
        self.assertTrue(all("role" not in p for p in state["players"]))


class TestAsyncMode(unittest.TestCase):
    def test_environment_wins(self):
        with mock.patch.dict(os.environ, {"SOCKETIO_ASYNC_MODE": "threading"}):
            self.assertEqual(socketio_async_mode(), "threading")

    def test_default_is_a_supported_mode(self):
        with mock.patch.dict(os.environ, {"SOCKETIO_ASYNC_MODE": ""}):
            self.assertIn(socketio_async_mode(), ("threading", "eventlet"))

    def test_app_uses_requested_mode(self):
        _, socketio = create_app(async_mode="threading", start_timer=ManualTimers().start)
        self.assertEqual(socketio.async_mode, "threading")


if __name__ == '__main__':
    unittest.main()
