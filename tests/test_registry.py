import itertools
import unittest

from backend.impostor.game.errors import CapacityError
from backend.impostor.game.models import Player, RoomConfig
from backend.impostor.game.registry import RoomRegistry, random_code


class TestRoomRegistry(unittest.TestCase):
    def test_create_returns_lobby_room_without_players(self):
        registry = RoomRegistry()
        room = registry.create(RoomConfig(max_players=5))
        self.assertEqual(room.phase, "lobby")
        self.assertEqual(room.players, [])
        self.assertEqual(room.config.max_players, 5)
        self.assertIs(registry.get(room.code), room)

    def test_create_with_host_is_never_empty(self):
        registry = RoomRegistry()
        room = registry.create(host=Player(id="sid-h", name="Host"))
        self.assertEqual([p.id for p in room.players], ["sid-h"])
        self.assertTrue(room.players[0].is_host)

    def test_codes_are_unique_and_lookup_is_case_insensitive(self):
        codes = itertools.cycle(["abcd", "ABCD", "WXYZ"])
        registry = RoomRegistry(code_factory=lambda: next(codes))
        first = registry.create()
        second = registry.create()
        self.assertEqual(first.code, "ABCD")
        self.assertEqual(second.code, "WXYZ")
        self.assertIs(registry.get("wxyz"), second)

    def test_exhausted_code_space_raises_capacity_error(self):
        registry = RoomRegistry(code_factory=lambda: "SAME", max_attempts=5)
        registry.create()
        with self.assertRaises(CapacityError):
            registry.create()
        self.assertEqual(len(registry), 1)

    def test_destroy(self):
        registry = RoomRegistry()
        room = registry.create()
        self.assertTrue(registry.destroy(room.code))
        self.assertIsNone(registry.get(room.code))
        self.assertFalse(registry.destroy(room.code))

    def test_random_code_shape(self):
        code = random_code(4)
        self.assertEqual(len(code), 4)
        self.assertTrue(code.isalpha() and code.isupper())


if __name__ == '__main__':
    unittest.main()
