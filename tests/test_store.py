import unittest

from escape_legacy.core.catalog import load_catalog
from escape_legacy.core.models import initial_state
from escape_legacy.core.persistence import SaveStore
from escape_legacy.core.queries import is_item_collected
from escape_legacy.core.store import GameStore


CATALOG = load_catalog()


class GameStoreTests(unittest.TestCase):
    def setUp(self):
        self.saves = SaveStore.open(":memory:")
        self.store = GameStore.open(CATALOG, self.saves)

    def tearDown(self):
        self.saves.close()

    def enter(self, level_id, room_id=None):
        self.store.start_game()
        self.store.set_current_level(level_id)
        if room_id is not None:
            self.store.set_current_room(room_id)

    def grant(self, room_id, item_id):
        item = next(i for i in CATALOG.room(room_id).items if i.item_id == item_id)
        self.store.add_item_to_inventory(item)

    def test_subscribers_see_each_change(self):
        seen = []
        unsubscribe = self.store.subscribe(seen.append)
        self.store.start_game()
        self.store.set_current_level("level99")
        self.store.set_theme("light")
        unsubscribe()
        self.store.toggle_sound()
        self.assertEqual(len(seen), 2)
        self.assertEqual(seen[-1].settings.theme, "light")

    def test_saves_only_once_started(self):
        self.store.set_theme("light")
        self.assertFalse(self.saves.has_saved_state())
        self.store.start_game()
        self.assertEqual(self.saves.load_state(), self.store.state)

    def test_reopen_restores_saved_game(self):
        self.enter("level1")
        self.grant("manor-entrance", "rusty-key")
        reopened = GameStore.open(CATALOG, self.saves)
        self.assertEqual(reopened.state, self.store.state)

    def test_reset_clears_save(self):
        self.enter("level1")
        self.store.reset_game()
        self.assertEqual(self.store.state, initial_state(CATALOG))
        self.assertFalse(self.saves.has_saved_state())

    def test_collect_item(self):
        self.enter("level1")
        self.assertEqual(self.store.collect_item("rusty-key").name, "Rusty Key")
        self.assertIsNone(self.store.collect_item("rusty-key"))
        self.assertIsNone(self.store.collect_item("crystal"))
        self.assertEqual(len(self.store.state.player.inventory), 1)

    def test_combine_is_commutative(self):
        self.enter("level1")
        for order in [("strange-device", "crystal"), ("crystal", "strange-device")]:
            with self.subTest(order=order):
                self.store.reset_game()
                self.store.start_game()
                self.grant("manor-study", "strange-device")
                self.grant("manor-basement", "crystal")
                result = self.store.combine_items(*order)
                self.assertTrue(result.success)
                self.assertEqual(result.message, "Created: Resonance Lens!")
                self.assertEqual([i.item_id for i in self.store.state.player.inventory], ["resonance-lens"])

    def test_combine_failures(self):
        self.enter("level1")
        self.grant("manor-study", "strange-device")
        result = self.store.combine_items("strange-device", "rusty-key")
        self.assertFalse(result.success)
        self.assertEqual(result.message, "These items cannot be combined together.")
        result = self.store.combine_items("strange-device", "crystal")
        self.assertFalse(result.success)
        self.assertEqual(result.message, "You need both items in your inventory to combine them.")

    def test_solving_last_puzzle_completes_room(self):
        self.enter("level1")
        attempt = self.store.start_puzzle("entrance-lock")
        result = self.store.submit_answer(attempt, "3-6-4-1")
        self.assertEqual(result.status, "solved")
        self.assertIn("manor-entrance", self.store.state.player.completed_rooms)
        self.assertIsNone(self.store.start_puzzle("entrance-lock"))

    def test_hidden_object_puzzle_needs_items(self):
        self.enter("level1", "manor-library")
        self.assertIsNone(self.store.start_puzzle("desk-drawer"))
        self.assertIsNone(self.store.start_search("desk-drawer"))
        self.store.collect_item("magnifying-glass")
        search = self.store.start_search("desk-drawer")
        self.store.discover(search, "carved-rose")
        self.store.discover(search, "worn-knob")
        self.assertIn("desk-drawer", self.store.state.player.solved_puzzles)

    def test_hunt_grants_reward_once(self):
        self.enter("level1", "manor-library")
        search = self.store.start_search("hidden-safe")
        for object_id in ["false-spine", "shelf-hinge", "safe-dial"]:
            result = self.store.discover(search, object_id)
        self.assertEqual(result.status, "completed")
        self.assertIn("hidden-safe", self.store.state.player.completed_hunts)
        self.assertTrue(is_item_collected(self.store.state, "study-key"))
        self.assertIsNone(self.store.start_search("hidden-safe"))
        self.assertFalse(self.store.can_use_item("study-key"))

    def test_finishing_level_unlocks_next(self):
        self.enter("level1")
        for room in CATALOG.level("level1").rooms:
            for puzzle in room.puzzles:
                self.store.solve_puzzle("level1", room.room_id, puzzle.puzzle_id)
            self.store._propagate_completion("level1", room.room_id)
        state = self.store.state
        self.assertIn("level1", state.player.completed_levels)
        self.assertIn("level2", state.player.unlocked_levels)
        self.assertEqual(state.player.game_progress, 50.0)
        self.assertFalse(state.game_completed)

    def test_finishing_last_level_completes_game(self):
        self.enter("level1")
        for level in CATALOG.levels:
            for room in level.rooms:
                for puzzle in room.puzzles:
                    self.store.solve_puzzle(level.level_id, room.room_id, puzzle.puzzle_id)
                self.store._propagate_completion(level.level_id, room.room_id)
        self.assertTrue(self.store.state.game_completed)
        self.assertEqual(self.store.state.player.game_progress, 100.0)


if __name__ == "__main__":
    unittest.main()
