import json
import unittest

from escape_legacy.core import actions
from escape_legacy.core.catalog import load_catalog
from escape_legacy.core.db import put_entry
from escape_legacy.core.models import initial_state
from escape_legacy.core.persistence import GAME_STATE_KEY, SaveStore, state_to_dict
from escape_legacy.core.reducer import apply_action


CATALOG = load_catalog()


class SaveStoreTests(unittest.TestCase):
    def setUp(self):
        self.saves = SaveStore.open(":memory:")

    def tearDown(self):
        self.saves.close()

    def test_empty_store(self):
        self.assertIsNone(self.saves.load_state())
        self.assertFalse(self.saves.has_saved_state())

    def test_round_trip(self):
        state = initial_state(CATALOG)
        journal = CATALOG.room("manor-entrance").items[0]
        for action in [
            actions.StartGame(),
            actions.SetTheme("light"),
            actions.SetCurrentLevel("level1"),
            actions.AddItemToInventory(journal),
            actions.SolvePuzzle("level1", "manor-entrance", "entrance-lock"),
            actions.CompleteHunt("hidden-compartment"),
        ]:
            state = apply_action(CATALOG, state, action)

        self.saves.save_state(state)
        self.assertTrue(self.saves.has_saved_state())
        self.assertEqual(self.saves.load_state(), state)

    def test_garbage_payload_is_discarded(self):
        put_entry(self.saves.conn, GAME_STATE_KEY, "{not json")
        with self.assertLogs("escape_legacy.core.persistence", level="WARNING"):
            self.assertIsNone(self.saves.load_state())

    def test_wrong_shape_is_discarded(self):
        for payload in [[], {"settings": {}}, {"settings": {"theme": "neon"}}]:
            with self.subTest(payload=payload):
                put_entry(self.saves.conn, GAME_STATE_KEY, json.dumps(payload))
                with self.assertLogs("escape_legacy.core.persistence", level="WARNING"):
                    self.assertIsNone(self.saves.load_state())

    def test_malformed_nested_entries_are_discarded(self):
        def corrupt(mutate):
            data = state_to_dict(initial_state(CATALOG))
            mutate(data)
            return data

        cases = {
            "null item": lambda d: d["player"].update(inventory=[None]),
            "list item": lambda d: d["player"].update(inventory=[["x"]]),
            "string item": lambda d: d["player"].update(inventory=["rusty-key"]),
            "scalar reveals": lambda d: d["player"].update(
                inventory=[{"item_id": "a", "name": "A", "reveals": "journal"}]
            ),
            "settings as string": lambda d: d.update(settings="dark"),
            "player as list": lambda d: d.update(player=[]),
        }
        for name, mutate in cases.items():
            with self.subTest(case=name):
                put_entry(self.saves.conn, GAME_STATE_KEY, json.dumps(corrupt(mutate)))
                with self.assertLogs("escape_legacy.core.persistence", level="WARNING"):
                    self.assertIsNone(self.saves.load_state())

    def test_writes_on_a_closed_database_are_logged(self):
        self.saves.close()
        with self.assertLogs("escape_legacy.core.persistence", level="WARNING") as logs:
            self.saves.save_state(initial_state(CATALOG))
            self.saves.clear_state()
            self.saves.mark_instructions_shown()
        self.assertEqual(len(logs.records), 3)

    def test_progress_is_clamped_on_load(self):
        data = state_to_dict(initial_state(CATALOG))
        data["player"]["game_progress"] = 250
        put_entry(self.saves.conn, GAME_STATE_KEY, json.dumps(data))
        self.assertEqual(self.saves.load_state().player.game_progress, 100.0)

    def test_clear_state(self):
        self.saves.save_state(initial_state(CATALOG))
        self.saves.clear_state()
        self.assertIsNone(self.saves.load_state())

    def test_first_play_flag(self):
        self.assertTrue(self.saves.is_first_play())
        self.saves.mark_instructions_shown()
        self.assertFalse(self.saves.is_first_play())


if __name__ == "__main__":
    unittest.main()
