import json
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from escape_legacy.cli import app
from escape_legacy.core.config import CONFIG_ENV_VAR
from escape_legacy.core.db import put_entry
from escape_legacy.core.persistence import GAME_STATE_KEY, SaveStore


class CliTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        root = Path(self.tmp.name)
        self.root = root
        self.audit_path = root / "audit.jsonl"
        config_path = root / "escape_legacy.yaml"
        config_path.write_text(
            "saves:\n  path: ./saves.db\naudit:\n  path: ./audit.jsonl\nlogging:\n  level: WARNING\n",
            encoding="utf-8",
        )
        self.env = {CONFIG_ENV_VAR: str(config_path)}
        self.runner = CliRunner()

    def tearDown(self):
        self.tmp.cleanup()

    def invoke(self, *args, input=None):
        return self.runner.invoke(app, list(args), env=self.env, input=input)

    def test_version(self):
        result = self.invoke("--version")
        self.assertEqual(result.exit_code, 0)
        self.assertTrue(result.output.strip())

    def test_commands_need_a_started_game(self):
        result = self.invoke("enter", "level1")
        self.assertEqual(result.exit_code, 3)
        self.assertIn("No game in progress", result.output)

    def test_instructions_shown_once(self):
        first = self.invoke("start")
        self.assertEqual(first.exit_code, 0)
        self.assertIn("Welcome to Escape Legacy", first.output)

        second = self.invoke("start")
        self.assertEqual(second.exit_code, 0)
        self.assertNotIn("Welcome to Escape Legacy", second.output)
        self.assertIn("Resuming", second.output)

    def test_play_through_entrance(self):
        self.invoke("start")
        result = self.invoke("enter", "level1")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("The Forgotten Manor", result.output)

        result = self.invoke("take", "rusty-key")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Rusty Key", result.output)
        self.assertEqual(self.invoke("take", "rusty-key").exit_code, 4)

        result = self.invoke("solve", "entrance-lock", "--answer", "1-2-3-4", "--answer", "3-6-4-1")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Incorrect solution. Try again.", result.output)
        self.assertIn("Puzzle solved!", result.output)
        self.assertIn("Room completed", result.output)

        result = self.invoke("inventory", "--category", "keys")
        self.assertIn("rusty-key", result.output)

        result = self.invoke("status")
        self.assertIn("Grand Entrance", result.output)
        self.assertIn("Items held: 1", result.output)

        events = [json.loads(line)["event"] for line in self.audit_path.read_text(encoding="utf-8").splitlines()]
        self.assertEqual(events, ["start", "enter", "take", "solve"])

    def test_hunt_rewards_item(self):
        self.invoke("start")
        self.invoke("enter", "level1")
        result = self.invoke(
            "search", "hidden-compartment",
            "--found", "loose-panel", "--found", "brass-latch", "--found", "hollow-niche",
        )
        self.assertEqual(result.exit_code, 0)
        self.assertIn("Hunt completed successfully!", result.output)
        self.assertIn("Old Photograph", result.output)
        self.assertEqual(self.invoke("search", "hidden-compartment").exit_code, 4)

    def test_locked_places(self):
        self.invoke("start")
        self.assertEqual(self.invoke("enter", "level2").exit_code, 4)
        self.assertEqual(self.invoke("enter", "level99").exit_code, 2)
        self.invoke("enter", "level1")
        self.assertEqual(self.invoke("room", "manor-study").exit_code, 4)
        self.assertEqual(self.invoke("unlock", "manor-study").exit_code, 5)
        self.assertEqual(self.invoke("room", "manor-library").exit_code, 0)

    def test_combine_without_items(self):
        self.invoke("start")
        result = self.invoke("combine", "strange-device", "crystal")
        self.assertEqual(result.exit_code, 5)
        self.assertIn("You need both items", result.output)

    def test_settings_persist(self):
        self.invoke("start")
        self.assertEqual(self.invoke("settings", "theme", "light").exit_code, 0)
        self.assertEqual(self.invoke("settings", "theme", "neon").exit_code, 2)
        self.assertEqual(self.invoke("settings", "music", "0.3").exit_code, 0)
        self.assertNotEqual(self.invoke("settings", "sfx", "1.5").exit_code, 0)
        self.invoke("settings", "sound")

        result = self.invoke("settings", "show")
        self.assertIn("Theme: light", result.output)
        self.assertIn("Sound: off", result.output)
        self.assertIn("Music volume: 0.3", result.output)

    def test_reset(self):
        self.invoke("start")
        self.invoke("enter", "level1")
        result = self.invoke("reset", "--yes")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("not started", self.invoke("status").output)

    def test_story(self):
        self.invoke("start")
        self.invoke("enter", "level1")
        result = self.invoke("story")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("The Case", result.output)

    def test_corrupt_save_falls_back_to_a_new_game(self):
        self.invoke("start")
        saves = SaveStore.open(str(self.root / "saves.db"))
        put_entry(saves.conn, GAME_STATE_KEY, json.dumps({"settings": {}, "player": {"inventory": [["x"]]}}))
        saves.close()

        result = self.invoke("status")
        self.assertEqual(result.exit_code, 0)
        self.assertIn("not started", result.output)
        self.assertEqual(self.invoke("reset", "--yes").exit_code, 0)

    def test_malformed_catalog_is_reported(self):
        catalog_path = self.root / "catalog.yaml"
        config_path = self.root / "broken.yaml"
        config_path.write_text("catalog:\n  path: ./catalog.yaml\n", encoding="utf-8")
        for content in ["levels: [level1]\n", "levels: [\n", "- just a list\n"]:
            with self.subTest(content=content):
                catalog_path.write_text(content, encoding="utf-8")
                result = self.runner.invoke(app, ["levels", "--config", str(config_path)])
                self.assertEqual(result.exit_code, 1)
                self.assertIn("❌", result.output)

    def test_bad_config_section(self):
        config_path = self.root / "broken.yaml"
        config_path.write_text("saves: ./saves.db\n", encoding="utf-8")
        result = self.runner.invoke(app, ["levels", "--config", str(config_path)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("config section saves", result.output)

    def test_bad_config_path(self):
        result = self.runner.invoke(app, ["status", "--config", "missing.yaml"])
        self.assertEqual(result.exit_code, 1)


if __name__ == "__main__":
    unittest.main()
