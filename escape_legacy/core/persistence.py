from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import asdict
from typing import Any

from escape_legacy.core.db import connect, delete_entry, get_entry, init_db, put_entry
from escape_legacy.core.models import DialogueRef, GameSettings, GameState, Item, PlayerState


logger = logging.getLogger(__name__)

GAME_STATE_KEY = "escape_game_state"
FIRST_PLAY_KEY = "escape_legacy_first_play"
VALID_THEMES = ("dark", "light")


def state_to_dict(state: GameState) -> dict[str, Any]:
    return asdict(state)


def _str_tuple(value: Any, context: str) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{context} must be a list of strings")
    return tuple(value)


def _mapping(value: Any, context: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{context} must be a JSON object")
    return value


def _optional_str(value: Any, context: str) -> str | None:
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{context} must be a string or null")
    return value


def item_from_dict(data: dict[str, Any]) -> Item:
    data = _mapping(data, "item")
    reveals = data.get("reveals")
    return Item(
        item_id=str(data["item_id"]),
        name=str(data["name"]),
        description=str(data.get("description", "")),
        image=str(data.get("image", "")),
        category=str(data.get("category", "misc")),
        is_key=bool(data.get("is_key", False)),
        is_usable=bool(data.get("is_usable", False)),
        can_combine=bool(data.get("can_combine", False)),
        combines_with=_str_tuple(data.get("combines_with", []), "item.combines_with"),
        reveals=DialogueRef(**_mapping(reveals, "item.reveals")) if reveals else None,
    )


def _settings_from_dict(data: dict[str, Any]) -> GameSettings:
    data = _mapping(data, "settings")
    theme = data["theme"]
    if theme not in VALID_THEMES:
        raise ValueError(f"invalid theme {theme!r}")
    return GameSettings(
        theme=theme,
        sound_enabled=bool(data["sound_enabled"]),
        music_volume=float(data["music_volume"]),
        sfx_volume=float(data["sfx_volume"]),
    )


def _player_from_dict(data: dict[str, Any]) -> PlayerState:
    data = _mapping(data, "player")
    inventory = data["inventory"]
    if not isinstance(inventory, list):
        raise ValueError("player.inventory must be a list")
    return PlayerState(
        current_level_id=_optional_str(data.get("current_level_id"), "player.current_level_id"),
        current_room_id=_optional_str(data.get("current_room_id"), "player.current_room_id"),
        inventory=tuple(item_from_dict(item) for item in inventory),
        unlocked_levels=_str_tuple(data["unlocked_levels"], "player.unlocked_levels"),
        completed_levels=_str_tuple(data["completed_levels"], "player.completed_levels"),
        completed_rooms=_str_tuple(data["completed_rooms"], "player.completed_rooms"),
        completed_hunts=_str_tuple(data["completed_hunts"], "player.completed_hunts"),
        unlocked_rooms=_str_tuple(data.get("unlocked_rooms", []), "player.unlocked_rooms"),
        solved_puzzles=_str_tuple(data.get("solved_puzzles", []), "player.solved_puzzles"),
        game_progress=min(100.0, max(0.0, float(data["game_progress"]))),
    )


def state_from_dict(data: dict[str, Any]) -> GameState:
    data = _mapping(data, "saved state")
    return GameState(
        settings=_settings_from_dict(data["settings"]),
        player=_player_from_dict(data["player"]),
        story_progress=int(data.get("story_progress", 0)),
        game_started=bool(data.get("game_started", False)),
        game_completed=bool(data.get("game_completed", False)),
    )


class SaveStore:
    """Named entries in a local sqlite key-value table."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        init_db(conn)

    @classmethod
    def open(cls, db_path: str) -> "SaveStore":
        return cls(connect(db_path))

    def close(self) -> None:
        self.conn.close()

    def load_state(self) -> GameState | None:
        raw = get_entry(self.conn, GAME_STATE_KEY)
        if raw is None:
            return None
        try:
            return state_from_dict(json.loads(raw))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding unreadable saved game: %s", e)
            return None

    def save_state(self, state: GameState) -> None:
        payload = json.dumps(state_to_dict(state), ensure_ascii=False)
        try:
            put_entry(self.conn, GAME_STATE_KEY, payload)
        except sqlite3.Error as e:
            logger.warning("Could not save game state: %s", e)

    def clear_state(self) -> None:
        try:
            delete_entry(self.conn, GAME_STATE_KEY)
        except sqlite3.Error as e:
            logger.warning("Could not clear saved game: %s", e)

    def has_saved_state(self) -> bool:
        return get_entry(self.conn, GAME_STATE_KEY) is not None

    def is_first_play(self) -> bool:
        return get_entry(self.conn, FIRST_PLAY_KEY) is None

    def mark_instructions_shown(self) -> None:
        try:
            put_entry(self.conn, FIRST_PLAY_KEY, "false")
        except sqlite3.Error as e:
            logger.warning("Could not record the first-play flag: %s", e)
