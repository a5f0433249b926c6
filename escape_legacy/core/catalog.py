from __future__ import annotations

from pathlib import Path
from typing import Any

from escape_legacy.core.config import DEFAULT_CATALOG_PATH, load_yaml
from escape_legacy.core.models import (
    ITEM_CATEGORIES,
    PUZZLE_TYPES,
    Catalog,
    Character,
    Combination,
    DialogueRef,
    HiddenObject,
    Hunt,
    Item,
    Level,
    Puzzle,
    Room,
)


VALID_DIFFICULTIES = {"medium", "hard"}
TEXT_SOLUTION_TYPES = {"combination", "riddle"}
SEQUENCE_SOLUTION_TYPES = {"pattern", "sequence"}


def _record(value: Any, kind: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{kind} must be a mapping")
    return value


def _entries(owner: dict[str, Any], key: str, kind: str) -> list[dict[str, Any]]:
    value = owner.get(key) or []
    if not isinstance(value, list):
        raise ValueError(f"{key} must be a list")
    return [_record(entry, kind) for entry in value]


def _collect_items(data: dict[str, Any]) -> list[dict[str, Any]]:
    items: list[dict[str, Any]] = []
    for level in _entries(data, "levels", "level"):
        for room in _entries(level, "rooms", "room"):
            items.extend(_entries(room, "items", "item"))
            for hunt in _entries(room, "hunts", "hunt"):
                if hunt.get("reward") is not None:
                    items.append(_record(hunt["reward"], "hunt reward"))
    for combo in _entries(data, "combinations", "combination"):
        if combo.get("result") is not None:
            items.append(_record(combo["result"], "combination result"))
    return items


def _check_unique(seen: set[str], value: Any, kind: str) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError(f"{kind} id must be a non-empty string")
    if value in seen:
        raise ValueError(f"duplicate {kind} id {value}")
    seen.add(value)


def _check_dialogue(ref: Any, dialogues: dict[str, set[str]], owner: str) -> None:
    if ref is None:
        return
    ref = _record(ref, f"{owner} dialogue reference")
    character = ref.get("character")
    topic = ref.get("topic")
    if character not in dialogues:
        raise ValueError(f"{owner} references unknown character {character}")
    if topic not in dialogues[character]:
        raise ValueError(f"{owner} references unknown dialogue topic {character}:{topic}")


def validate_catalog(data: dict[str, Any]) -> None:
    data = _record(data, "catalog")
    levels = _entries(data, "levels", "level")
    if not levels:
        raise ValueError("catalog defines no levels")

    dialogues: dict[str, set[str]] = {}
    for character in _entries(data, "characters", "character"):
        _check_unique(set(dialogues), character.get("id"), "character")
        dialogues[character["id"]] = set(_record(character.get("dialogues") or {}, "dialogues"))

    item_ids: set[str] = set()
    for item in _collect_items(data):
        _check_unique(item_ids, item.get("id"), "item")
        category = item.get("category", "misc")
        if category not in ITEM_CATEGORIES:
            raise ValueError(f"unknown category {category} for item {item['id']}")
        _check_dialogue(item.get("reveals"), dialogues, f"item {item['id']}")

    level_ids: set[str] = set()
    room_ids: set[str] = set()
    puzzle_ids: set[str] = set()
    hunt_ids: set[str] = set()

    for level in levels:
        _check_unique(level_ids, level.get("id"), "level")
        level_id = level["id"]
        if level.get("difficulty") not in VALID_DIFFICULTIES:
            raise ValueError(f"invalid difficulty in {level_id}")
        if not level.get("rooms"):
            raise ValueError(f"level {level_id} has no rooms")
        _check_dialogue(level.get("completion_dialogue"), dialogues, f"level {level_id}")

        for room in _entries(level, "rooms", "room"):
            _check_unique(room_ids, room.get("id"), "room")
            room_id = room["id"]

            required_key = room.get("required_key")
            if required_key is not None and required_key not in item_ids:
                raise ValueError(f"unknown required_key {required_key} in {room_id}")
            if required_key is not None and not room.get("locked", False):
                raise ValueError(f"required_key set but locked=false in {room_id}")

            for puzzle in _entries(room, "puzzles", "puzzle"):
                _check_unique(puzzle_ids, puzzle.get("id"), "puzzle")
                puzzle_id = puzzle["id"]
                ptype = puzzle.get("type")
                if ptype not in PUZZLE_TYPES:
                    raise ValueError(f"unknown puzzle type {ptype} in {puzzle_id}")

                solution = puzzle.get("solution")
                if ptype in TEXT_SOLUTION_TYPES and not isinstance(solution, str):
                    raise ValueError(f"puzzle {puzzle_id} needs a text solution")
                if ptype in SEQUENCE_SOLUTION_TYPES:
                    if not isinstance(solution, list) or not solution:
                        raise ValueError(f"puzzle {puzzle_id} needs a sequence solution")
                if ptype == "hidden-object" and not _entries(puzzle, "hidden_objects", "hidden object"):
                    raise ValueError(f"hidden-object puzzle {puzzle_id} lists no hidden_objects")

                for required in puzzle.get("required_items", []):
                    if required not in item_ids:
                        raise ValueError(f"unknown required item {required} in {puzzle_id}")

                attempts = puzzle.get("attempts")
                if attempts is not None and (not isinstance(attempts, int) or attempts <= 0):
                    raise ValueError(f"attempts must be a positive integer in {puzzle_id}")

            for hunt in _entries(room, "hunts", "hunt"):
                _check_unique(hunt_ids, hunt.get("id"), "hunt")
                if not _entries(hunt, "hidden_objects", "hidden object"):
                    raise ValueError(f"hunt {hunt['id']} lists no hidden_objects")

    for combo in _entries(data, "combinations", "combination"):
        pair = combo.get("items", [])
        if not isinstance(pair, list) or len(pair) != 2 or pair[0] == pair[1]:
            raise ValueError("combination must name two distinct items")
        for item_id in pair:
            if item_id not in item_ids:
                raise ValueError(f"combination references unknown item {item_id}")
        if combo.get("result") is None:
            raise ValueError(f"combination {pair[0]}+{pair[1]} has no result")


def _dialogue_ref(raw: dict[str, Any] | None) -> DialogueRef | None:
    if raw is None:
        return None
    return DialogueRef(character_id=raw["character"], topic=raw["topic"])


def _hidden_objects(raw: list[dict[str, Any]]) -> tuple[HiddenObject, ...]:
    return tuple(HiddenObject(object_id=o["id"], name=o.get("name", o["id"])) for o in raw)


def build_item(raw: dict[str, Any]) -> Item:
    combines_with = tuple(raw.get("combines_with", []))
    return Item(
        item_id=raw["id"],
        name=raw.get("name", raw["id"]),
        description=raw.get("description", ""),
        image=raw.get("image", ""),
        category=raw.get("category", "misc"),
        is_key=bool(raw.get("key", False)),
        is_usable=bool(raw.get("usable", False)),
        can_combine=bool(raw.get("can_combine", bool(combines_with))),
        combines_with=combines_with,
        reveals=_dialogue_ref(raw.get("reveals")),
    )


def _build_puzzle(raw: dict[str, Any]) -> Puzzle:
    solution = raw.get("solution")
    if isinstance(solution, list):
        solution = tuple(str(s) for s in solution)
    return Puzzle(
        puzzle_id=raw["id"],
        type=raw["type"],
        description=raw.get("description", ""),
        hint=raw.get("hint", ""),
        required_items=tuple(raw.get("required_items", [])),
        solution=solution,
        attempts=raw.get("attempts"),
        hidden_objects=_hidden_objects(raw.get("hidden_objects", [])),
    )


def _build_hunt(raw: dict[str, Any]) -> Hunt:
    reward = raw.get("reward")
    return Hunt(
        hunt_id=raw["id"],
        name=raw.get("name", raw["id"]),
        description=raw.get("description", ""),
        hint=raw.get("hint", ""),
        reward=build_item(reward) if reward is not None else None,
        hidden_objects=_hidden_objects(raw.get("hidden_objects", [])),
    )


def _build_room(raw: dict[str, Any]) -> Room:
    return Room(
        room_id=raw["id"],
        name=raw.get("name", raw["id"]),
        description=raw.get("description", ""),
        background=raw.get("background", ""),
        puzzles=tuple(_build_puzzle(p) for p in raw.get("puzzles", [])),
        items=tuple(build_item(i) for i in raw.get("items", [])),
        hunts=tuple(_build_hunt(h) for h in raw.get("hunts", [])),
        is_locked=bool(raw.get("locked", False)),
        required_key_id=raw.get("required_key"),
        completion_text=raw.get("completion_text"),
    )


def build_catalog(data: dict[str, Any]) -> Catalog:
    validate_catalog(data)

    levels = tuple(
        Level(
            level_id=level["id"],
            name=level.get("name", level["id"]),
            description=level.get("description", ""),
            story_intro=level.get("story_intro", ""),
            story_outro=level.get("story_outro"),
            difficulty=level["difficulty"],
            rooms=tuple(_build_room(r) for r in level["rooms"]),
            is_unlocked=bool(level.get("unlocked", False)),
            completion_dialogue=_dialogue_ref(level.get("completion_dialogue")),
        )
        for level in data["levels"]
    )

    characters = tuple(
        Character(
            character_id=c["id"],
            name=c.get("name", c["id"]),
            description=c.get("description", ""),
            image=c.get("image", ""),
            dialogues={topic: tuple(lines) for topic, lines in c.get("dialogues", {}).items()},
        )
        for c in data.get("characters", [])
    )

    combinations = tuple(
        Combination(
            first_item_id=combo["items"][0],
            second_item_id=combo["items"][1],
            result=build_item(combo["result"]),
        )
        for combo in data.get("combinations", [])
    )

    return Catalog(levels=levels, characters=characters, combinations=combinations)


def load_catalog(path: str | Path = DEFAULT_CATALOG_PATH) -> Catalog:
    return build_catalog(load_yaml(path))
