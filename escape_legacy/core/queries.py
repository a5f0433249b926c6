"""Read-only views over a catalog merged with the player's progress overlay."""

from __future__ import annotations

from dataclasses import dataclass

from escape_legacy.core.models import (
    Catalog,
    Combination,
    DialogueRef,
    GameState,
    Item,
    Level,
    Puzzle,
    Room,
)


PLAYER_CHARACTER_ID = "player"


@dataclass(frozen=True)
class StoryEntry:
    title: str
    lines: tuple[str, ...]


def held_item(state: GameState, item_id: str) -> Item | None:
    for item in state.player.inventory:
        if item.item_id == item_id:
            return item
    return None


def is_item_collected(state: GameState, item_id: str) -> bool:
    return held_item(state, item_id) is not None


def current_level(catalog: Catalog, state: GameState) -> Level | None:
    return catalog.level(state.player.current_level_id)


def current_room(catalog: Catalog, state: GameState) -> Room | None:
    level = current_level(catalog, state)
    if level is None:
        return None
    for room in level.rooms:
        if room.room_id == state.player.current_room_id:
            return room
    return None


def is_level_unlocked(catalog: Catalog, state: GameState, level_id: str) -> bool:
    level = catalog.level(level_id)
    if level is None:
        return False
    return level.is_unlocked or level_id in state.player.unlocked_levels


def is_level_completed(state: GameState, level_id: str) -> bool:
    return level_id in state.player.completed_levels


def is_room_locked(catalog: Catalog, state: GameState, room_id: str) -> bool:
    room = catalog.room(room_id)
    if room is None:
        return True
    return room.is_locked and room_id not in state.player.unlocked_rooms


def is_room_completed(state: GameState, room_id: str) -> bool:
    return room_id in state.player.completed_rooms


def is_puzzle_solved(state: GameState, puzzle_id: str) -> bool:
    return puzzle_id in state.player.solved_puzzles


def is_hunt_completed(state: GameState, hunt_id: str) -> bool:
    return hunt_id in state.player.completed_hunts


def has_required_items(state: GameState, puzzle: Puzzle) -> bool:
    return all(is_item_collected(state, item_id) for item_id in puzzle.required_items)


def can_use_item(catalog: Catalog, state: GameState, item_id: str) -> bool:
    item = held_item(state, item_id)
    if item is None or not item.is_usable:
        return False

    room = current_room(catalog, state)
    if room is None:
        return False

    if item.is_key and room.required_key_id == item_id:
        return True

    return any(
        not is_puzzle_solved(state, puzzle.puzzle_id) and item_id in puzzle.required_items
        for puzzle in room.puzzles
    )


def has_completed_all_puzzles_in_room(catalog: Catalog, state: GameState, room_id: str) -> bool:
    room = catalog.room(room_id)
    if room is None:
        return False
    return all(is_puzzle_solved(state, puzzle.puzzle_id) for puzzle in room.puzzles)


def find_combination(catalog: Catalog, item_id_a: str, item_id_b: str) -> Combination | None:
    for combination in catalog.combinations:
        if combination.matches(item_id_a, item_id_b):
            return combination
    return None


def combinable_partners(catalog: Catalog, state: GameState, item_id: str) -> list[Item]:
    return [
        item
        for item in state.player.inventory
        if item.item_id != item_id
        and item.can_combine
        and find_combination(catalog, item_id, item.item_id) is not None
    ]


def inventory_by_category(state: GameState, category: str) -> list[Item]:
    """Filter the inventory the way the inventory tabs do.

    ``keys`` and ``usable`` are flag filters, ``all`` returns everything, and any
    other value is matched against the item's category tag.
    """
    inventory = list(state.player.inventory)
    if category == "all":
        return inventory
    if category == "keys":
        return [item for item in inventory if item.is_key]
    if category == "usable":
        return [item for item in inventory if item.is_usable]
    return [item for item in inventory if item.category == category]


def _percent(done: int, total: int) -> int:
    if total <= 0:
        return 0
    return round(done / total * 100)


def level_progress(catalog: Catalog, state: GameState, level_id: str) -> int:
    level = catalog.level(level_id)
    if level is None:
        return 0
    done = sum(1 for room in level.rooms if is_room_completed(state, room.room_id))
    return _percent(done, len(level.rooms))


def room_progress(catalog: Catalog, state: GameState) -> int:
    rooms = catalog.rooms()
    done = sum(1 for room in rooms if is_room_completed(state, room.room_id))
    return _percent(done, len(rooms))


def next_level(catalog: Catalog, level_id: str) -> Level | None:
    ids = [level.level_id for level in catalog.levels]
    if level_id not in ids:
        return None
    index = ids.index(level_id) + 1
    return catalog.levels[index] if index < len(ids) else None


def story_journal(catalog: Catalog, state: GameState) -> list[StoryEntry]:
    entries: list[StoryEntry] = []

    intro = catalog.dialogue(DialogueRef(character_id=PLAYER_CHARACTER_ID, topic="intro"))
    if intro:
        entries.append(StoryEntry(title="The Case", lines=intro))

    level = current_level(catalog, state)
    if level is not None:
        entries.append(StoryEntry(title=level.name, lines=(level.story_intro,)))

    for item in state.player.inventory:
        lines = catalog.dialogue(item.reveals)
        if lines:
            entries.append(StoryEntry(title=item.name, lines=lines))

    for room in catalog.rooms():
        if is_room_completed(state, room.room_id) and room.completion_text:
            entries.append(StoryEntry(title=room.name, lines=(room.completion_text,)))

    for done in catalog.levels:
        if not is_level_completed(state, done.level_id):
            continue
        lines: tuple[str, ...] = (done.story_outro,) if done.story_outro else ()
        lines += catalog.dialogue(done.completion_dialogue)
        if lines:
            entries.append(StoryEntry(title=f"{done.name} - Case Notes", lines=lines))

    return entries
