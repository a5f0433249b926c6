"""Pure transition function: (catalog, state, action) -> next state.

Actions that reference an unknown level, room, puzzle, hunt or item return the
input state unchanged. Completion and unlock sets only ever grow.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from escape_legacy.core.actions import (
    Action,
    AddItemToInventory,
    AdvanceStory,
    CombineItems,
    CompleteGame,
    CompleteHunt,
    CompleteLevel,
    CompleteRoom,
    RemoveItemFromInventory,
    ResetGame,
    SetCurrentLevel,
    SetCurrentRoom,
    SetMusicVolume,
    SetSfxVolume,
    SetTheme,
    SolvePuzzle,
    StartGame,
    ToggleSound,
    UnlockLevel,
    UnlockRoom,
)
from escape_legacy.core.models import Catalog, GameState, initial_state
from escape_legacy.core.queries import find_combination, is_item_collected


MAX_PROGRESS = 100.0


def _with_player(state: GameState, **changes: Any) -> GameState:
    return replace(state, player=replace(state.player, **changes))


def _with_settings(state: GameState, **changes: Any) -> GameState:
    return replace(state, settings=replace(state.settings, **changes))


def _set_current_level(catalog: Catalog, state: GameState, level_id: str) -> GameState:
    level = catalog.level(level_id)
    if level is None:
        return state
    first_room = level.rooms[0].room_id if level.rooms else None
    return _with_player(state, current_level_id=level_id, current_room_id=first_room)


def _remove_item(state: GameState, item_id: str) -> GameState:
    if not is_item_collected(state, item_id):
        return state
    inventory = tuple(item for item in state.player.inventory if item.item_id != item_id)
    return _with_player(state, inventory=inventory)


def _unlock_level(catalog: Catalog, state: GameState, level_id: str) -> GameState:
    if catalog.level(level_id) is None or level_id in state.player.unlocked_levels:
        return state
    return _with_player(state, unlocked_levels=state.player.unlocked_levels + (level_id,))


def _complete_level(catalog: Catalog, state: GameState, level_id: str) -> GameState:
    if catalog.level(level_id) is None or level_id in state.player.completed_levels:
        return state
    progress = min(MAX_PROGRESS, state.player.game_progress + MAX_PROGRESS / len(catalog.levels))
    return _with_player(
        state,
        completed_levels=state.player.completed_levels + (level_id,),
        game_progress=progress,
    )


def _unlock_room(catalog: Catalog, state: GameState, room_id: str) -> GameState:
    room = catalog.room(room_id)
    if room is None or not room.is_locked or room.required_key_id is None:
        return state
    if room_id in state.player.unlocked_rooms:
        return state
    if not is_item_collected(state, room.required_key_id):
        return state
    return _with_player(state, unlocked_rooms=state.player.unlocked_rooms + (room_id,))


def _complete_room(catalog: Catalog, state: GameState, room_id: str) -> GameState:
    if catalog.room(room_id) is None or room_id in state.player.completed_rooms:
        return state
    return _with_player(state, completed_rooms=state.player.completed_rooms + (room_id,))


def _complete_hunt(catalog: Catalog, state: GameState, hunt_id: str) -> GameState:
    if catalog.hunt(hunt_id) is None or hunt_id in state.player.completed_hunts:
        return state
    return _with_player(state, completed_hunts=state.player.completed_hunts + (hunt_id,))


def _solve_puzzle(catalog: Catalog, state: GameState, action: SolvePuzzle) -> GameState:
    level = catalog.level(action.level_id)
    if level is None:
        return state
    room = next((r for r in level.rooms if r.room_id == action.room_id), None)
    if room is None:
        return state
    puzzle = next((p for p in room.puzzles if p.puzzle_id == action.puzzle_id), None)
    if puzzle is None or puzzle.puzzle_id in state.player.solved_puzzles:
        return state
    return _with_player(state, solved_puzzles=state.player.solved_puzzles + (puzzle.puzzle_id,))


def _combine_items(catalog: Catalog, state: GameState, action: CombineItems) -> GameState:
    first, second = action.first_item_id, action.second_item_id
    combination = find_combination(catalog, first, second)
    if combination is None:
        return state
    if not is_item_collected(state, first) or not is_item_collected(state, second):
        return state
    consumed = {first, second}
    inventory = tuple(item for item in state.player.inventory if item.item_id not in consumed)
    return _with_player(state, inventory=inventory + (combination.result,))


def apply_action(catalog: Catalog, state: GameState, action: Action) -> GameState:
    if isinstance(action, StartGame):
        return replace(state, game_started=True)

    if isinstance(action, CompleteGame):
        return replace(state, game_completed=True)

    if isinstance(action, SetTheme):
        return _with_settings(state, theme=action.theme)

    if isinstance(action, ToggleSound):
        return _with_settings(state, sound_enabled=not state.settings.sound_enabled)

    if isinstance(action, SetMusicVolume):
        return _with_settings(state, music_volume=action.volume)

    if isinstance(action, SetSfxVolume):
        return _with_settings(state, sfx_volume=action.volume)

    if isinstance(action, SetCurrentLevel):
        return _set_current_level(catalog, state, action.level_id)

    if isinstance(action, SetCurrentRoom):
        if catalog.locate_room(action.room_id) is None:
            return state
        return _with_player(state, current_room_id=action.room_id)

    if isinstance(action, AddItemToInventory):
        # No duplicate check: adding the same item twice holds two copies.
        return _with_player(state, inventory=state.player.inventory + (action.item,))

    if isinstance(action, RemoveItemFromInventory):
        return _remove_item(state, action.item_id)

    if isinstance(action, UnlockLevel):
        return _unlock_level(catalog, state, action.level_id)

    if isinstance(action, CompleteLevel):
        return _complete_level(catalog, state, action.level_id)

    if isinstance(action, UnlockRoom):
        return _unlock_room(catalog, state, action.room_id)

    if isinstance(action, CompleteRoom):
        return _complete_room(catalog, state, action.room_id)

    if isinstance(action, CompleteHunt):
        return _complete_hunt(catalog, state, action.hunt_id)

    if isinstance(action, SolvePuzzle):
        return _solve_puzzle(catalog, state, action)

    if isinstance(action, CombineItems):
        return _combine_items(catalog, state, action)

    if isinstance(action, AdvanceStory):
        return replace(state, story_progress=state.story_progress + 1)

    if isinstance(action, ResetGame):
        return initial_state(catalog)

    raise TypeError(f"Unsupported action: {action!r}")
