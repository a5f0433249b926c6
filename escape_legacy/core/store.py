from __future__ import annotations

import logging
from typing import Callable, Sequence

from escape_legacy.core import actions
from escape_legacy.core.actions import Action
from escape_legacy.core.models import Catalog, CombineResult, GameState, Item, initial_state
from escape_legacy.core.persistence import SaveStore
from escape_legacy.core.puzzles import AttemptResult, ObjectSearch, PuzzleAttempt, SearchResult
from escape_legacy.core.queries import (
    can_use_item,
    current_level,
    current_room,
    find_combination,
    has_completed_all_puzzles_in_room,
    has_required_items,
    is_hunt_completed,
    is_item_collected,
    is_level_completed,
    is_puzzle_solved,
    is_room_completed,
    next_level,
)
from escape_legacy.core.reducer import apply_action


logger = logging.getLogger(__name__)

Listener = Callable[[GameState], None]


class GameStore:
    """Owns the current snapshot and replaces it on every transition.

    Listeners are called with the new snapshot after each transition that
    changed something. While the game is started, every new snapshot is
    written to ``saves``.
    """

    def __init__(self, catalog: Catalog, state: GameState | None = None, saves: SaveStore | None = None):
        self.catalog = catalog
        self.saves = saves
        self._state = state if state is not None else initial_state(catalog)
        self._listeners: list[Listener] = []

    @classmethod
    def open(cls, catalog: Catalog, saves: SaveStore) -> "GameStore":
        return cls(catalog, saves.load_state(), saves)

    @property
    def state(self) -> GameState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> GameState:
        previous = self._state
        state = apply_action(self.catalog, previous, action)
        if state is previous:
            logger.debug("%s left the state unchanged", type(action).__name__)
            return state

        self._state = state
        logger.debug("Applied %s", type(action).__name__)
        for listener in list(self._listeners):
            listener(state)
        if state.game_started and self.saves is not None:
            self.saves.save_state(state)
        return state

    # Named intents

    def start_game(self) -> GameState:
        return self.dispatch(actions.StartGame())

    def complete_game(self) -> GameState:
        return self.dispatch(actions.CompleteGame())

    def set_theme(self, theme: str) -> GameState:
        return self.dispatch(actions.SetTheme(theme))

    def toggle_sound(self) -> GameState:
        return self.dispatch(actions.ToggleSound())

    def set_music_volume(self, volume: float) -> GameState:
        return self.dispatch(actions.SetMusicVolume(volume))

    def set_sfx_volume(self, volume: float) -> GameState:
        return self.dispatch(actions.SetSfxVolume(volume))

    def set_current_level(self, level_id: str) -> GameState:
        return self.dispatch(actions.SetCurrentLevel(level_id))

    def set_current_room(self, room_id: str) -> GameState:
        return self.dispatch(actions.SetCurrentRoom(room_id))

    def add_item_to_inventory(self, item: Item) -> GameState:
        return self.dispatch(actions.AddItemToInventory(item))

    def remove_item_from_inventory(self, item_id: str) -> GameState:
        return self.dispatch(actions.RemoveItemFromInventory(item_id))

    def unlock_level(self, level_id: str) -> GameState:
        return self.dispatch(actions.UnlockLevel(level_id))

    def complete_level(self, level_id: str) -> GameState:
        return self.dispatch(actions.CompleteLevel(level_id))

    def unlock_room(self, room_id: str) -> GameState:
        return self.dispatch(actions.UnlockRoom(room_id))

    def complete_room(self, room_id: str) -> GameState:
        return self.dispatch(actions.CompleteRoom(room_id))

    def complete_hunt(self, hunt_id: str) -> GameState:
        return self.dispatch(actions.CompleteHunt(hunt_id))

    def solve_puzzle(self, level_id: str, room_id: str, puzzle_id: str) -> GameState:
        return self.dispatch(actions.SolvePuzzle(level_id, room_id, puzzle_id))

    def advance_story(self) -> GameState:
        return self.dispatch(actions.AdvanceStory())

    def reset_game(self) -> GameState:
        state = self.dispatch(actions.ResetGame())
        if self.saves is not None:
            self.saves.clear_state()
        return state

    def combine_items(self, item_id_a: str, item_id_b: str) -> CombineResult:
        combination = find_combination(self.catalog, item_id_a, item_id_b)
        if combination is None:
            return CombineResult(success=False, message="These items cannot be combined together.")
        before = self._state
        if self.dispatch(actions.CombineItems(item_id_a, item_id_b)) is before:
            return CombineResult(success=False, message="You need both items in your inventory to combine them.")
        return CombineResult(
            success=True,
            message=f"Created: {combination.result.name}!",
            new_item=combination.result,
        )

    # Queries

    def can_use_item(self, item_id: str) -> bool:
        return can_use_item(self.catalog, self._state, item_id)

    def has_completed_all_puzzles_in_room(self, room_id: str) -> bool:
        return has_completed_all_puzzles_in_room(self.catalog, self._state, room_id)

    # Room interactions

    def collect_item(self, item_id: str) -> Item | None:
        room = current_room(self.catalog, self._state)
        if room is None or is_item_collected(self._state, item_id):
            return None
        item = next((i for i in room.items if i.item_id == item_id), None)
        if item is None:
            return None
        self.add_item_to_inventory(item)
        return item

    def start_puzzle(self, puzzle_id: str) -> PuzzleAttempt | None:
        level = current_level(self.catalog, self._state)
        room = current_room(self.catalog, self._state)
        if level is None or room is None:
            return None
        puzzle = next((p for p in room.puzzles if p.puzzle_id == puzzle_id), None)
        if puzzle is None or puzzle.type == "hidden-object" or is_puzzle_solved(self._state, puzzle_id):
            return None
        return PuzzleAttempt(level.level_id, room.room_id, puzzle, has_required_items(self._state, puzzle))

    def submit_answer(self, attempt: PuzzleAttempt, answer: str | Sequence[str]) -> AttemptResult:
        result = attempt.submit(answer)
        if result.status == "solved":
            self.solve_puzzle(attempt.level_id, attempt.room_id, attempt.puzzle.puzzle_id)
            self._propagate_completion(attempt.level_id, attempt.room_id)
        return result

    def start_search(self, target_id: str) -> ObjectSearch | None:
        level = current_level(self.catalog, self._state)
        room = current_room(self.catalog, self._state)
        if level is None or room is None:
            return None

        for hunt in room.hunts:
            if hunt.hunt_id == target_id and not is_hunt_completed(self._state, target_id):
                return ObjectSearch.for_hunt(level.level_id, room.room_id, hunt)

        for puzzle in room.puzzles:
            if puzzle.puzzle_id != target_id or puzzle.type != "hidden-object":
                continue
            if is_puzzle_solved(self._state, target_id) or not has_required_items(self._state, puzzle):
                return None
            return ObjectSearch.for_puzzle(level.level_id, room.room_id, puzzle)

        return None

    def discover(self, search: ObjectSearch, object_id: str) -> SearchResult:
        result = search.discover(object_id)
        if result.status != "completed":
            return result

        if search.kind == "hunt":
            self.complete_hunt(search.target_id)
            hunt = self.catalog.hunt(search.target_id)
            if hunt is not None and hunt.reward is not None and not is_item_collected(self._state, hunt.reward.item_id):
                self.add_item_to_inventory(hunt.reward)
        else:
            self.solve_puzzle(search.level_id, search.room_id, search.target_id)
            self._propagate_completion(search.level_id, search.room_id)
        return result

    def _propagate_completion(self, level_id: str, room_id: str) -> None:
        if not self.has_completed_all_puzzles_in_room(room_id):
            return
        self.complete_room(room_id)

        level = self.catalog.level(level_id)
        if level is None or is_level_completed(self._state, level_id):
            return
        if not all(is_room_completed(self._state, room.room_id) for room in level.rooms):
            return

        logger.info("Level %s completed", level_id)
        self.complete_level(level_id)
        following = next_level(self.catalog, level_id)
        if following is not None:
            self.unlock_level(following.level_id)
        else:
            self.complete_game()
