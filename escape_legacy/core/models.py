from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Union


Theme = Literal["dark", "light"]
Difficulty = Literal["medium", "hard"]
PuzzleType = Literal["combination", "pattern", "riddle", "hidden-object", "sequence"]
ItemCategory = Literal["key", "document", "tool", "evidence", "misc"]

PUZZLE_TYPES: tuple[str, ...] = ("combination", "pattern", "riddle", "hidden-object", "sequence")
ITEM_CATEGORIES: tuple[str, ...] = ("key", "document", "tool", "evidence", "misc")

Solution = Union[str, tuple[str, ...]]


@dataclass(frozen=True)
class DialogueRef:
    character_id: str
    topic: str


@dataclass(frozen=True)
class Item:
    item_id: str
    name: str
    description: str
    image: str = ""
    category: str = "misc"
    is_key: bool = False
    is_usable: bool = False
    can_combine: bool = False
    combines_with: tuple[str, ...] = ()
    reveals: DialogueRef | None = None


@dataclass(frozen=True)
class HiddenObject:
    object_id: str
    name: str


@dataclass(frozen=True)
class Puzzle:
    puzzle_id: str
    type: str
    description: str
    hint: str
    required_items: tuple[str, ...] = ()
    solution: Solution | None = None
    attempts: int | None = None
    hidden_objects: tuple[HiddenObject, ...] = ()


@dataclass(frozen=True)
class Hunt:
    hunt_id: str
    name: str
    description: str
    hint: str = ""
    reward: Item | None = None
    hidden_objects: tuple[HiddenObject, ...] = ()


@dataclass(frozen=True)
class Room:
    room_id: str
    name: str
    description: str
    background: str = ""
    puzzles: tuple[Puzzle, ...] = ()
    items: tuple[Item, ...] = ()
    hunts: tuple[Hunt, ...] = ()
    is_locked: bool = False
    required_key_id: str | None = None
    completion_text: str | None = None


@dataclass(frozen=True)
class Level:
    level_id: str
    name: str
    description: str
    story_intro: str
    difficulty: str
    rooms: tuple[Room, ...]
    story_outro: str | None = None
    is_unlocked: bool = False
    completion_dialogue: DialogueRef | None = None


@dataclass(frozen=True)
class Character:
    character_id: str
    name: str
    description: str
    image: str = ""
    dialogues: dict[str, tuple[str, ...]] = field(default_factory=dict)


@dataclass(frozen=True)
class Combination:
    first_item_id: str
    second_item_id: str
    result: Item

    def matches(self, item_id_a: str, item_id_b: str) -> bool:
        return {self.first_item_id, self.second_item_id} == {item_id_a, item_id_b}


@dataclass(frozen=True)
class Catalog:
    levels: tuple[Level, ...]
    characters: tuple[Character, ...] = ()
    combinations: tuple[Combination, ...] = ()

    def level(self, level_id: str | None) -> Level | None:
        for level in self.levels:
            if level.level_id == level_id:
                return level
        return None

    def locate_room(self, room_id: str | None) -> tuple[Level, Room] | None:
        for level in self.levels:
            for room in level.rooms:
                if room.room_id == room_id:
                    return level, room
        return None

    def room(self, room_id: str | None) -> Room | None:
        found = self.locate_room(room_id)
        return found[1] if found else None

    def rooms(self) -> list[Room]:
        return [room for level in self.levels for room in level.rooms]

    def hunt(self, hunt_id: str) -> Hunt | None:
        for room in self.rooms():
            for hunt in room.hunts:
                if hunt.hunt_id == hunt_id:
                    return hunt
        return None

    def character(self, character_id: str) -> Character | None:
        for character in self.characters:
            if character.character_id == character_id:
                return character
        return None

    def dialogue(self, ref: DialogueRef | None) -> tuple[str, ...]:
        if ref is None:
            return ()
        character = self.character(ref.character_id)
        if character is None:
            return ()
        return character.dialogues.get(ref.topic, ())


@dataclass(frozen=True)
class GameSettings:
    theme: str = "dark"
    sound_enabled: bool = True
    music_volume: float = 0.7
    sfx_volume: float = 0.8


@dataclass(frozen=True)
class PlayerState:
    current_level_id: str | None = None
    current_room_id: str | None = None
    inventory: tuple[Item, ...] = ()
    unlocked_levels: tuple[str, ...] = ()
    completed_levels: tuple[str, ...] = ()
    completed_rooms: tuple[str, ...] = ()
    completed_hunts: tuple[str, ...] = ()
    unlocked_rooms: tuple[str, ...] = ()
    solved_puzzles: tuple[str, ...] = ()
    game_progress: float = 0.0


@dataclass(frozen=True)
class GameState:
    settings: GameSettings = field(default_factory=GameSettings)
    player: PlayerState = field(default_factory=PlayerState)
    story_progress: int = 0
    game_started: bool = False
    game_completed: bool = False


@dataclass(frozen=True)
class CombineResult:
    success: bool
    message: str
    new_item: Item | None = None


def initial_state(catalog: Catalog) -> GameState:
    unlocked = tuple(level.level_id for level in catalog.levels if level.is_unlocked)
    return GameState(player=PlayerState(unlocked_levels=unlocked))
