from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from escape_legacy.core.models import Item


@dataclass(frozen=True)
class StartGame:
    pass


@dataclass(frozen=True)
class CompleteGame:
    pass


@dataclass(frozen=True)
class SetTheme:
    theme: str  # "dark" | "light"


@dataclass(frozen=True)
class ToggleSound:
    pass


@dataclass(frozen=True)
class SetMusicVolume:
    volume: float


@dataclass(frozen=True)
class SetSfxVolume:
    volume: float


@dataclass(frozen=True)
class SetCurrentLevel:
    level_id: str


@dataclass(frozen=True)
class SetCurrentRoom:
    room_id: str


@dataclass(frozen=True)
class AddItemToInventory:
    item: Item


@dataclass(frozen=True)
class RemoveItemFromInventory:
    item_id: str


@dataclass(frozen=True)
class UnlockLevel:
    level_id: str


@dataclass(frozen=True)
class CompleteLevel:
    level_id: str


@dataclass(frozen=True)
class UnlockRoom:
    room_id: str


@dataclass(frozen=True)
class CompleteRoom:
    room_id: str


@dataclass(frozen=True)
class CompleteHunt:
    hunt_id: str


@dataclass(frozen=True)
class SolvePuzzle:
    level_id: str
    room_id: str
    puzzle_id: str


@dataclass(frozen=True)
class CombineItems:
    first_item_id: str
    second_item_id: str


@dataclass(frozen=True)
class AdvanceStory:
    pass


@dataclass(frozen=True)
class ResetGame:
    pass


Action = Union[
    StartGame,
    CompleteGame,
    SetTheme,
    ToggleSound,
    SetMusicVolume,
    SetSfxVolume,
    SetCurrentLevel,
    SetCurrentRoom,
    AddItemToInventory,
    RemoveItemFromInventory,
    UnlockLevel,
    CompleteLevel,
    UnlockRoom,
    CompleteRoom,
    CompleteHunt,
    SolvePuzzle,
    CombineItems,
    AdvanceStory,
    ResetGame,
]
