from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Sequence

from escape_legacy.core.models import HiddenObject, Hunt, Puzzle, Solution


SEQUENCE_TYPES = {"pattern", "sequence"}
ANSWER_SPLIT_RE = re.compile(r"[,\s]+")


@dataclass(frozen=True)
class AttemptResult:
    status: str  # "solved" | "retry" | "failed" | "missing_items" | "closed"
    message: str
    remaining: int | None = None


@dataclass(frozen=True)
class SearchResult:
    status: str  # "found" | "completed" | "already_found" | "unknown" | "closed"
    message: str
    found: int
    total: int


def parse_answer(puzzle: Puzzle, text: str) -> Solution:
    if puzzle.type in SEQUENCE_TYPES:
        return tuple(part for part in ANSWER_SPLIT_RE.split(text.strip()) if part)
    return text


def check_solution(puzzle: Puzzle, answer: str | Sequence[str]) -> bool:
    solution = puzzle.solution
    if solution is None:
        return False

    if puzzle.type == "combination":
        return isinstance(answer, str) and answer == solution

    if puzzle.type == "riddle":
        return isinstance(answer, str) and isinstance(solution, str) and answer.lower() == solution.lower()

    if puzzle.type in SEQUENCE_TYPES:
        if isinstance(answer, str) or isinstance(solution, str):
            return False
        return tuple(answer) == tuple(solution)

    # hidden-object puzzles are resolved by an ObjectSearch, never by an answer
    return False


class PuzzleAttempt:
    """One sitting at a puzzle. Attempt counts live only as long as this object."""

    def __init__(self, level_id: str, room_id: str, puzzle: Puzzle, has_required_items: bool = True):
        self.level_id = level_id
        self.room_id = room_id
        self.puzzle = puzzle
        self.has_required_items = has_required_items
        self.remaining = puzzle.attempts
        self.solved = False
        self.finished = False

    def submit(self, answer: str | Sequence[str]) -> AttemptResult:
        if self.finished:
            return AttemptResult(status="closed", message="This puzzle attempt is over.", remaining=self.remaining)

        if not self.has_required_items:
            return AttemptResult(
                status="missing_items",
                message="You are missing items required to solve this puzzle.",
                remaining=self.remaining,
            )

        if check_solution(self.puzzle, answer):
            self.solved = True
            self.finished = True
            return AttemptResult(status="solved", message="Puzzle solved!", remaining=self.remaining)

        if self.remaining is None:
            return AttemptResult(status="retry", message="Incorrect solution. Try again.")

        self.remaining -= 1
        if self.remaining <= 0:
            self.finished = True
            return AttemptResult(
                status="failed",
                message="You have exhausted all attempts. Try again later.",
                remaining=0,
            )
        return AttemptResult(
            status="retry",
            message=f"Incorrect solution. You have {self.remaining} attempts remaining.",
            remaining=self.remaining,
        )


@dataclass
class ObjectSearch:
    level_id: str
    room_id: str
    target_id: str
    kind: str  # "hunt" | "puzzle"
    name: str
    hidden_objects: tuple[HiddenObject, ...]
    found: list[str] = field(default_factory=list)

    @classmethod
    def for_hunt(cls, level_id: str, room_id: str, hunt: Hunt) -> "ObjectSearch":
        return cls(
            level_id=level_id,
            room_id=room_id,
            target_id=hunt.hunt_id,
            kind="hunt",
            name=hunt.name,
            hidden_objects=hunt.hidden_objects,
        )

    @classmethod
    def for_puzzle(cls, level_id: str, room_id: str, puzzle: Puzzle) -> "ObjectSearch":
        return cls(
            level_id=level_id,
            room_id=room_id,
            target_id=puzzle.puzzle_id,
            kind="puzzle",
            name=puzzle.description,
            hidden_objects=puzzle.hidden_objects,
        )

    @property
    def total(self) -> int:
        return len(self.hidden_objects)

    @property
    def completed(self) -> bool:
        return self.total > 0 and len(self.found) >= self.total

    @property
    def progress(self) -> int:
        if self.total == 0:
            return 0
        return round(len(self.found) / self.total * 100)

    def _object(self, object_id: str) -> HiddenObject | None:
        for obj in self.hidden_objects:
            if obj.object_id == object_id:
                return obj
        return None

    def _result(self, status: str, message: str) -> SearchResult:
        return SearchResult(status=status, message=message, found=len(self.found), total=self.total)

    def discover(self, object_id: str) -> SearchResult:
        if self.completed:
            return self._result("closed", "This search is already complete.")

        obj = self._object(object_id)
        if obj is None:
            return self._result("unknown", "You find nothing of interest there.")
        if obj.object_id in self.found:
            return self._result("already_found", f"You already found: {obj.name}")

        self.found.append(obj.object_id)
        if self.completed:
            return self._result("completed", "Hunt completed successfully!")
        return self._result("found", f"Found: {obj.name}")
