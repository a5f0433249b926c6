from __future__ import annotations

from rich.table import Table

from escape_legacy.core.models import Catalog, GameState, Item, Room
from escape_legacy.core.queries import (
    StoryEntry,
    is_hunt_completed,
    is_item_collected,
    is_level_completed,
    is_level_unlocked,
    is_puzzle_solved,
    is_room_completed,
    is_room_locked,
    level_progress,
)


def _title(text: str) -> str:
    return text[:1].upper() + text[1:]


def render_room(catalog: Catalog, state: GameState, room: Room) -> str:
    lines: list[str] = []
    lines.append(f"[bold]== {room.name} ==[/bold]")
    lines.append("")
    lines.append(room.description)
    lines.append("")

    if room.items:
        lines.append(f"Items ({len(room.items)}):")
        for item in room.items:
            status = " [dim](collected)[/dim]" if is_item_collected(state, item.item_id) else ""
            lines.append(f"  - {item.name} ({item.item_id}){status}")

    if room.puzzles:
        lines.append(f"Puzzles ({len(room.puzzles)}):")
        for puzzle in room.puzzles:
            if is_puzzle_solved(state, puzzle.puzzle_id):
                status = "[green]Solved[/green]"
            else:
                status = f"{_title(puzzle.type)} Puzzle"
            lines.append(f"  - {puzzle.puzzle_id}: {status}")
            if puzzle.required_items and not is_puzzle_solved(state, puzzle.puzzle_id):
                lines.append(f"      needs: {', '.join(puzzle.required_items)}")

    if room.hunts:
        lines.append(f"Hunts ({len(room.hunts)}):")
        for hunt in room.hunts:
            status = "[green]Hunt Completed[/green]" if is_hunt_completed(state, hunt.hunt_id) else "Hidden Item Hunt"
            lines.append(f"  - {hunt.hunt_id}: {hunt.name} ({status})")

    if is_room_completed(state, room.room_id):
        lines.append("")
        lines.append("[green]Room completed.[/green]")
    return "\n".join(lines)


def levels_table(catalog: Catalog, state: GameState) -> Table:
    table = Table(title="Levels")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Difficulty")
    table.add_column("Rooms", justify="right")
    table.add_column("Progress", justify="right")
    table.add_column("Status")
    for level in catalog.levels:
        if is_level_completed(state, level.level_id):
            status = "completed"
        elif is_level_unlocked(catalog, state, level.level_id):
            status = "unlocked"
        else:
            status = "locked"
        table.add_row(
            level.level_id,
            level.name,
            level.difficulty,
            str(len(level.rooms)),
            f"{level_progress(catalog, state, level.level_id)}%",
            status,
        )
    return table


def rooms_table(catalog: Catalog, state: GameState, rooms: tuple[Room, ...]) -> Table:
    table = Table(title="Rooms")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Status")
    for room in rooms:
        if is_room_completed(state, room.room_id):
            status = "completed"
        elif is_room_locked(catalog, state, room.room_id):
            status = f"locked (needs {room.required_key_id})" if room.required_key_id else "locked"
        else:
            status = "open"
        table.add_row(room.room_id, room.name, status)
    return table


def inventory_table(items: list[Item], title: str = "Inventory") -> Table:
    table = Table(title=f"{title} ({len(items)})")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Flags")
    for item in items:
        flags = []
        if item.is_key:
            flags.append("key")
        if item.is_usable:
            flags.append("usable")
        if item.can_combine:
            flags.append("combines")
        table.add_row(item.item_id, item.name, item.category, ", ".join(flags))
    return table


def render_story(entries: list[StoryEntry]) -> str:
    if not entries:
        return "No story entries yet. Explore rooms to find journals and notes."
    blocks = []
    for entry in entries:
        body = "\n".join(f"  {line}" for line in entry.lines)
        blocks.append(f"[bold]{entry.title}[/bold]\n{body}")
    return "\n\n".join(blocks)
