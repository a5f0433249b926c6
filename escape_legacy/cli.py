from __future__ import annotations

import logging
from importlib import metadata

import typer
from rich.console import Console
from rich.logging import RichHandler

from escape_legacy.core.audit import append_audit
from escape_legacy.core.catalog import load_catalog
from escape_legacy.core.config import GameConfig, load_config
from escape_legacy.core.models import ITEM_CATEGORIES, GameState
from escape_legacy.core.persistence import VALID_THEMES, SaveStore
from escape_legacy.core.puzzles import parse_answer
from escape_legacy.core.queries import (
    combinable_partners,
    current_level,
    current_room,
    inventory_by_category,
    is_level_unlocked,
    is_room_locked,
    level_progress,
    room_progress,
    story_journal,
)
from escape_legacy.core.store import GameStore
from escape_legacy.render import inventory_table, levels_table, render_room, render_story, rooms_table


app = typer.Typer(add_completion=False, help="Escape Legacy: Dark Passages, a narrative escape-room game")
settings_app = typer.Typer(help="Game settings")
app.add_typer(settings_app, name="settings")
console = Console()

INVENTORY_FILTERS = ("all", "keys", "usable", *ITEM_CATEGORIES)

INSTRUCTIONS = """[bold]Welcome to Escape Legacy: Dark Passages[/bold]

Each room contains items to collect, puzzles to solve, and hidden objects to find.
Use `take` to pick up items. Some items are keys that unlock doors, others are
required to solve puzzles, and some can be combined into new tools.

Locked rooms need a specific key: find it, then `unlock` the room.
Puzzles come as combination locks, patterns, riddles, hidden objects and
sequences. Each has a hint if you get stuck. Hunts ask you to `search` a room
for hidden objects and reward you with items crucial for your progression.

To complete a room, solve all puzzles within it. To complete a level, complete
all of its rooms. New levels unlock as you complete the current one.
Check `story` to review the narrative. Small details often hold important clues."""


def _get_version() -> str:
    try:
        return metadata.version("escape-legacy")
    except metadata.PackageNotFoundError:
        return "0.0.0+local"


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Show the Escape Legacy version and exit.",
        is_eager=True,
    ),
):
    if version:
        console.print(_get_version())
        raise typer.Exit()
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        raise typer.Exit()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _get_env(config_path: str) -> tuple[GameConfig, GameStore]:
    try:
        cfg = load_config(config_path or None)
        _setup_logging(cfg.log_level)
        catalog = load_catalog(cfg.catalog_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"❌ {e}")
        raise typer.Exit(code=1)
    store = GameStore.open(catalog, SaveStore.open(cfg.save_path))
    return cfg, store


def _require_started(store: GameStore) -> None:
    if not store.state.game_started:
        console.print("❌ No game in progress. Start one first: escape-legacy start")
        raise typer.Exit(code=3)


def _require_room(store: GameStore):
    room = current_room(store.catalog, store.state)
    if room is None:
        console.print("❌ You are not in a room. Pick one: escape-legacy room ROOM_ID")
        raise typer.Exit(code=3)
    return room


def _report_progress(store: GameStore, before: GameState) -> None:
    after = store.state
    for room_id in after.player.completed_rooms:
        if room_id in before.player.completed_rooms:
            continue
        room = store.catalog.room(room_id)
        console.print(f"🚪 [bold green]Room completed:[/bold green] {room.name}")
        if room.completion_text:
            console.print(room.completion_text)
    for level_id in after.player.completed_levels:
        if level_id in before.player.completed_levels:
            continue
        level = store.catalog.level(level_id)
        console.print(f"🏁 [bold green]Level completed:[/bold green] {level.name}")
        if level.story_outro:
            console.print(level.story_outro)
    for level_id in after.player.unlocked_levels:
        if level_id not in before.player.unlocked_levels:
            console.print(f"🔓 New level unlocked: [bold]{store.catalog.level(level_id).name}[/bold]")
    if after.game_completed and not before.game_completed:
        console.print("🏆 [bold]You escaped. The legacy is laid to rest.[/bold]")


@app.command("start")
def start(
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    if store.saves.is_first_play():
        console.print(INSTRUCTIONS)
        console.print("")
        store.saves.mark_instructions_shown()

    resumed = store.state.game_started
    store.start_game()
    append_audit({"event": "start", "resumed": resumed}, cfg.audit_path)
    if resumed:
        console.print("Resuming your game.")
    else:
        console.print("▶️  Game started. List levels with: escape-legacy levels")


@app.command("status")
def status(
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    _, store = _get_env(config)
    state = store.state
    level = current_level(store.catalog, state)
    room = current_room(store.catalog, state)
    console.print(f"Game: {'completed' if state.game_completed else 'in progress' if state.game_started else 'not started'}")
    console.print(f"Overall progress: {state.player.game_progress:.0f}%")
    if level is not None:
        console.print(f"Level: [bold]{level.name}[/bold] ({level_progress(store.catalog, state, level.level_id)}%)")
    if room is not None:
        console.print(f"Room: [bold]{room.name}[/bold]")
    console.print(f"Rooms completed: {room_progress(store.catalog, state)}%")
    console.print(f"Items held: {len(state.player.inventory)}")


@app.command("levels")
def levels(
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    _, store = _get_env(config)
    console.print(levels_table(store.catalog, store.state))


@app.command("enter")
def enter(
    level_id: str = typer.Argument(..., help="Level id"),
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    _require_started(store)
    level = store.catalog.level(level_id)
    if level is None:
        console.print(f"❌ Unknown level: {level_id}")
        raise typer.Exit(code=2)
    if not is_level_unlocked(store.catalog, store.state, level_id):
        console.print(f"🔒 {level.name} is still locked.")
        raise typer.Exit(code=4)

    store.set_current_level(level_id)
    append_audit({"event": "enter", "level": level_id}, cfg.audit_path)
    console.print(f"[bold]{level.name}[/bold]\n")
    console.print(level.story_intro)
    console.print("")
    console.print(rooms_table(store.catalog, store.state, level.rooms))


@app.command("room")
def room(
    room_id: str = typer.Argument("", help="Room id in the current level; omit to look around"),
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    _require_started(store)
    level = current_level(store.catalog, store.state)
    if level is None:
        console.print("❌ Enter a level first: escape-legacy enter LEVEL_ID")
        raise typer.Exit(code=3)

    if not room_id:
        here = current_room(store.catalog, store.state)
        if here is None:
            console.print(rooms_table(store.catalog, store.state, level.rooms))
        else:
            console.print(render_room(store.catalog, store.state, here))
        return

    target = next((r for r in level.rooms if r.room_id == room_id), None)
    if target is None:
        console.print(f"❌ No room '{room_id}' in {level.name}")
        raise typer.Exit(code=2)
    if is_room_locked(store.catalog, store.state, room_id):
        console.print(f"🔒 {target.name} is locked. It needs: {target.required_key_id}")
        raise typer.Exit(code=4)

    store.set_current_room(room_id)
    append_audit({"event": "room", "room": room_id}, cfg.audit_path)
    console.print(render_room(store.catalog, store.state, target))


@app.command("take")
def take(
    item_id: str = typer.Argument(..., help="Item id in the current room"),
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    _require_started(store)
    _require_room(store)
    item = store.collect_item(item_id)
    if item is None:
        console.print(f"❌ There is no '{item_id}' here to take.")
        raise typer.Exit(code=4)
    append_audit({"event": "take", "item": item_id}, cfg.audit_path)
    console.print(f"🧰 Collected: [bold]{item.name}[/bold]")
    console.print(item.description)
    if item.reveals is not None:
        for line in store.catalog.dialogue(item.reveals):
            console.print(f"  [italic]{line}[/italic]")


@app.command("inventory")
def inventory(
    category: str = typer.Option("all", "--category", "-c", help="all, keys, usable or an item category"),
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    _, store = _get_env(config)
    if category not in INVENTORY_FILTERS:
        console.print(f"❌ Unknown category '{category}'. Choose from: {', '.join(INVENTORY_FILTERS)}")
        raise typer.Exit(code=2)
    items = inventory_by_category(store.state, category)
    if not items:
        console.print("Your inventory is empty.")
        return
    console.print(inventory_table(items))
    for item in items:
        if store.can_use_item(item.item_id):
            console.print(f"✨ {item.name} can be used here.")
        partners = combinable_partners(store.catalog, store.state, item.item_id)
        if partners:
            console.print(f"🔗 {item.name} combines with: {', '.join(p.name for p in partners)}")


@app.command("unlock")
def unlock(
    room_id: str = typer.Argument(..., help="Locked room id"),
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    _require_started(store)
    target = store.catalog.room(room_id)
    if target is None:
        console.print(f"❌ Unknown room: {room_id}")
        raise typer.Exit(code=2)
    if not is_room_locked(store.catalog, store.state, room_id):
        console.print(f"{target.name} is not locked.")
        return

    before = store.state
    if store.unlock_room(room_id) is before:
        console.print(f"🔒 You need {target.required_key_id} to unlock {target.name}.")
        raise typer.Exit(code=5)
    append_audit({"event": "unlock", "room": room_id}, cfg.audit_path)
    console.print(f"🔓 Unlocked: [bold]{target.name}[/bold]")


@app.command("combine")
def combine(
    first_item_id: str = typer.Argument(..., help="First item id"),
    second_item_id: str = typer.Argument(..., help="Second item id"),
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    _require_started(store)
    result = store.combine_items(first_item_id, second_item_id)
    append_audit(
        {"event": "combine", "items": [first_item_id, second_item_id], "success": result.success},
        cfg.audit_path,
    )
    if not result.success:
        console.print(f"❌ {result.message}")
        raise typer.Exit(code=5)
    console.print(f"⚗️  {result.message}")
    console.print(result.new_item.description)


@app.command("solve")
def solve(
    puzzle_id: str = typer.Argument(..., help="Puzzle id in the current room"),
    answers: list[str] = typer.Option([], "--answer", "-a", help="Answer to submit; repeat for several tries"),
    hint: bool = typer.Option(False, "--hint", help="Show the puzzle hint first"),
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    _require_started(store)
    _require_room(store)
    attempt = store.start_puzzle(puzzle_id)
    if attempt is None:
        console.print(f"❌ There is no unsolved puzzle '{puzzle_id}' to work on here.")
        raise typer.Exit(code=4)

    puzzle = attempt.puzzle
    console.print(f"[bold]{puzzle.description}[/bold]")
    if hint:
        console.print(f"💡 {puzzle.hint}")

    before = store.state
    pending = list(answers)
    result = None
    while not attempt.finished:
        if answers:
            if not pending:
                break
            text = pending.pop(0)
        else:
            text = typer.prompt("Answer")
        result = store.submit_answer(attempt, parse_answer(puzzle, text))
        console.print(result.message)
        if result.status == "missing_items":
            break

    if result is None:
        return
    append_audit({"event": "solve", "puzzle": puzzle_id, "status": result.status}, cfg.audit_path)
    if result.status == "solved":
        _report_progress(store, before)
    elif result.status in ("failed", "missing_items"):
        raise typer.Exit(code=5)


@app.command("search")
def search(
    target_id: str = typer.Argument(..., help="Hunt id or hidden-object puzzle id in the current room"),
    found: list[str] = typer.Option([], "--found", "-f", help="Object id to inspect; repeat for several"),
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    _require_started(store)
    _require_room(store)
    session = store.start_search(target_id)
    if session is None:
        console.print(f"❌ There is nothing left to search for with '{target_id}' here.")
        raise typer.Exit(code=4)

    console.print(f"[bold]{session.name}[/bold]")
    console.print("Things to inspect: " + ", ".join(obj.object_id for obj in session.hidden_objects))

    before = store.state
    pending = list(found)
    while not session.completed:
        if found:
            if not pending:
                break
            object_id = pending.pop(0)
        else:
            object_id = typer.prompt("Inspect", default="", show_default=False)
            if not object_id:
                break
        result = store.discover(session, object_id)
        console.print(f"{result.message} ({result.found}/{result.total})")

    append_audit(
        {"event": "search", "target": target_id, "found": session.found, "completed": session.completed},
        cfg.audit_path,
    )
    if not session.completed:
        return
    if session.kind == "hunt":
        hunt = store.catalog.hunt(target_id)
        if hunt.reward is not None:
            console.print(f"🎁 Reward: [bold]{hunt.reward.name}[/bold]")
    _report_progress(store, before)


@app.command("story")
def story(
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    _, store = _get_env(config)
    entries = story_journal(store.catalog, store.state)
    console.print(render_story(entries))
    # story_progress counts the journal entries the player has read
    while store.state.story_progress < len(entries):
        store.advance_story()


@app.command("reset")
def reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    if not yes and not typer.confirm("Reset all progress?"):
        raise typer.Exit(code=1)
    store.reset_game()
    append_audit({"event": "reset"}, cfg.audit_path)
    console.print("Progress has been reset.")


@settings_app.command("show")
def settings_show(
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    _, store = _get_env(config)
    s = store.state.settings
    console.print(f"Theme: {s.theme}")
    console.print(f"Sound: {'on' if s.sound_enabled else 'off'}")
    console.print(f"Music volume: {s.music_volume:.1f}")
    console.print(f"SFX volume: {s.sfx_volume:.1f}")


@settings_app.command("theme")
def settings_theme(
    theme: str = typer.Argument(..., help="dark or light"),
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    _require_started(store)
    if theme not in VALID_THEMES:
        console.print(f"❌ Unknown theme '{theme}'. Choose from: {', '.join(VALID_THEMES)}")
        raise typer.Exit(code=2)
    store.set_theme(theme)
    append_audit({"event": "settings_theme", "theme": theme}, cfg.audit_path)
    console.print(f"Theme set to {theme}.")


@settings_app.command("sound")
def settings_sound(
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    _require_started(store)
    enabled = store.toggle_sound().settings.sound_enabled
    append_audit({"event": "settings_sound", "enabled": enabled}, cfg.audit_path)
    console.print(f"Sound {'on' if enabled else 'off'}.")


@settings_app.command("music")
def settings_music(
    volume: float = typer.Argument(..., min=0.0, max=1.0, help="Music volume between 0 and 1"),
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    _require_started(store)
    store.set_music_volume(volume)
    append_audit({"event": "settings_music", "volume": volume}, cfg.audit_path)
    console.print(f"Music volume set to {volume:.1f}.")


@settings_app.command("sfx")
def settings_sfx(
    volume: float = typer.Argument(..., min=0.0, max=1.0, help="Sound effects volume between 0 and 1"),
    config: str = typer.Option("", "--config", help="Path to config file"),
):
    cfg, store = _get_env(config)
    _require_started(store)
    store.set_sfx_volume(volume)
    append_audit({"event": "settings_sfx", "volume": volume}, cfg.audit_path)
    console.print(f"SFX volume set to {volume:.1f}.")
