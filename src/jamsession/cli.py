"""JamSession CLI - build a queue, run it against the clock, file notes."""

import asyncio
import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Annotated, Optional, TypeVar

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from jamsession import __version__, config
from jamsession.library import ItemLookup, StaticLibrary, entry_label, format_duration
from jamsession.runtime.clock import ClockDriver
from jamsession.runtime.store import SessionStore
from jamsession.runtime.sync import PersistenceSync
from jamsession.session.actions import (
    AddBreak,
    AddEntry,
    Advance,
    ClearArchive,
    ClearCurrent,
    CreateQueue,
    DeleteArchiveEntry,
    DeleteTemplate,
    FinishRun,
    LoadTemplateAsCurrent,
    RecordActualSeconds,
    RemoveEntry,
    RenameTemplate,
    Reorder,
    SaveCurrentAsTemplate,
    SaveRunAsTemplate,
    SetDuration,
    SetEntryNotes,
    StartRun,
    ToggleStarred,
)
from jamsession.session.estimates import (
    actual_seconds,
    estimate_end_times,
    has_actual_time,
    item_numbers,
    planned_minutes,
)
from jamsession.session.models import AppState, QueueEntry
from jamsession.session.timer import Pause, Resume
from jamsession.storage.sqlite import SqliteStorage

app = typer.Typer(
    name="jam",
    help="Plan, run, and reflect on timed facilitation sessions.",
    no_args_is_help=True,
)
queue_app = typer.Typer(help="Build the current queue.")
templates_app = typer.Typer(help="Manage saved templates.")
history_app = typer.Typer(help="Browse and manage completed runs.")

app.add_typer(queue_app, name="queue")
app.add_typer(templates_app, name="templates")
app.add_typer(history_app, name="history")

console = Console()

T = TypeVar("T")


def version_callback(value: bool) -> None:
    if value:
        console.print(f"jam {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        Optional[bool],
        typer.Option("--version", "-v", callback=version_callback, is_eager=True),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", help="Show debug logging")] = False,
) -> None:
    """JamSession - plan, run, and reflect on timed facilitation sessions."""
    config.ensure_dirs()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


# ── Helpers ──────────────────────────────────────────────────────


@asynccontextmanager
async def _opened():
    """Hydrate a store from the local database; flush pending saves on the way out."""
    storage = SqliteStorage(config.DB_PATH)
    store = SessionStore()
    sync = PersistenceSync(store, storage)
    try:
        await sync.hydrate()
        yield store
    finally:
        await sync.flush()
        sync.close()
        storage.close()


def _with_store(fn: Callable[[SessionStore], T]) -> T:
    async def go() -> T:
        async with _opened() as store:
            return fn(store)

    return asyncio.run(go())


def _library() -> ItemLookup:
    return StaticLibrary.from_json(config.LIBRARY_PATH)


def _require_queue(state: AppState) -> None:
    if state.current is None:
        console.print("[red]No queue.[/red] Start one with: jam queue new")
        raise typer.Exit(1)


def _require_position(state: AppState, number: int) -> int:
    """Convert a 1-based queue number to a position."""
    _require_queue(state)
    if not 1 <= number <= len(state.current.entries):
        console.print(f"[red]No entry #{number}[/red] (queue has {len(state.current.entries)})")
        raise typer.Exit(1)
    return number - 1


def _print_queue(state: AppState, library: ItemLookup) -> None:
    session = state.current
    title = session.display_name or "Current queue"
    table = Table(title=title)
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Item", style="green")
    table.add_column("Target", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Notes")

    numbers = item_numbers(session.entries)
    for i, entry in enumerate(session.entries):
        marker = "▶ " if i == state.active_index else ""
        label = entry_label(entry, library)
        if numbers[i] is None:
            label = f"[dim]{label}[/dim]"
        actual = format_duration(entry.actual_seconds) if entry.actual_seconds is not None else ""
        table.add_row(f"{marker}{i + 1}", label, f"{entry.target_minutes}m", actual, entry.run_notes or "")

    console.print(table)
    console.print(f"Planned: {planned_minutes(session.entries)} min")
    if has_actual_time(session.entries):
        console.print(f"Actual: {format_duration(actual_seconds(session.entries))}")


def _print_status(state: AppState, library: ItemLookup) -> None:
    entry: QueueEntry = state.active_entry
    total = len(state.current.entries)
    timer = state.timer
    target = entry.target_minutes * 60
    style = "red" if timer.elapsed_seconds >= target else "green"
    paused = " [yellow](paused)[/yellow]" if timer.paused else ""
    console.print(
        f"[bold]{state.active_index + 1}/{total}[/bold] {entry_label(entry, library)} "
        f"[{style}]{format_duration(timer.elapsed_seconds)}[/{style}] / {format_duration(target)}"
        f"  total {format_duration(timer.cumulative_seconds)}{paused}"
    )
    estimate = estimate_end_times(
        state.current.entries, state.active_index, timer.elapsed_seconds, datetime.now().astimezone()
    )
    console.print(
        f"[dim]this ends ~{estimate.current_entry_ends:%H:%M}, "
        f"done ~{estimate.run_ends:%H:%M}[/dim]"
    )


# ── Queue commands ───────────────────────────────────────────────


@queue_app.command("new")
def queue_new(
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="Label for the queue")] = None,
) -> None:
    """Start a new empty queue, replacing the current one."""
    _with_store(lambda store: store.dispatch(CreateQueue(display_name=name)))
    console.print("[green]Created queue[/green]" + (f": {name}" if name else ""))


@queue_app.command("add")
def queue_add(
    item: Annotated[str, typer.Argument(help="Library item id (e.g. learnimprov:zip-zap-zop)")],
    minutes: Annotated[int, typer.Option("--minutes", "-m", min=1, help="Target minutes")] = config.DEFAULT_ENTRY_MINUTES,
) -> None:
    """Add an item to the end of the queue."""

    def add(store: SessionStore) -> None:
        if store.state.current is None:
            store.dispatch(CreateQueue())
        store.dispatch(AddEntry(item_ref=item, minutes=minutes))

    _with_store(add)
    console.print(f"[green]Added:[/green] {item} ({minutes}m)")


@queue_app.command("break")
def queue_break(
    minutes: Annotated[int, typer.Option("--minutes", "-m", min=1, help="Break length")] = config.DEFAULT_BREAK_MINUTES,
) -> None:
    """Add a break to the end of the queue."""

    def add(store: SessionStore) -> None:
        _require_queue(store.state)
        store.dispatch(AddBreak(minutes=minutes))

    _with_store(add)
    console.print(f"[green]Added break[/green] ({minutes}m)")


@queue_app.command("remove")
def queue_remove(
    number: Annotated[int, typer.Argument(help="Queue number to remove")],
) -> None:
    """Remove an entry from the queue."""

    def remove(store: SessionStore) -> None:
        position = _require_position(store.state, number)
        before = store.state
        if store.dispatch(RemoveEntry(position=position)) is before:
            console.print("[red]Can't remove an entry that has already run.[/red]")
            raise typer.Exit(1)

    _with_store(remove)
    console.print(f"[green]Removed #{number}[/green]")


@queue_app.command("move")
def queue_move(
    source: Annotated[int, typer.Argument(help="Queue number to move")],
    dest: Annotated[int, typer.Argument(help="Queue number to move it to")],
) -> None:
    """Move an entry to a new place in the queue."""

    def move(store: SessionStore) -> None:
        from_index = _require_position(store.state, source)
        to_index = _require_position(store.state, dest)
        before = store.state
        if store.dispatch(Reorder(from_index=from_index, to_index=to_index)) is before and source != dest:
            console.print("[red]Only upcoming entries can be moved during a run.[/red]")
            raise typer.Exit(1)

    _with_store(move)
    console.print(f"[green]Moved #{source} → #{dest}[/green]")


@queue_app.command("duration")
def queue_duration(
    number: Annotated[int, typer.Argument(help="Queue number")],
    minutes: Annotated[int, typer.Argument(min=1, help="New target minutes")],
) -> None:
    """Change an entry's target duration."""

    def set_duration(store: SessionStore) -> None:
        position = _require_position(store.state, number)
        store.dispatch(SetDuration(position=position, minutes=minutes))

    _with_store(set_duration)
    console.print(f"[green]#{number} now {minutes}m[/green]")


@queue_app.command("notes")
def queue_notes(
    number: Annotated[int, typer.Argument(help="Queue number")],
    text: Annotated[str, typer.Argument(help="Notes for this entry")],
) -> None:
    """Attach notes to an entry."""

    def set_notes(store: SessionStore) -> None:
        position = _require_position(store.state, number)
        store.dispatch(SetEntryNotes(position=position, text=text))

    _with_store(set_notes)
    console.print(f"[green]Saved notes for #{number}[/green]")


@queue_app.command("show")
def queue_show() -> None:
    """Show the current queue."""
    state = _with_store(lambda store: store.state)
    if state.current is None:
        console.print("[dim]No queue. Start one with:[/dim]")
        console.print("  jam queue new")
        return
    _print_queue(state, _library())


@queue_app.command("clear")
def queue_clear() -> None:
    """Discard the current queue (and any run in progress)."""
    _with_store(lambda store: store.dispatch(ClearCurrent()))
    console.print("[green]Cleared current queue[/green]")


# ── Run commands ─────────────────────────────────────────────────


RUN_HELP = "[dim]Enter: next · p: pause/resume · s: status · m FROM TO: move upcoming · q: quit[/dim]"


async def _run_interactive(store: SessionStore, library: ItemLookup) -> None:
    async with ClockDriver(store):
        _print_status(store.state, library)
        console.print(RUN_HELP)
        while store.state.is_running:
            line = (await asyncio.to_thread(console.input, "> ")).strip().lower()
            state = store.state

            if line == "":
                store.dispatch(
                    RecordActualSeconds(position=state.active_index, seconds=state.timer.elapsed_seconds)
                )
                store.dispatch(Advance())
                if not store.state.is_running:
                    break
                _print_status(store.state, library)
            elif line == "p":
                store.dispatch(Resume() if state.timer.paused else Pause())
                _print_status(store.state, library)
            elif line == "s":
                _print_status(state, library)
                _print_queue(state, library)
            elif line.startswith("m "):
                parts = line.split()
                if len(parts) != 3 or not all(p.isdigit() for p in parts[1:]):
                    console.print("[red]Usage:[/red] m FROM TO (queue numbers)")
                    continue
                before = store.state
                store.dispatch(Reorder(from_index=int(parts[1]) - 1, to_index=int(parts[2]) - 1))
                if store.state is before:
                    console.print("[red]Only upcoming entries can be moved.[/red]")
            elif line == "q":
                store.dispatch(Pause())
                console.print("[yellow]Run paused.[/yellow] Resume with: jam run")
                return
            else:
                console.print(RUN_HELP)

    console.print("[green]Run complete.[/green] File your notes with: jam finish --notes \"...\"")


@app.command("run")
def run() -> None:
    """Run the current queue with a live timer (resumes a paused run)."""

    async def go() -> None:
        async with _opened() as store:
            state = store.state
            _require_queue(state)
            if state.is_running:
                store.dispatch(Resume())
            else:
                if not state.current.entries:
                    console.print("[red]Queue is empty.[/red] Add items with: jam queue add <item>")
                    raise typer.Exit(1)
                store.dispatch(StartRun())
            await _run_interactive(store, _library())

    asyncio.run(go())


@app.command("finish")
def finish(
    notes: Annotated[str, typer.Option("--notes", "-n", help="Reflection notes")] = "",
) -> None:
    """Archive the current queue as a completed run."""

    def archive(store: SessionStore) -> None:
        _require_queue(store.state)
        store.dispatch(FinishRun(reflection_notes=notes))

    _with_store(archive)
    console.print("[green]Run archived.[/green]")


# ── Template commands ────────────────────────────────────────────


@templates_app.command("list")
def templates_list() -> None:
    """List saved templates."""
    state = _with_store(lambda store: store.state)
    if not state.templates:
        console.print("[dim]No templates yet. Save one with:[/dim]")
        console.print("  jam templates save <name>")
        return

    table = Table(title="Templates")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Entries", justify="right")
    table.add_column("Planned", justify="right")
    for template in state.templates:
        table.add_row(
            template.id,
            template.display_name or "",
            str(len(template.entries)),
            f"{planned_minutes(template.entries)}m",
        )
    console.print(table)


@templates_app.command("save")
def templates_save(
    name: Annotated[str, typer.Argument(help="Template name")],
) -> None:
    """Save the current queue as a reusable template."""

    def save(store: SessionStore) -> None:
        _require_queue(store.state)
        if not name.strip():
            console.print("[red]Template name can't be blank.[/red]")
            raise typer.Exit(1)
        store.dispatch(SaveCurrentAsTemplate(name=name))

    _with_store(save)
    console.print(f"[green]Saved template:[/green] {name.strip()}")


@templates_app.command("load")
def templates_load(
    template_id: Annotated[str, typer.Argument(help="Template ID")],
) -> None:
    """Load a template as the current queue."""

    def load(store: SessionStore) -> None:
        if store.state.get_template(template_id) is None:
            console.print(f"[red]Template not found:[/red] {template_id}")
            raise typer.Exit(1)
        store.dispatch(LoadTemplateAsCurrent(template_id=template_id))

    _with_store(load)
    console.print(f"[green]Loaded template[/green] {template_id}")


@templates_app.command("rename")
def templates_rename(
    template_id: Annotated[str, typer.Argument(help="Template ID")],
    name: Annotated[str, typer.Argument(help="New name")],
) -> None:
    """Rename a template."""

    def rename(store: SessionStore) -> None:
        if store.state.get_template(template_id) is None:
            console.print(f"[red]Template not found:[/red] {template_id}")
            raise typer.Exit(1)
        store.dispatch(RenameTemplate(template_id=template_id, name=name))

    _with_store(rename)
    console.print(f"[green]Renamed[/green] {template_id}")


@templates_app.command("delete")
def templates_delete(
    template_id: Annotated[str, typer.Argument(help="Template ID")],
) -> None:
    """Delete a template."""

    def delete(store: SessionStore) -> None:
        before = store.state
        if store.dispatch(DeleteTemplate(template_id=template_id)) is before:
            console.print(f"[red]Template not found:[/red] {template_id}")
            raise typer.Exit(1)

    _with_store(delete)
    console.print(f"[green]Deleted template[/green] {template_id}")


# ── History commands ─────────────────────────────────────────────


def _require_archive_index(state: AppState, number: int) -> int:
    if not 1 <= number <= len(state.archive):
        console.print(f"[red]No run #{number}[/red] (history has {len(state.archive)})")
        raise typer.Exit(1)
    return number - 1


@history_app.command("list")
def history_list() -> None:
    """List completed runs, oldest first."""
    state = _with_store(lambda store: store.state)
    if not state.archive:
        console.print("[dim]No completed runs yet.[/dim]")
        return

    table = Table(title="History")
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Completed")
    table.add_column("Entries", justify="right")
    table.add_column("Planned", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Notes")
    for i, record in enumerate(state.archive, 1):
        actual = format_duration(actual_seconds(record.entries)) if has_actual_time(record.entries) else ""
        table.add_row(
            str(i),
            f"{record.completed_at.astimezone():%Y-%m-%d %H:%M}",
            str(len(record.entries)),
            f"{planned_minutes(record.entries)}m",
            actual,
            record.reflection_notes,
        )
    console.print(table)


@history_app.command("delete")
def history_delete(
    number: Annotated[int, typer.Argument(help="Run number (from history list)")],
) -> None:
    """Delete one completed run."""

    def delete(store: SessionStore) -> None:
        index = _require_archive_index(store.state, number)
        store.dispatch(DeleteArchiveEntry(index=index))

    _with_store(delete)
    console.print(f"[green]Deleted run #{number}[/green]")


@history_app.command("clear")
def history_clear(
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete every completed run."""
    if not yes and not typer.confirm("Clear all history? This cannot be undone."):
        raise typer.Exit(1)
    _with_store(lambda store: store.dispatch(ClearArchive()))
    console.print("[green]History cleared[/green]")


@history_app.command("save-template")
def history_save_template(
    number: Annotated[int, typer.Argument(help="Run number (from history list)")],
    name: Annotated[str, typer.Argument(help="Template name")],
) -> None:
    """Save a completed run's plan as a template."""

    def save(store: SessionStore) -> None:
        index = _require_archive_index(store.state, number)
        if not name.strip():
            console.print("[red]Template name can't be blank.[/red]")
            raise typer.Exit(1)
        store.dispatch(SaveRunAsTemplate(archive_index=index, name=name))

    _with_store(save)
    console.print(f"[green]Saved template:[/green] {name.strip()}")


# ── Stars ────────────────────────────────────────────────────────


@app.command("star")
def star(
    item: Annotated[str, typer.Argument(help="Library item id")],
) -> None:
    """Star or unstar a library item."""
    state = _with_store(lambda store: store.dispatch(ToggleStarred(item_id=item)))
    if item in state.starred_item_ids:
        console.print(f"[green]Starred:[/green] {item}")
    else:
        console.print(f"[yellow]Unstarred:[/yellow] {item}")


@app.command("starred")
def starred() -> None:
    """List starred items."""
    state = _with_store(lambda store: store.state)
    if not state.starred_item_ids:
        console.print("[dim]No starred items.[/dim]")
        return
    library = _library()
    for item_id in sorted(state.starred_item_ids):
        found = library.get(item_id)
        console.print(f"  {item_id}" + (f" [dim]({found.name})[/dim]" if found else ""))
