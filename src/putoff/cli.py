"""CLI commands."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.text import Text

if TYPE_CHECKING:
    from putoff.config import Config
    from putoff.engine import TaskEngine
    from putoff.models import Task

app = typer.Typer(
    name="putoff",
    help="Personal task tracker - dreams, deadlines and events.",
    no_args_is_help=False,
)
console = Console()

DATE_FORMATS = ["%Y-%m-%d", "%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M"]


def _get_config() -> Config:
    """Lazy import and load config."""
    from putoff.config import Config

    return Config.load()


def _open_engine(cfg: Config) -> TaskEngine:
    """Create the engine over the configured storage, with the saved undo step."""
    from putoff.engine import TaskEngine
    from putoff.errors import PersistenceError
    from putoff.storage import Storage
    from putoff.undo import load_undo_state

    storage = Storage.from_config(cfg)
    try:
        return TaskEngine.open(storage, previous_state=load_undo_state(cfg))
    except PersistenceError as e:
        console.print(f"[red]Error:[/red] {e}")
        console.print("  Hint: Set PUTOFF_CONFIG_DIR to a writable directory")
        raise typer.Exit(1)


def _task_at(engine: TaskEngine, line: int) -> Task:
    from putoff.errors import TaskNotFoundError

    try:
        return engine.task_at(line)
    except TaskNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


def _finish(cfg: Config, engine: TaskEngine, saved: bool, message: str) -> None:
    """Remember the undo step, then report the outcome of a mutation."""
    from putoff.undo import save_undo_state

    save_undo_state(cfg, engine.previous_state)
    if not saved:
        console.print("[red]Error:[/red] Could not save changes to file!")
        console.print("  Hint: Use [bold]putoff set-location DIR[/bold] to pick another location")
        raise typer.Exit(1)
    console.print(message)


def _fmt(dt: datetime, cfg: Config) -> str:
    return dt.strftime(cfg.datetime_format)


def _describe(task: Task, cfg: Config) -> str:
    """Short human description: kind, text and dates."""
    from putoff.models import Deadline, Dream, Event

    text = escape(task.description)
    if isinstance(task, Dream):
        return f"dream: {text}"
    if isinstance(task, Deadline):
        return f"deadline: {text} due {_fmt(task.due_date, cfg)}"
    if isinstance(task, Event):
        return f"event: {text} {_fmt(task.start_date, cfg)} to {_fmt(task.end_date, cfg)}"
    raise TypeError(f"Unknown task type: {type(task).__name__}")


def _build_task(
    description: str,
    due: datetime | None,
    start: datetime | None,
    end: datetime | None,
    is_done: bool = False,
) -> Task:
    """Pick the task variant from the dates given."""
    from putoff.models import Deadline, Dream, Event

    if due and (start or end):
        raise ValueError("Use either --due or --start/--end, not both")
    if (start is None) != (end is None):
        raise ValueError("Events need both --start and --end")
    if due:
        return Deadline(description, due, is_done=is_done)
    if start and end:
        return Event(description, start, end, is_done=is_done)
    return Dream(description, is_done=is_done)


def _print_rows(rows, format_: str | None, cfg: Config) -> None:
    from putoff.formatters import get_formatter

    try:
        formatter = get_formatter(format_ or cfg.default_format, cfg.datetime_format)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    output = formatter.format(rows)
    if output:
        # Machine-readable output must not be wrapped at the terminal width
        console.print(output, soft_wrap=isinstance(output, Text))


@app.callback()
def callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
):
    """Personal task tracker - dreams, deadlines and events."""
    from putoff.logging_setup import setup_logging

    cfg = _get_config()
    try:
        setup_logging("DEBUG" if verbose else cfg.log_level)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)


@app.command()
def add(
    text: Annotated[str, typer.Argument(help="Task description")],
    due: Annotated[
        datetime | None, typer.Option("--due", formats=DATE_FORMATS, help="Deadline due date")
    ] = None,
    start: Annotated[
        datetime | None, typer.Option("--start", formats=DATE_FORMATS, help="Event start")
    ] = None,
    end: Annotated[
        datetime | None, typer.Option("--end", formats=DATE_FORMATS, help="Event end")
    ] = None,
):
    """Add a dream, a deadline (--due) or an event (--start/--end)."""
    cfg = _get_config()

    try:
        task = _build_task(text, due, start, end)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    engine = _open_engine(cfg)
    saved = engine.add(task)
    _finish(cfg, engine, saved, f"[green]✓[/green] New {_describe(task, cfg)}")


@app.command()
def edit(
    line: Annotated[int, typer.Argument(help="Line number from ls")],
    text: Annotated[str | None, typer.Option("--text", "-t", help="New description")] = None,
    due: Annotated[
        datetime | None, typer.Option("--due", formats=DATE_FORMATS, help="Deadline due date")
    ] = None,
    start: Annotated[
        datetime | None, typer.Option("--start", formats=DATE_FORMATS, help="Event start")
    ] = None,
    end: Annotated[
        datetime | None, typer.Option("--end", formats=DATE_FORMATS, help="Event end")
    ] = None,
    dream: Annotated[bool, typer.Option("--dream", help="Turn into a dream")] = False,
):
    """Edit a task's description, or turn it into another kind of task."""
    from putoff.models import copy_with_new_id

    if text is None and not (due or start or end or dream):
        console.print("[yellow]Please specify the new description or date(s)[/yellow]")
        raise typer.Exit(1)
    if dream and (due or start or end):
        console.print("[red]Error:[/red] --dream cannot be combined with dates")
        raise typer.Exit(1)

    cfg = _get_config()
    engine = _open_engine(cfg)
    old = _task_at(engine, line)
    description = text if text is not None else old.description

    try:
        if due or start or end or dream:
            new_task = _build_task(description, due, start, end, is_done=old.is_done)
        else:
            new_task = replace(copy_with_new_id(old), description=description)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    saved = engine.edit(old.id, new_task)
    _finish(cfg, engine, saved, f"[green]✓[/green] Edited #{line}: {_describe(new_task, cfg)}")


@app.command(name="remove")
@app.command()
def rm(
    line: Annotated[int, typer.Argument(help="Line number from ls")],
):
    """Delete a task."""
    cfg = _get_config()
    engine = _open_engine(cfg)
    task = _task_at(engine, line)

    saved = engine.delete(task.id)
    _finish(cfg, engine, saved, f"[yellow]✓[/yellow] Deleted {_describe(task, cfg)}")


@app.command()
def done(
    line: Annotated[int, typer.Argument(help="Line number from ls")],
):
    """Mark a task done, or not done if it already is."""
    cfg = _get_config()
    engine = _open_engine(cfg)
    task = _task_at(engine, line)

    saved = engine.toggle_done(task.id)
    verb = "Undone" if task.is_done else "Done"
    _finish(cfg, engine, saved, f"[green]✓[/green] {verb} {_describe(task, cfg)}")


@app.command()
def undo():
    """Undo the last operation (run again to redo it)."""
    cfg = _get_config()
    engine = _open_engine(cfg)

    if not engine.has_previous_operation():
        console.print("[yellow]Nothing to undo[/yellow]")
        raise typer.Exit(0)

    saved = bool(engine.undo())
    _finish(cfg, engine, saved, "[yellow]↩[/yellow] Undid last operation")


@app.command(name="list")
@app.command(name="ls")
def list_tasks(
    done: Annotated[bool, typer.Option("--done", help="Show completed")] = False,
    all_: Annotated[bool, typer.Option("-a", "--all", help="Show all")] = False,
    format_: Annotated[str | None, typer.Option("-f", "--format", help="Output format")] = None,
):
    """List tasks with their line numbers."""
    cfg = _get_config()
    engine = _open_engine(cfg)

    rows = list(enumerate(engine.get_all(), start=1))
    outstanding_count = len(engine.get_outstanding())
    if not all_:
        rows = rows[outstanding_count:] if done else rows[:outstanding_count]

    _print_rows(rows, format_, cfg)


@app.command()
def search(
    term: Annotated[str | None, typer.Argument(help="Text the description contains")] = None,
    on: Annotated[
        datetime | None, typer.Option("--on", formats=DATE_FORMATS, help="Tasks on a day")
    ] = None,
    due_by: Annotated[
        datetime | None, typer.Option("--due-by", formats=DATE_FORMATS, help="Due by a day")
    ] = None,
    from_: Annotated[
        datetime | None, typer.Option("--from", formats=DATE_FORMATS, help="Range start day")
    ] = None,
    to: Annotated[
        datetime | None, typer.Option("--to", formats=DATE_FORMATS, help="Range end day")
    ] = None,
    show_done: Annotated[
        bool | None,
        typer.Option(
            "--done/--outstanding",
            help="Include completed tasks (default: yes, except for --on and --due-by)",
        ),
    ] = None,
    format_: Annotated[str | None, typer.Option("-f", "--format", help="Output format")] = None,
):
    """Search tasks by text and/or date."""
    from putoff.search import SearchQuery

    cfg = _get_config()
    include_done = show_done if show_done is not None else not (on or due_by)
    date_forms = sum(x is not None for x in (on, due_by)) + (from_ is not None or to is not None)
    if date_forms > 1:
        console.print("[red]Error:[/red] Use only one of --on, --due-by or --from/--to")
        raise typer.Exit(1)
    if (from_ is None) != (to is None):
        console.print("[red]Error:[/red] --from and --to must be given together")
        raise typer.Exit(1)

    feedback = "Searching for tasks"
    if term:
        feedback += f" containing '{escape(term)}'"
    try:
        if on:
            query = SearchQuery.on(on, term, include_done)
            feedback += f" on {on.date().isoformat()}"
        elif due_by:
            query = SearchQuery.due_by(due_by, term, include_done)
            feedback += f" due by {due_by.date().isoformat()}"
        elif from_ and to:
            query = SearchQuery.between(from_, to, term, include_done)
            feedback += f" from {from_.date().isoformat()} to {to.date().isoformat()}"
        else:
            query = SearchQuery(term, include_done=include_done)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    engine = _open_engine(cfg)
    lines = {task.id: number for number, task in enumerate(engine.get_all(), start=1)}
    found = engine.search(query.term, query.start_date, query.end_date, query.include_done)

    console.print(f"[dim]{feedback}[/dim]")
    _print_rows([(lines[task.id], task) for task in found], format_, cfg)


@app.command(name="set-location")
def set_location(
    directory: Annotated[str, typer.Argument(help="Directory for the save file")],
    filename: Annotated[str | None, typer.Argument(help="Save file name")] = None,
):
    """Move the save file to another directory and/or name."""
    cfg = _get_config()
    engine = _open_engine(cfg)

    if not engine.set_save_location(directory, filename):
        console.print(f"[red]Error:[/red] Could not set save location: {directory}")
        console.print("  Please set a different save location and try again")
        raise typer.Exit(1)

    console.print(
        f"[green]✓[/green] Set save location to {engine.storage.save_file}", soft_wrap=True
    )


@app.command()
def config(
    key: Annotated[str | None, typer.Argument(help="Setting to change")] = None,
    value: Annotated[str | None, typer.Argument(help="New value")] = None,
):
    """Show settings, or change one."""
    from rich.table import Table

    from putoff.formatters import FORMATTERS
    from putoff.logging_setup import parse_level

    cfg = _get_config()

    if key is None:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Setting", style="cyan")
        table.add_column("Value")
        table.add_column("Description", style="dim")
        for name, desc, current in cfg.get_settings():
            table.add_row(name, escape(str(current)), desc)
        console.print(table)
        return

    if value is None:
        console.print(f"[red]Error:[/red] Please give a value for {escape(key)}")
        raise typer.Exit(1)

    try:
        if key == "default_format" and value not in FORMATTERS:
            raise ValueError(f"Unknown format: {value}. Available: {', '.join(FORMATTERS)}")
        if key == "log_level":
            parse_level(value)
        cfg.set(key, value)
    except KeyError as e:
        console.print(f"[red]Error:[/red] {escape(e.args[0])}")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]Error:[/red] Could not save settings: {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {key} = {escape(value)}")


@app.command()
def where():
    """Show where tasks are saved."""
    from putoff.storage import Storage

    cfg = _get_config()
    storage = Storage.from_config(cfg)
    console.print(f"Save file: {storage.save_file}", soft_wrap=True)
    console.print(f"[dim]Location file: {storage.config_file}[/dim]", soft_wrap=True)


def main() -> None:
    app()
