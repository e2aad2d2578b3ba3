"""Rich table formatter."""

from datetime import datetime
from typing import Any

from rich.markup import escape
from rich.table import Table

from putoff.models import Deadline, Dream, Event, Task

from .base import Row


class TableFormatter:
    """Format tasks as a Rich table with their line numbers."""

    NAME = "table"

    def __init__(self, datetime_fmt: str = "%Y-%m-%d %H:%M"):
        self.datetime_fmt = datetime_fmt

    def _format_datetime(self, dt: datetime) -> str:
        try:
            return dt.strftime(self.datetime_fmt)
        except ValueError:
            return dt.strftime("%Y-%m-%d %H:%M")

    def _format_when(self, task: Task) -> str:
        if isinstance(task, Dream):
            return ""
        if isinstance(task, Deadline):
            due = self._format_datetime(task.due_date)
            if task.is_done:
                return f"[dim]due {due}[/dim]"
            if task.due_date < datetime.now(tz=task.due_date.tzinfo):
                return f"[red bold]due {due}[/red bold]"
            return f"due {due}"
        if isinstance(task, Event):
            start = self._format_datetime(task.start_date)
            end = self._format_datetime(task.end_date)
            return f"{start} to {end}"
        raise TypeError(f"Unknown task type: {type(task).__name__}")

    def format(self, rows: list[Row]) -> Any:
        if not rows:
            return "[dim]No tasks[/dim]"

        has_dates = any(not isinstance(task, Dream) for _, task in rows)

        table = Table(show_header=True, header_style="bold")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Done", width=4)
        table.add_column("Type", width=8)
        table.add_column("Task")
        if has_dates:
            table.add_column("When")

        for line_number, task in rows:
            # Colorblind-safe: blue checkmark for done
            status = "[blue]✓[/blue]" if task.is_done else "[dim]•[/dim]"
            row = [str(line_number), status, task.kind.value, escape(task.description)]
            if has_dates:
                row.append(self._format_when(task))
            table.add_row(*row)

        return table
