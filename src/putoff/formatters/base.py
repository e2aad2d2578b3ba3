"""Base formatter protocol."""

from typing import Any, Protocol, runtime_checkable

from putoff.models import Task

# (display line number, task)
Row = tuple[int, Task]


@runtime_checkable
class FormatterProtocol(Protocol):
    """Protocol for output formatters.

    Returns a Rich-printable object (Table, str, etc.)
    """

    def format(self, rows: list[Row]) -> Any:
        """Format numbered tasks for output."""
        ...
