"""Task search: term, date range and done filters."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta

from putoff.errors import InvalidRangeError
from putoff.models import Deadline, Dream, Event, Task


def _midnight(day: datetime) -> datetime:
    return day.replace(hour=0, minute=0, second=0, microsecond=0)


def matches_term(task: Task, term: str | None) -> bool:
    """Case-sensitive substring match on the description. Empty term matches all."""
    if not term:
        return True
    return term in task.description


def matches_dates(task: Task, start_date: datetime | None, end_date: datetime | None) -> bool:
    """Check a task against the half-open range ``[start_date, end_date)``.

    A missing bound leaves that side open. With no bounds at all every task
    matches; otherwise dreams never do.
    """
    if start_date is None and end_date is None:
        return True

    if isinstance(task, Dream):
        return False
    if isinstance(task, Deadline):
        if start_date is not None and task.due_date < start_date:
            return False
        if end_date is not None and task.due_date >= end_date:
            return False
        return True
    if isinstance(task, Event):
        # Overlap: the event must start before the range ends and end at or after it starts
        if end_date is not None and task.start_date >= end_date:
            return False
        if start_date is not None and task.end_date < start_date:
            return False
        return True
    raise TypeError(f"Unknown task type: {type(task).__name__}")


def search(
    tasks: Iterable[Task],
    term: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    include_done: bool = True,
) -> list[Task]:
    """Return the tasks matching every given criterion, in input order."""
    return [
        task
        for task in tasks
        if (include_done or not task.is_done)
        and matches_term(task, term)
        and matches_dates(task, start_date, end_date)
    ]


@dataclass(frozen=True)
class SearchQuery:
    """A reusable set of search criteria.

    The constructors turn calendar days into the half-open ranges used by
    ``search``: a day covers midnight up to (but excluding) the next midnight.
    """

    term: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    include_done: bool = True

    @classmethod
    def on(cls, day: datetime, term: str | None = None, include_done: bool = False) -> SearchQuery:
        """Outstanding tasks falling on ``day`` (completed ones too with ``include_done``)."""
        start = _midnight(day)
        return cls(term, start, start + timedelta(days=1), include_done)

    @classmethod
    def due_by(
        cls, day: datetime, term: str | None = None, include_done: bool = False
    ) -> SearchQuery:
        """Outstanding tasks due any time up to the end of ``day``."""
        return cls(term, None, _midnight(day) + timedelta(days=1), include_done)

    @classmethod
    def between(
        cls,
        start: datetime,
        end: datetime,
        term: str | None = None,
        include_done: bool = True,
    ) -> SearchQuery:
        """Tasks from the start of ``start`` through the end of ``end``."""
        if end < start:
            raise InvalidRangeError(
                f"Search range ends ({end.date().isoformat()}) "
                f"before it starts ({start.date().isoformat()})"
            )
        return cls(term, _midnight(start), _midnight(end) + timedelta(days=1), include_done)

    def apply(self, tasks: Iterable[Task]) -> list[Task]:
        return search(tasks, self.term, self.start_date, self.end_date, self.include_done)
