"""Data models for putoff.

A task is one of three variants, each a frozen dataclass:

- ``Dream``: open-ended, no dates
- ``Deadline``: due at ``due_date``
- ``Event``: runs from ``start_date`` to ``end_date``

Variant-specific behavior is written as explicit ``isinstance`` dispatch over
``Task`` at the sites that need it, so each variant's invariants live only in
its own constructor.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar

from putoff.errors import DuplicateTaskError, EmptyDescriptionError, InvalidRangeError


class TaskType(Enum):
    """Task variant discriminator, as written to the save file."""

    DREAM = "dream"
    DEADLINE = "deadline"
    EVENT = "event"


def _check_description(description: str) -> None:
    if not isinstance(description, str):
        raise ValueError(f"Task description must be text, got {type(description).__name__}")
    if not description.strip():
        raise EmptyDescriptionError("Task description must not be empty")


def _check_datetime(value: datetime, name: str) -> None:
    if not isinstance(value, datetime):
        raise TypeError(f"{name} must be a datetime, got {type(value).__name__}")


@dataclass(frozen=True)
class Dream:
    """Task without any date."""

    description: str
    is_done: bool = False
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    kind: ClassVar[TaskType] = TaskType.DREAM

    def __post_init__(self) -> None:
        _check_description(self.description)

    def to_dict(self) -> dict[str, Any]:
        return _base_dict(self)


@dataclass(frozen=True)
class Deadline:
    """Task due at a point in time."""

    description: str
    due_date: datetime
    is_done: bool = False
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    kind: ClassVar[TaskType] = TaskType.DEADLINE

    def __post_init__(self) -> None:
        _check_description(self.description)
        _check_datetime(self.due_date, "due_date")

    def to_dict(self) -> dict[str, Any]:
        d = _base_dict(self)
        d["due_date"] = self.due_date.isoformat()
        return d


@dataclass(frozen=True)
class Event:
    """Task spanning a time range. ``start_date`` must not be after ``end_date``."""

    description: str
    start_date: datetime
    end_date: datetime
    is_done: bool = False
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    kind: ClassVar[TaskType] = TaskType.EVENT

    def __post_init__(self) -> None:
        _check_description(self.description)
        _check_datetime(self.start_date, "start_date")
        _check_datetime(self.end_date, "end_date")
        if self.end_date < self.start_date:
            raise InvalidRangeError(
                f"Event ends ({self.end_date.isoformat()}) "
                f"before it starts ({self.start_date.isoformat()})"
            )

    def to_dict(self) -> dict[str, Any]:
        d = _base_dict(self)
        d["start_date"] = self.start_date.isoformat()
        d["end_date"] = self.end_date.isoformat()
        return d


Task = Dream | Deadline | Event


def _base_dict(task: Task) -> dict[str, Any]:
    return {
        "type": task.kind.value,
        "id": task.id.hex,
        "description": task.description,
        "is_done": task.is_done,
    }


def _parse_datetime(data: dict[str, Any], key: str) -> datetime:
    if key not in data:
        raise ValueError(f"Task record missing '{key}'")
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"Task record field '{key}' must be an ISO 8601 string")
    return datetime.fromisoformat(value)


def task_from_dict(data: Any) -> Task:
    """Rebuild a task from its serialized record.

    Raises ValueError (or one of its subclasses) for an unknown discriminator,
    a malformed id or any missing or invalid field.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Task record must be an object, got {type(data).__name__}")
    for key in ("type", "id", "description"):
        if key not in data:
            raise ValueError(f"Task record missing '{key}'")

    kind = TaskType(data["type"])
    task_id = uuid.UUID(str(data["id"]))
    description = data["description"]
    is_done = bool(data.get("is_done", False))

    if kind is TaskType.DREAM:
        return Dream(description, is_done=is_done, id=task_id)
    if kind is TaskType.DEADLINE:
        return Deadline(
            description,
            _parse_datetime(data, "due_date"),
            is_done=is_done,
            id=task_id,
        )
    return Event(
        description,
        _parse_datetime(data, "start_date"),
        _parse_datetime(data, "end_date"),
        is_done=is_done,
        id=task_id,
    )


def copy_with_new_id(task: Task) -> Task:
    """Same variant and content under a fresh id."""
    return replace(task, id=uuid.uuid4())


def with_done(task: Task, done: bool) -> Task:
    """Same task (same id) with ``is_done`` set to ``done``."""
    if task.is_done == done:
        return task
    return replace(task, is_done=done)


@dataclass(frozen=True)
class TaskState:
    """Snapshot of both task sequences.

    Tasks are immutable, so holding them in tuples makes a snapshot fully
    independent of the engine's live lists.
    """

    outstanding: tuple[Task, ...] = ()
    completed: tuple[Task, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "outstanding", tuple(self.outstanding))
        object.__setattr__(self, "completed", tuple(self.completed))

        seen: set[uuid.UUID] = set()
        for task in self.all_tasks():
            if task.id in seen:
                raise DuplicateTaskError(f"Task id {task.id.hex} appears more than once")
            seen.add(task.id)

    @classmethod
    def empty(cls) -> "TaskState":
        return cls()

    def all_tasks(self) -> tuple[Task, ...]:
        """Outstanding tasks followed by completed tasks."""
        return self.outstanding + self.completed

    def to_dict(self) -> dict[str, Any]:
        return {
            "outstanding": [t.to_dict() for t in self.outstanding],
            "completed": [t.to_dict() for t in self.completed],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "TaskState":
        """Strict decode: any bad record raises ValueError."""
        if not isinstance(data, dict):
            raise ValueError("Task state must be a JSON object")
        return cls(
            outstanding=tuple(task_from_dict(d) for d in _records(data, "outstanding")),
            completed=tuple(task_from_dict(d) for d in _records(data, "completed")),
        )


def _records(data: dict[str, Any], key: str) -> list[Any]:
    records = data.get(key, [])
    if not isinstance(records, list):
        raise ValueError(f"'{key}' must be a list of task records")
    return records
