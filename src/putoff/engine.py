"""Task engine: live task lists, mutations and single-step undo."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from putoff.errors import DuplicateTaskError, TaskNotFoundError
from putoff.models import Task, TaskState, with_done
from putoff.search import search as search_tasks

if TYPE_CHECKING:
    from putoff.storage import Storage

logger = logging.getLogger(__name__)


class TaskEngine:
    """Owns the outstanding and completed task lists.

    Every mutation snapshots the current state into ``previous_state``
    (replacing whatever was there), applies the change in memory and saves.
    The save result is returned; a failed save never rolls the change back.

    Not thread-safe: a multi-threaded host must serialize calls.
    """

    def __init__(
        self,
        storage: Storage,
        state: TaskState | None = None,
        previous_state: TaskState | None = None,
    ):
        self._storage = storage
        self._outstanding: list[Task] = []
        self._completed: list[Task] = []
        self._previous_state = previous_state
        self._load_state(state or TaskState.empty())
        logger.debug("Task engine ready with %d task(s)", len(self.get_all()))

    @classmethod
    def open(cls, storage: Storage, previous_state: TaskState | None = None) -> TaskEngine:
        """Create an engine holding the state persisted in ``storage``."""
        return cls(storage, storage.load(), previous_state)

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def current_state(self) -> TaskState:
        return TaskState(tuple(self._outstanding), tuple(self._completed))

    @property
    def previous_state(self) -> TaskState | None:
        return self._previous_state

    # Mutations

    def add(self, task: Task) -> bool:
        self._ensure_unique(task.id)
        self._backup_state()
        self._outstanding.append(task)
        logger.info("Added %s: %s", task.kind.value, task.description)
        return self.save()

    def edit(self, task_id: uuid.UUID, new_task: Task) -> bool:
        """Replace a task in place, keeping its position and list."""
        tasks, index = self._locate(task_id)
        if new_task.id != task_id:
            self._ensure_unique(new_task.id)
        self._backup_state()
        tasks[index] = new_task
        logger.info("Edited #%d: %s", self._line_number(tasks, index), new_task.description)
        return self.save()

    def delete(self, task_id: uuid.UUID) -> bool:
        tasks, index = self._locate(task_id)
        self._backup_state()
        task = tasks.pop(index)
        logger.info("Deleted %s: %s", task.kind.value, task.description)
        return self.save()

    def toggle_done(self, task_id: uuid.UUID) -> bool:
        """Move a task to the end of the other list, flipping ``is_done``."""
        tasks, index = self._locate(task_id)
        self._backup_state()
        task = tasks.pop(index)
        if tasks is self._outstanding:
            self._completed.append(with_done(task, True))
            logger.info("Done %s: %s", task.kind.value, task.description)
        else:
            self._outstanding.append(with_done(task, False))
            logger.info("Undone %s: %s", task.kind.value, task.description)
        return self.save()

    def done(self, task_id: uuid.UUID) -> bool:
        """Mark a task done. Already completed tasks are left alone."""
        tasks, _ = self._locate(task_id)
        if tasks is self._completed:
            return True
        return self.toggle_done(task_id)

    def undone(self, task_id: uuid.UUID) -> bool:
        """Mark a task outstanding again. Outstanding tasks are left alone."""
        tasks, _ = self._locate(task_id)
        if tasks is self._outstanding:
            return True
        return self.toggle_done(task_id)

    def undo(self) -> bool | None:
        """Swap the current state with the one before the last operation.

        Returns None when there is nothing to undo, otherwise the save
        result. Calling undo again redoes the undone operation.
        """
        if self._previous_state is None:
            return None
        newer_state = self.current_state
        self._load_state(self._previous_state)
        self._previous_state = newer_state
        logger.info("Undid last operation")
        return self.save()

    def has_previous_operation(self) -> bool:
        return self._previous_state is not None

    # Persistence

    def save(self) -> bool:
        """Write the current state to the save file."""
        return self._storage.save(self.current_state)

    def set_save_location(self, directory: str | Path, filename: str | None = None) -> bool:
        """Move persistence to a new save file holding the current state.

        The location only changes once the current state is written there.
        """
        return self._storage.set_location(directory, filename, self.current_state)

    # Queries

    def get_outstanding(self) -> tuple[Task, ...]:
        return tuple(self._outstanding)

    def get_completed(self) -> tuple[Task, ...]:
        return tuple(self._completed)

    def get_all(self) -> tuple[Task, ...]:
        """Outstanding tasks followed by completed tasks."""
        return tuple(self._outstanding) + tuple(self._completed)

    def find(self, task_id: uuid.UUID) -> Task:
        tasks, index = self._locate(task_id)
        return tasks[index]

    def task_at(self, line_number: int) -> Task:
        """Task at a 1-based display line number over ``get_all()``."""
        all_tasks = self.get_all()
        if not 1 <= line_number <= len(all_tasks):
            raise TaskNotFoundError(f"Invalid line number: {line_number}")
        return all_tasks[line_number - 1]

    def search(
        self,
        term: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
        include_done: bool = True,
    ) -> list[Task]:
        tasks = self.get_all() if include_done else self.get_outstanding()
        return search_tasks(tasks, term, start_date, end_date, include_done)

    # Private helpers

    def _backup_state(self) -> None:
        self._previous_state = self.current_state

    def _load_state(self, state: TaskState) -> None:
        self._outstanding = list(state.outstanding)
        self._completed = list(state.completed)

    def _locate(self, task_id: uuid.UUID) -> tuple[list[Task], int]:
        for tasks in (self._outstanding, self._completed):
            for index, task in enumerate(tasks):
                if task.id == task_id:
                    return tasks, index
        raise TaskNotFoundError(f"Task not found: {task_id}")

    def _ensure_unique(self, task_id: uuid.UUID) -> None:
        if any(task.id == task_id for task in self.get_all()):
            raise DuplicateTaskError(f"Task id {task_id.hex} is already in use")

    def _line_number(self, tasks: list[Task], index: int) -> int:
        if tasks is self._completed:
            return len(self._outstanding) + index + 1
        return index + 1
