"""Exception hierarchy for putoff."""


class PutoffError(Exception):
    """Base class for all putoff errors."""


class TaskNotFoundError(PutoffError, KeyError):
    """No task with the given id (or line number) exists."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else "Task not found"


class InvalidRangeError(PutoffError, ValueError):
    """An event or search range ends before it starts."""


class EmptyDescriptionError(PutoffError, ValueError):
    """A task was created without a description."""


class DuplicateTaskError(PutoffError, ValueError):
    """A task id appears more than once in a task state."""


class PersistenceError(PutoffError, OSError):
    """The config file needed to locate the save file cannot be created."""
