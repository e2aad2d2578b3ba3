"""Task persistence.

Two files are involved:

- the location file (``settings.config``): one line, the absolute path of
  the active save file
- the save file (``storage.json`` by default): the JSON-encoded task state

``save`` and ``set_location`` never raise on I/O failure; they log and return
False so the engine can keep working in memory.
"""

from __future__ import annotations

import contextlib
import json
import logging
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any

from putoff.errors import PersistenceError
from putoff.models import TaskState, task_from_dict

if TYPE_CHECKING:
    from putoff.config import Config

logger = logging.getLogger(__name__)

DEFAULT_SAVE_FILENAME = "storage.json"
DEFAULT_LOCATION_FILENAME = "settings.config"
CORRUPT_SUFFIX = ".corrupt"


def resolve_directory(directory: str | Path) -> Path:
    """Canonical absolute form of ``directory``.

    Falls back to the plain absolute path when the directory cannot be
    resolved (for instance because it does not exist yet).
    """
    path = Path(directory).expanduser()
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError):
        return path.absolute()


def decode_state(data: Any) -> tuple[TaskState, list[str]]:
    """Lenient decode of a save file document.

    Returns the state built from every valid record, plus a description of
    each record that was rejected (bad record, duplicate id, wrong shape).
    """
    if not isinstance(data, dict):
        return TaskState.empty(), ["document root is not an object"]

    problems: list[str] = []
    seen = set()
    sequences: dict[str, tuple] = {}

    for key in ("outstanding", "completed"):
        records = data.get(key, [])
        if not isinstance(records, list):
            problems.append(f"'{key}' is not a list")
            records = []

        tasks = []
        for index, record in enumerate(records):
            try:
                task = task_from_dict(record)
            except (ValueError, TypeError) as e:
                problems.append(f"{key}[{index}]: {e}")
                continue
            if task.id in seen:
                problems.append(f"{key}[{index}]: duplicate id {task.id.hex}")
                continue
            seen.add(task.id)
            tasks.append(task)
        sequences[key] = tuple(tasks)

    return TaskState(**sequences), problems


def _write_atomic(path: Path, content: str | bytes) -> None:
    """Write to a sibling temp file, then rename over ``path``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_file = path.with_name(path.name + ".tmp")
    try:
        if isinstance(content, bytes):
            temp_file.write_bytes(content)
        else:
            temp_file.write_text(content, encoding="utf-8")
        temp_file.replace(path)
    except OSError:
        with contextlib.suppress(OSError):
            temp_file.unlink(missing_ok=True)
        raise


def _same_file(a: Path, b: Path) -> bool:
    return a.resolve() == b.resolve()


def _missing_dirs(directory: Path) -> list[Path]:
    """``directory`` and those of its ancestors that do not exist yet, deepest first."""
    missing = []
    while not directory.exists() and directory != directory.parent:
        missing.append(directory)
        directory = directory.parent
    return missing


def _remove_dirs(directories: list[Path]) -> None:
    for directory in directories:
        with contextlib.suppress(OSError):
            directory.rmdir()


def _restore(path: Path, content: bytes | None) -> None:
    """Put ``path`` back to ``content``, or remove it when it did not exist."""
    try:
        if content is None:
            path.unlink(missing_ok=True)
        else:
            _write_atomic(path, content)
    except OSError as e:
        logger.error("Could not roll back %s: %s", path, e)


def _encode(state: TaskState) -> str:
    return json.dumps(state.to_dict(), indent=2)


class Storage:
    """Reads and writes the location file and the save file it points to."""

    def __init__(
        self,
        config_file: Path,
        default_save_file: Path | None = None,
        default_filename: str = DEFAULT_SAVE_FILENAME,
    ):
        self._config_file = Path(config_file)
        self._default_filename = default_filename
        self._default_save_file = (default_save_file or Path.cwd() / default_filename).absolute()
        self._save_file = self._read_location() or self._default_save_file

    @classmethod
    def from_config(cls, config: Config) -> Storage:
        """Location file in the config directory, default save file in the cwd."""
        return cls(
            config.location_file,
            Path.cwd() / config.save_filename,
            default_filename=config.save_filename,
        )

    @property
    def config_file(self) -> Path:
        return self._config_file

    @property
    def save_file(self) -> Path:
        return self._save_file

    def load(self) -> TaskState:
        """Load the task state from the configured save file.

        A missing location file is created pointing at the default save file.
        A missing, empty or unreadable save file yields an empty state; a
        corrupt one is copied aside to ``<save file>.corrupt`` first.

        Raises:
            PersistenceError: if the location file has to be created but
                cannot be written.
        """
        location = self._read_location()
        if location is None:
            self._save_file = self._default_save_file
            try:
                _write_atomic(self._config_file, f"{self._save_file}\n")
            except OSError as e:
                raise PersistenceError(
                    f"Cannot create config file {self._config_file}: {e}"
                ) from e
            logger.info("Created %s pointing at %s", self._config_file, self._save_file)
            return TaskState.empty()

        self._save_file = location
        return self._read_state()

    def save(self, state: TaskState) -> bool:
        """Write ``state`` to the save file. Returns False on any I/O failure."""
        try:
            _write_atomic(self._save_file, _encode(state))
        except OSError as e:
            logger.error("Could not save tasks to %s: %s", self._save_file, e)
            return False
        logger.debug("Saved %d task(s) to %s", len(state.all_tasks()), self._save_file)
        return True

    def set_location(
        self,
        directory: str | Path,
        filename: str | None = None,
        state: TaskState | None = None,
    ) -> bool:
        """Point the location file at ``directory/filename``.

        With ``state`` given, it is written to the new save file first,
        replacing whatever is there. Without it, an existing save file at the
        old location is carried over (unless a file is already there). The
        old save file is removed only once the location file points at the
        new one.

        Returns False, leaving the location file, save files and directories
        as they were, if any step fails.
        """
        new_save_file = resolve_directory(directory) / (filename or self._default_filename)
        old_save_file = self._save_file
        moving = not _same_file(old_save_file, new_save_file)

        if new_save_file.exists() and not new_save_file.is_file():
            logger.error("Cannot use %s as save location: not a regular file", new_save_file)
            return False

        created_dirs = _missing_dirs(new_save_file.parent)
        previous_content: bytes | None = None
        written = False
        try:
            new_save_file.parent.mkdir(parents=True, exist_ok=True)
            if state is not None:
                if new_save_file.exists():
                    previous_content = new_save_file.read_bytes()
                _write_atomic(new_save_file, _encode(state))
                written = True
            elif moving and old_save_file.exists() and not new_save_file.exists():
                _write_atomic(new_save_file, old_save_file.read_bytes())
                written = True
        except OSError as e:
            logger.error("Cannot use %s as save location: %s", new_save_file, e)
            _remove_dirs(created_dirs)
            return False

        try:
            _write_atomic(self._config_file, f"{new_save_file}\n")
        except OSError as e:
            logger.error("Could not update %s: %s", self._config_file, e)
            if written:
                _restore(new_save_file, previous_content)
            _remove_dirs(created_dirs)
            return False

        self._save_file = new_save_file
        if moving and old_save_file.exists():
            try:
                old_save_file.unlink()
            except OSError as e:
                logger.warning("Could not remove old save file %s: %s", old_save_file, e)

        logger.info("Save location set to %s", new_save_file)
        return True

    # Private helpers

    def _read_location(self) -> Path | None:
        try:
            content = self._config_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot read %s: %s", self._config_file, e)
            return None

        lines = content.strip().splitlines()
        if not lines or not lines[0].strip():
            return None
        return Path(lines[0].strip())

    def _read_state(self) -> TaskState:
        try:
            content = self._save_file.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("No save file at %s, starting empty", self._save_file)
            return TaskState.empty()
        except OSError as e:
            logger.warning("Cannot read save file %s: %s", self._save_file, e)
            return TaskState.empty()
        except UnicodeDecodeError as e:
            self._set_aside(f"not valid UTF-8 ({e})")
            return TaskState.empty()

        if not content.strip():
            return TaskState.empty()

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            self._set_aside(f"not valid JSON ({e})")
            return TaskState.empty()

        state, problems = decode_state(data)
        if problems:
            self._set_aside("; ".join(problems))
        return state

    def _set_aside(self, reason: str) -> None:
        backup = self._save_file.with_name(self._save_file.name + CORRUPT_SUFFIX)
        logger.warning("Save file %s is damaged: %s", self._save_file, reason)
        try:
            shutil.copyfile(self._save_file, backup)
        except OSError as e:
            logger.error("Could not back up damaged save file to %s: %s", backup, e)
            return
        logger.warning("Copied damaged save file to %s", backup)
