"""Undo snapshot persistence for CLI commands.

Each CLI invocation runs its own engine, so the engine's single previous
state is kept in the config directory between invocations.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from putoff.models import TaskState

if TYPE_CHECKING:
    from putoff.config import Config

UNDO_STATE_FILENAME = ".last_state"


def save_undo_state(config: Config, state: TaskState | None) -> None:
    """Save the state to restore on the next undo (None clears it).

    Args:
        config: Config instance for determining state file location
        state: Snapshot taken before the last operation
    """
    if state is None:
        clear_undo_state(config)
        return

    state_file = config.config_dir / UNDO_STATE_FILENAME
    state_file.parent.mkdir(parents=True, exist_ok=True)
    state_file.write_text(json.dumps(state.to_dict()))


def load_undo_state(config: Config) -> TaskState | None:
    """Load the saved undo snapshot.

    Args:
        config: Config instance for determining state file location

    Returns:
        The snapshot, or None if there is none or it cannot be decoded
    """
    state_file = config.config_dir / UNDO_STATE_FILENAME
    if not state_file.exists():
        return None
    try:
        content = state_file.read_text()
        if content.strip():
            return TaskState.from_dict(json.loads(content))
        return None
    except (ValueError, TypeError):
        # JSONDecodeError and bad records alike: nothing usable to undo
        return None


def clear_undo_state(config: Config) -> None:
    """Forget the undo snapshot.

    Args:
        config: Config instance for determining state file location
    """
    state_file = config.config_dir / UNDO_STATE_FILENAME
    if state_file.exists():
        state_file.unlink()
