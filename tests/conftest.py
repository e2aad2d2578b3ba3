"""Pytest fixtures for putoff tests."""

import logging
from pathlib import Path

import pytest

from putoff.engine import TaskEngine
from putoff.storage import Storage


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Keep config and default save files inside the test's tmp dir."""
    monkeypatch.setenv("PUTOFF_CONFIG_DIR", str(tmp_path / "config"))
    for key in (
        "SAVE_FILENAME",
        "LOCATION_FILENAME",
        "DEFAULT_FORMAT",
        "DATETIME_FORMAT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(f"PUTOFF_{key}", raising=False)
    monkeypatch.chdir(tmp_path)

    yield

    # CLI runs attach a handler to a stream that is gone once the test ends
    logger = logging.getLogger("putoff")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def storage(tmp_path: Path) -> Storage:
    return Storage(tmp_path / "config" / "settings.config", tmp_path / "storage.json")


@pytest.fixture
def engine(storage: Storage) -> TaskEngine:
    return TaskEngine.open(storage)


@pytest.fixture
def broken_storage(tmp_path: Path) -> Storage:
    """Storage whose save file can never be written (its parent is a file)."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    return Storage(tmp_path / "settings.config", blocker / "storage.json")
