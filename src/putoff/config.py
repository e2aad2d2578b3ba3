"""Configuration: JSON settings file with PUTOFF_* env overrides."""

import json
import os
from pathlib import Path
from typing import Any


def get_default_config_dir() -> Path:
    """Get default config directory, respecting PUTOFF_CONFIG_DIR env var.

    This is the single source of truth for config directory resolution.
    """
    config_dir = os.environ.get("PUTOFF_CONFIG_DIR")
    if config_dir:
        return Path(config_dir)
    return Path.home() / ".config" / "putoff"


class ConfigMeta:
    """Schema definition - separate from runtime state."""

    SETTINGS: dict[str, str] = {
        "save_filename": "Default save file name (used when no file name is given)",
        "location_filename": "Name of the file pointing at the active save file",
        "default_format": "Output format (table|jsonl)",
        "datetime_format": "Date/time format for table output",
        "log_level": "Log level when --verbose is not given",
    }


class Config:
    """Runtime configuration with env override support.

    Instances are created explicitly and passed to whatever needs them.
    """

    DEFAULTS: dict[str, Any] = {
        "save_filename": "storage.json",
        "location_filename": "settings.config",
        "default_format": "table",
        "datetime_format": "%Y-%m-%d %H:%M",
        "log_level": "WARNING",
    }

    def __init__(self, config_dir: Path | None = None):
        self._config_dir = config_dir or get_default_config_dir()
        self._config_file = self._config_dir / "config.json"
        self._data: dict[str, Any] = {}
        self._file_data: dict[str, Any] = {}

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    @property
    def location_file(self) -> Path:
        """File holding the absolute path of the active save file."""
        return self._config_dir / self.location_filename

    @classmethod
    def load(cls, config_dir: Path | None = None) -> "Config":
        """Factory method - read settings file, then apply env overrides."""
        config = cls(config_dir)
        config._load_from_file()
        config._apply_env_overrides()
        return config

    def __getattr__(self, name: str) -> Any:
        """Access config values as attributes."""
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._data:
            return self._data[name]
        if name in self.DEFAULTS:
            return self.DEFAULTS[name]
        raise AttributeError(f"Config has no attribute '{name}'")

    def get_settings(self) -> list[tuple[str, str, Any]]:
        """Return (name, description, value) for every known setting."""
        return [(name, desc, getattr(self, name)) for name, desc in ConfigMeta.SETTINGS.items()]

    def set(self, key: str, value: Any) -> None:
        """Set value and persist. Env overrides are never written to the file."""
        if key not in self.DEFAULTS:
            raise KeyError(f"Unknown setting: {key}")
        self._file_data[key] = value
        self._data[key] = value
        self._save()

    def _load_from_file(self) -> None:
        if self._config_file.exists():
            try:
                content = self._config_file.read_text()
                if content.strip():
                    data = json.loads(content)
                    self._file_data = data if isinstance(data, dict) else {}
            except (json.JSONDecodeError, UnicodeDecodeError):
                # Corrupted config - use defaults, will be fixed on next save
                self._file_data = {}
        self._data = dict(self._file_data)

    def _save(self) -> None:
        self._config_dir.mkdir(parents=True, exist_ok=True)
        self._config_file.write_text(json.dumps(self._file_data, indent=2))

    def _apply_env_overrides(self) -> None:
        """Apply PUTOFF_* env vars (highest priority)."""
        for key in self.DEFAULTS:
            env_key = f"PUTOFF_{key.upper()}"
            if env_key in os.environ:
                self._data[key] = os.environ[env_key]
