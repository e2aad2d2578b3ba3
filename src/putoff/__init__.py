"""putoff - a personal task tracker with single-step undo."""

__version__ = "0.1.0"
