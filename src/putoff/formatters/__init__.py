"""Output formatters for the ls and search commands."""

from .base import FormatterProtocol, Row
from .jsonl import JsonlFormatter
from .table import TableFormatter

FORMATTERS: dict[str, type] = {
    "table": TableFormatter,
    "jsonl": JsonlFormatter,
}


def get_formatter(name: str, datetime_fmt: str | None = None) -> FormatterProtocol:
    """Return a configured formatter by name.

    Examples:
        "table"  -> TableFormatter()
        "jsonl"  -> JsonlFormatter()
    """
    if name not in FORMATTERS:
        available = list(FORMATTERS.keys())
        raise ValueError(f"Unknown format: {name}. Available: {', '.join(available)}")

    if name == "table" and datetime_fmt:
        return TableFormatter(datetime_fmt=datetime_fmt)
    return FORMATTERS[name]()


__all__ = [
    "FormatterProtocol",
    "Row",
    "TableFormatter",
    "JsonlFormatter",
    "FORMATTERS",
    "get_formatter",
]
