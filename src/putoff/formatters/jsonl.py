"""JSON lines formatter."""

import json

from rich.text import Text

from .base import Row


class JsonlFormatter:
    """Format tasks as JSON lines (one JSON object per line).

    Each object is the task's save-file record plus its display line number.
    Returned as plain Text so descriptions are never read as console markup.
    """

    NAME = "jsonl"

    def format(self, rows: list[Row]) -> Text | str:
        if not rows:
            return ""

        lines = []
        for line_number, task in rows:
            obj = {"line": line_number, **task.to_dict()}
            lines.append(json.dumps(obj))

        return Text("\n".join(lines))
