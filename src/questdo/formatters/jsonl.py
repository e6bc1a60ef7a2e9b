"""JSON lines formatter."""

import json

from questdo.models import Task


class JsonlFormatter:
    """Format tasks as JSON lines (one JSON object per line)."""

    NAME = "jsonl"

    def format(self, items: list[Task]) -> str:
        if not items:
            return ""
        return "\n".join(json.dumps(item.to_dict()) for item in items)
