"""Response field filtering.

An optional YAML or JSON file restricts what each tool returns:

    supported_fields:
      serp_organic_live_advanced:
        - items.type
        - items.rank_absolute
        - items.url

Paths are dotted; lists are traversed transparently. Tools without an
entry return the full upstream result. The configuration is parsed once at
startup and only read afterwards.
"""

from pathlib import Path
from typing import Any, Optional

from shared.config import load_yaml_config
from shared.logging import get_logger

logger = get_logger(__name__)


class FieldConfiguration:
    """Per-tool allow-lists of dotted field paths."""

    def __init__(self, supported_fields: Optional[dict[str, list[str]]] = None) -> None:
        self._fields = {
            tool: tuple(paths) for tool, paths in (supported_fields or {}).items()
        }

    @classmethod
    def from_file(cls, path: Optional[str | Path]) -> "FieldConfiguration":
        """Load a configuration file; a missing path yields an empty configuration."""
        if not path:
            return cls()

        if not Path(path).exists():
            logger.warning("Field configuration file not found", path=str(path))
            return cls()

        data = load_yaml_config(path)
        fields = data.get("supported_fields", {})
        logger.info("Field configuration loaded", path=str(path), tools=len(fields))
        return cls(fields)

    def fields_for(self, tool_name: str) -> tuple[str, ...]:
        return self._fields.get(tool_name, ())

    def filter(self, tool_name: str, data: Any) -> Any:
        """Keep only the configured fields of ``data`` for ``tool_name``."""
        paths = self.fields_for(tool_name)
        if not paths:
            return data
        return _project(data, [path.split(".") for path in paths])


def _project(data: Any, paths: list[list[str]]) -> Any:
    if isinstance(data, list):
        return [_project(item, paths) for item in data]

    if not isinstance(data, dict):
        return data

    # Group remaining path segments by their first key
    grouped: dict[str, list[list[str]]] = {}
    for path in paths:
        head, rest = path[0], path[1:]
        grouped.setdefault(head, []).append(rest)

    projected = {}
    for key, rests in grouped.items():
        if key not in data:
            continue
        if any(not rest for rest in rests):
            projected[key] = data[key]
        else:
            projected[key] = _project(data[key], rests)
    return projected
