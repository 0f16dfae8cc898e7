"""
markdown.py

Flattens extracted JSON into an indented markdown bullet list.

Example:
    {"amount": "500", "client": {"name": "ACME"}, "tags": ["a", "b"]}

becomes:
    - **amount**: 500
    - **client**:
      - **name**: ACME
    - **tags**:
      - a
      - b
"""

import json
from datetime import date
from typing import Any, List, Optional

INDENT = "  "
EMPTY = "_empty_"
MISSING = "N/A"


def to_markdown(data: Any, max_depth: Optional[int] = None) -> str:
    """
    Render a JSON value as a markdown bullet list.

    Same input always gives the same output.
    Values nested deeper than max_depth are written inline as JSON.
    """

    lines: List[str] = []
    if isinstance(data, dict):
        _render_mapping(data, 0, max_depth, lines)
    elif isinstance(data, list):
        _render_sequence(data, 0, max_depth, lines)
    else:
        lines.append(f"- {_format_scalar(data)}")
    return "\n".join(lines)


def _render_mapping(data: dict, level: int, max_depth, lines: List[str]) -> None:
    prefix = INDENT * level
    if not data:
        lines.append(f"{prefix}- {EMPTY}")
        return

    for key, value in data.items():
        if isinstance(value, (dict, list)) and value:
            if _too_deep(level + 1, max_depth):
                lines.append(f"{prefix}- **{key}**: `{_inline_json(value)}`")
                continue
            lines.append(f"{prefix}- **{key}**:")
            if isinstance(value, dict):
                _render_mapping(value, level + 1, max_depth, lines)
            else:
                _render_sequence(value, level + 1, max_depth, lines)
        elif isinstance(value, (dict, list)):
            lines.append(f"{prefix}- **{key}**: {EMPTY}")
        else:
            lines.append(f"{prefix}- **{key}**: {_format_scalar(value)}")


def _render_sequence(items: list, level: int, max_depth, lines: List[str]) -> None:
    prefix = INDENT * level
    if not items:
        lines.append(f"{prefix}- {EMPTY}")
        return

    for number, item in enumerate(items, start=1):
        if isinstance(item, (dict, list)) and item:
            if _too_deep(level + 1, max_depth):
                lines.append(f"{prefix}- `{_inline_json(item)}`")
                continue
            lines.append(f"{prefix}- **#{number}**")
            if isinstance(item, dict):
                _render_mapping(item, level + 1, max_depth, lines)
            else:
                _render_sequence(item, level + 1, max_depth, lines)
        elif isinstance(item, (dict, list)):
            lines.append(f"{prefix}- {EMPTY}")
        else:
            lines.append(f"{prefix}- {_format_scalar(item)}")


def _too_deep(level: int, max_depth: Optional[int]) -> bool:
    return max_depth is not None and level >= max_depth


def _format_scalar(value: Any) -> str:
    if value is None:
        return MISSING
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _inline_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str, separators=(",", ":"))
