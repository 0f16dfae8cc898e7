"""
validator.py

Checks an untrusted JSON value (usually an LLM reply) against a
compiled schema tree.

What this file does:
- Walks the schema tree and the value together
- Collects ALL errors, keyed by path, instead of stopping at the first
- Returns normalized data on success (dates parsed, missing nullable
  fields filled with None, undeclared keys dropped)

What this file does NOT do:
- Raise on bad data (a verdict is always returned)
- Compile schemas (see compiler.py)

Path format:
    contract_value.payment_schedule[2].percentage
Errors on the root value are keyed "_root". Internal failures are
keyed "_schema".
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from docextract.schema_dsl.nodes import (
    ArrayNode,
    ObjectNode,
    ScalarNode,
    ScalarType,
    SchemaNode,
)

logger = logging.getLogger(__name__)

ROOT_PATH = "_root"
SCHEMA_ERROR_PATH = "_schema"

# Marker returned by check helpers when the value was rejected
_INVALID = object()


@dataclass(frozen=True)
class ValidationVerdict:
    """
    Result of one validation call.

    success=True  -> `data` holds the normalized value
    success=False -> `field_errors` maps each path to its messages
    """

    success: bool
    data: Any = None
    field_errors: Dict[str, List[str]] = field(default_factory=dict)


def validate(
    node: SchemaNode,
    value: Any,
    reject_unknown_keys: bool = False,
) -> ValidationVerdict:
    """
    Validate `value` against `node`.

    Parameters:
    - node: compiled schema (from compile_schema)
    - value: parsed JSON value
    - reject_unknown_keys: report keys that the schema does not declare

    Returns:
    - ValidationVerdict (never raises)
    """

    walker = _Walker(reject_unknown_keys)
    try:
        data = walker.visit(node, value, "")
    except Exception as error:
        logger.exception("Schema validation failed internally")
        return ValidationVerdict(
            success=False,
            field_errors={SCHEMA_ERROR_PATH: [f"Internal error: {error}"]},
        )

    if walker.errors:
        return ValidationVerdict(success=False, field_errors=walker.errors)
    return ValidationVerdict(success=True, data=data)


class _Walker:
    """Recursive visitor holding the error map for one validation call."""

    def __init__(self, reject_unknown_keys: bool):
        self.reject_unknown_keys = reject_unknown_keys
        self.errors: Dict[str, List[str]] = {}

    def add_error(self, path: str, message: str) -> None:
        self.errors.setdefault(path or ROOT_PATH, []).append(message)

    def visit(self, node: SchemaNode, value: Any, path: str) -> Any:
        if isinstance(node, ObjectNode):
            return self.visit_object(node, value, path)
        if isinstance(node, ArrayNode):
            return self.visit_array(node, value, path)
        if isinstance(node, ScalarNode):
            return self.visit_scalar(node, value, path)
        raise TypeError(f"Unknown schema node: {type(node).__name__}")

    def visit_object(self, node: ObjectNode, value: Any, path: str) -> Any:
        if not isinstance(value, dict):
            self.add_error(path, f"Expected object, received {_kind_of(value)}")
            return None

        result: Dict[str, Any] = {}
        for name, child in node.fields.items():
            result[name] = self.visit(child, value.get(name), _key_path(path, name))

        if self.reject_unknown_keys:
            for key in value:
                if key not in node.fields:
                    self.add_error(path, f"Unrecognized key '{key}'")
        return result

    def visit_array(self, node: ArrayNode, value: Any, path: str) -> Any:
        if not isinstance(value, list):
            self.add_error(path, f"Expected array, received {_kind_of(value)}")
            return None

        return [
            self.visit(node.item, element, f"{path}[{index}]")
            for index, element in enumerate(value)
        ]

    def visit_scalar(self, node: ScalarNode, value: Any, path: str) -> Any:
        # Missing keys arrive here as None too
        if value is None:
            if node.nullable or node.base_type is ScalarType.ANY:
                return None
            self.add_error(path, f"Expected {node.describe()}, received null")
            return None

        if node.enum_values is not None:
            if isinstance(value, str) and value in node.enum_values:
                return value
            self.add_error(
                path,
                f"Invalid enum value. Expected {node.describe()}, received '{value}'",
            )
            return None

        checked = _check_base_type(node.base_type, value)
        if checked is _INVALID:
            if node.base_type is ScalarType.DATE:
                self.add_error(path, "Invalid date")
            else:
                self.add_error(
                    path,
                    f"Expected {node.base_type.value}, received {_kind_of(value)}",
                )
            return None
        return checked


def _check_base_type(base_type: ScalarType, value: Any) -> Any:
    if base_type is ScalarType.ANY:
        return value
    if base_type is ScalarType.STRING:
        return value if isinstance(value, str) else _INVALID
    if base_type is ScalarType.BOOLEAN:
        return value if isinstance(value, bool) else _INVALID
    if base_type is ScalarType.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return _INVALID
        if isinstance(value, float) and not math.isfinite(value):
            return _INVALID
        return value
    if base_type is ScalarType.DATE:
        parsed = coerce_date(value)
        return _INVALID if parsed is None else parsed
    raise ValueError(f"Unsupported scalar type: {base_type}")


def coerce_date(value: Any) -> Optional[date]:
    """
    Coerce a value to a calendar date.

    Accepted input:
    - date / datetime objects (returned as-is)
    - ISO-8601 strings: "2024-01-01" -> date,
      "2024-01-01T10:00:00Z" -> datetime
    - numbers: epoch milliseconds -> UTC datetime

    Returns None when the value cannot be read as a date.
    """

    if isinstance(value, (date, datetime)):
        return value

    if isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None

    return None


def _key_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _kind_of(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, float) and math.isnan(value):
        return "nan"
    if isinstance(value, float) and math.isinf(value):
        return "infinity"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__
