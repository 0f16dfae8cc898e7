"""
compiler.py

Turns a raw schema definition into a tree of schema nodes.

The raw definition is plain JSON supplied by the caller, for example:

    {
        "amount": "string",
        "due_date": "date | null",
        "status": "Active | Inactive | Pending",
        "items": [{"name": "string", "qty": "number"}]
    }

Rules:
- dict   -> ObjectNode, one entry per key (order kept)
- list   -> ArrayNode built from the FIRST element only
            (empty list -> array of anything)
- string -> ScalarNode, see tokenize_type_string()
- other  -> ScalarNode(ANY)

This module does NOT validate data. See validator.py.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple

from docextract.exceptions import SchemaTooDeepError
from docextract.schema_dsl.nodes import (
    ArrayNode,
    ObjectNode,
    ScalarNode,
    ScalarType,
    SchemaNode,
)

logger = logging.getLogger(__name__)

# Separator that turns the remaining tokens into enum literals
ENUM_SEPARATOR = " | "

NULL_TOKEN = "null"

TYPE_NAMES = {
    "string": ScalarType.STRING,
    "number": ScalarType.NUMBER,
    "boolean": ScalarType.BOOLEAN,
    "date": ScalarType.DATE,
}


class TokenKind(str, Enum):
    NULL = "null"
    TYPE = "type"
    LITERAL = "literal"


@dataclass(frozen=True)
class TypeToken:
    kind: TokenKind
    text: str


def tokenize_type_string(type_string: str) -> List[TypeToken]:
    """
    Split a DSL type string on "|" and classify every part.

    Each part is trimmed, then classified as:
    - NULL: the literal text "null"
    - TYPE: one of string / number / boolean / date (case-sensitive)
    - LITERAL: anything else

    Example:
        "Active | Inactive | null"
        -> [LITERAL Active, LITERAL Inactive, NULL null]
    """

    tokens: List[TypeToken] = []
    for part in type_string.split("|"):
        text = part.strip()
        if text == NULL_TOKEN:
            tokens.append(TypeToken(TokenKind.NULL, text))
        elif text in TYPE_NAMES:
            tokens.append(TypeToken(TokenKind.TYPE, text))
        else:
            tokens.append(TypeToken(TokenKind.LITERAL, text))
    return tokens


def compile_type_string(type_string: str) -> ScalarNode:
    """
    Build a ScalarNode from a DSL type string.

    Steps:
    1. Tokenize (split on bare "|", trim, classify)
    2. Any NULL token makes the scalar nullable
    3. If the string uses the spaced separator " | " and two or more
       non-null tokens are left, they become enum literals
    4. Otherwise the first non-null token picks the base type
       (unknown names give ANY)

    "string | null"             -> nullable STRING
    "Active | Inactive"         -> enum ('Active', 'Inactive')
    "Active | Inactive | null"  -> nullable enum ('Active', 'Inactive')
    "null"                      -> nullable ANY
    """

    tokens = tokenize_type_string(type_string)
    nullable = any(token.kind is TokenKind.NULL for token in tokens)
    remaining = [token for token in tokens if token.kind is not TokenKind.NULL]

    if not remaining:
        return ScalarNode(ScalarType.ANY, nullable=nullable)

    if len(remaining) > 1 and ENUM_SEPARATOR in type_string:
        literals: Tuple[str, ...] = tuple(dict.fromkeys(t.text for t in remaining))
        return ScalarNode(ScalarType.STRING, nullable=nullable, enum_values=literals)

    main = remaining[0]
    if main.kind is TokenKind.TYPE:
        return ScalarNode(TYPE_NAMES[main.text], nullable=nullable)
    return ScalarNode(ScalarType.ANY, nullable=nullable)


def compile_schema(raw: Any, max_depth: Optional[int] = None) -> SchemaNode:
    """
    Compile a raw schema definition into a SchemaNode tree.

    Parameters:
    - raw: nested dict / list / str definition
    - max_depth: deepest allowed nesting of objects and arrays
                 (None = no limit)

    Raises:
    - SchemaTooDeepError when max_depth is exceeded
    """

    return _compile_node(raw, 0, max_depth)


def _compile_node(raw: Any, depth: int, max_depth: Optional[int]) -> SchemaNode:
    if isinstance(raw, dict):
        _check_depth(depth, max_depth)
        return ObjectNode(
            {
                str(key): _compile_node(value, depth + 1, max_depth)
                for key, value in raw.items()
            }
        )

    if isinstance(raw, (list, tuple)):
        _check_depth(depth, max_depth)
        if not raw:
            return ArrayNode(ScalarNode(ScalarType.ANY))
        return ArrayNode(_compile_node(raw[0], depth + 1, max_depth))

    if isinstance(raw, str):
        return compile_type_string(raw)

    return ScalarNode(ScalarType.ANY)


def _check_depth(depth: int, max_depth: Optional[int]) -> None:
    if max_depth is not None and depth >= max_depth:
        logger.warning("Schema rejected: nesting deeper than %d", max_depth)
        raise SchemaTooDeepError(max_depth)
