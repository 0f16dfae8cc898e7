"""Schema compiler tests."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from docextract.exceptions import SchemaTooDeepError
from docextract.schema_dsl.compiler import (
    TokenKind,
    compile_schema,
    compile_type_string,
    tokenize_type_string,
)
from docextract.schema_dsl.nodes import ArrayNode, ObjectNode, ScalarNode, ScalarType


def _walk(node):
    yield node
    if isinstance(node, ObjectNode):
        for child in node.fields.values():
            yield from _walk(child)
    elif isinstance(node, ArrayNode):
        yield from _walk(node.item)


def test_tokenizer_classifies_null_type_and_literal_parts() -> None:
    tokens = tokenize_type_string(" string |Active| null ")

    assert [(token.kind, token.text) for token in tokens] == [
        (TokenKind.TYPE, "string"),
        (TokenKind.LITERAL, "Active"),
        (TokenKind.NULL, "null"),
    ]


@pytest.mark.parametrize(
    ("type_string", "expected"),
    [
        ("string", ScalarNode(ScalarType.STRING)),
        ("number", ScalarNode(ScalarType.NUMBER)),
        ("boolean", ScalarNode(ScalarType.BOOLEAN)),
        ("date", ScalarNode(ScalarType.DATE)),
        ("string | null", ScalarNode(ScalarType.STRING, nullable=True)),
        ("null | date", ScalarNode(ScalarType.DATE, nullable=True)),
        ("null", ScalarNode(ScalarType.ANY, nullable=True)),
        ("String", ScalarNode(ScalarType.ANY)),
        ("whatever", ScalarNode(ScalarType.ANY)),
        ("", ScalarNode(ScalarType.ANY)),
    ],
)
def test_type_strings_map_to_scalar_nodes(type_string: str, expected: ScalarNode) -> None:
    assert compile_type_string(type_string) == expected


def test_spaced_pipes_without_null_give_non_nullable_enum() -> None:
    node = compile_type_string("Active | Inactive | Pending")

    assert node.nullable is False
    assert node.enum_values == ("Active", "Inactive", "Pending")


def test_spaced_pipes_with_null_give_nullable_enum() -> None:
    node = compile_type_string("Active | Inactive | null")

    assert node.nullable is True
    assert node.enum_values == ("Active", "Inactive")


def test_bare_pipes_only_detect_nullability() -> None:
    assert compile_type_string("Active|Inactive") == ScalarNode(ScalarType.ANY)
    assert compile_type_string("string|null") == ScalarNode(ScalarType.STRING, nullable=True)


def test_object_keeps_field_order() -> None:
    node = compile_schema({"zeta": "string", "alpha": "number", "mid": "boolean"})

    assert isinstance(node, ObjectNode)
    assert list(node.fields) == ["zeta", "alpha", "mid"]


def test_array_uses_first_element_as_item_template() -> None:
    node = compile_schema([{"a": "string"}, {"b": "number"}])

    assert isinstance(node, ArrayNode)
    assert list(node.item.fields) == ["a"]


def test_empty_array_accepts_anything() -> None:
    assert compile_schema([]) == ArrayNode(ScalarNode(ScalarType.ANY))


@pytest.mark.parametrize("raw", [42, 3.5, True, None])
def test_non_string_leaves_compile_to_any(raw) -> None:
    assert compile_schema(raw) == ScalarNode(ScalarType.ANY)


def test_contract_schema_compiles_to_known_node_kinds() -> None:
    raw = {
        "parts_involved": {
            "contractor": {"name": "string", "identifier": "string"},
            "contracted": {"name": "string", "identifier": "string | null"},
        },
        "contract_value": {
            "value": "string",
            "payment_schedule": [{"percentage": "string", "payment_due": "date | null"}],
        },
        "signature_data": [{"name": "string", "role": "contractor | contracted | witness"}],
        "tags": [],
        "created_at": "date",
        "notes": 0,
    }

    node = compile_schema(raw)

    assert all(isinstance(item, (ObjectNode, ArrayNode, ScalarNode)) for item in _walk(node))
    role = node.fields["signature_data"].item.fields["role"]
    assert role.enum_values == ("contractor", "contracted", "witness")


def test_compiled_nodes_are_immutable() -> None:
    node = compile_schema({"a": "string"})

    with pytest.raises(TypeError):
        node.fields["b"] = ScalarNode()
    with pytest.raises(FrozenInstanceError):
        node.fields["a"].nullable = True


def test_compiler_does_not_share_state_with_raw_definition() -> None:
    raw = {"a": "string"}
    node = compile_schema(raw)
    raw["b"] = "number"

    assert list(node.fields) == ["a"]


def test_depth_limit_rejects_deep_schema() -> None:
    raw = {"a": {"b": {"c": "string"}}}

    with pytest.raises(SchemaTooDeepError) as excinfo:
        compile_schema(raw, max_depth=2)

    assert excinfo.value.max_depth == 2
    assert isinstance(compile_schema(raw, max_depth=3), ObjectNode)


def test_depth_limit_counts_arrays() -> None:
    with pytest.raises(SchemaTooDeepError):
        compile_schema({"items": [{"sub": ["string"]}]}, max_depth=3)
