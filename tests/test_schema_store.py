"""Schema store tests."""

from __future__ import annotations

import json

import pytest

from docextract.exceptions import SchemaConflict, SchemaNotFound, SchemaStoreError
from docextract.services.schema_store import SchemaStore


def test_create_find_list_delete() -> None:
    store = SchemaStore()

    created = store.create("Invoice", {"amount": "string"}, description="Invoices")

    assert created.schema_name == "Invoice"
    assert store.find_by_name("Invoice") == created
    assert store.find_by_name(" Invoice ") == created
    assert [doc.schema_name for doc in store.find_all()] == ["Invoice"]

    store.delete_by_name("Invoice")

    assert store.find_by_name("Invoice") is None
    assert store.find_all() == []


def test_names_are_unique() -> None:
    store = SchemaStore()
    store.create("Invoice", {"amount": "string"})

    with pytest.raises(SchemaConflict):
        store.create(" Invoice", {"other": "number"})

    assert store.find_by_name("Invoice").json_schema == {"amount": "string"}


def test_deleting_unknown_schema_fails() -> None:
    with pytest.raises(SchemaNotFound):
        SchemaStore().delete_by_name("Nope")


def test_store_persists_to_json_file(tmp_path) -> None:
    path = tmp_path / "store" / "schemas.json"
    first = SchemaStore(str(path))
    created = first.create("Contract", {"value": "string", "parts": [{"name": "string"}]})

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved[0]["schemaName"] == "Contract"

    second = SchemaStore(str(path))
    loaded = second.find_by_name("Contract")

    assert loaded.json_schema == created.json_schema
    assert loaded.created_at == created.created_at

    second.delete_by_name("Contract")
    assert json.loads(path.read_text(encoding="utf-8")) == []


def test_failed_write_leaves_store_unchanged(tmp_path) -> None:
    path = tmp_path / "schemas.json"
    store = SchemaStore(str(path))
    path.mkdir()

    with pytest.raises(SchemaStoreError):
        store.create("Invoice", {"amount": "string"})

    assert store.find_by_name("Invoice") is None
    assert store.find_all() == []
    assert list(tmp_path.iterdir()) == [path]


def test_failed_delete_keeps_schema(tmp_path) -> None:
    path = tmp_path / "schemas.json"
    store = SchemaStore(str(path))
    store.create("Invoice", {"amount": "string"})
    path.unlink()
    path.mkdir()

    with pytest.raises(SchemaStoreError):
        store.delete_by_name("Invoice")

    assert store.find_by_name("Invoice") is not None
