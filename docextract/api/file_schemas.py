"""
file_schemas.py (API Route)

CRUD endpoints for named schema definitions.

Endpoints:
- POST   /file-schemas         - Store a new schema
- GET    /file-schemas         - List all schemas
- GET    /file-schemas/{name}  - Fetch one schema
- DELETE /file-schemas/{name}  - Delete a schema
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from docextract.api.deps import get_schema_store
from docextract.exceptions import SchemaNotFound
from docextract.schemas.file_schema import CreateFileSchemaRequest, StoredSchemaDocument
from docextract.services.schema_store import SchemaStore

router = APIRouter()


@router.post(
    "",
    response_model=StoredSchemaDocument,
    status_code=status.HTTP_201_CREATED,
    summary="Store a schema definition",
)
def create_schema(
    request: CreateFileSchemaRequest,
    store: SchemaStore = Depends(get_schema_store),
):
    # SchemaConflict (409) is raised by the store
    return store.create(
        name=request.schema_name,
        definition=request.json_schema,
        description=request.description,
    )


@router.get(
    "",
    response_model=List[StoredSchemaDocument],
    summary="List stored schemas",
)
def list_schemas(store: SchemaStore = Depends(get_schema_store)):
    return store.find_all()


@router.get(
    "/{name}",
    response_model=StoredSchemaDocument,
    summary="Fetch a schema by name",
)
def get_schema(name: str, store: SchemaStore = Depends(get_schema_store)):
    document = store.find_by_name(name)
    if document is None:
        raise SchemaNotFound(name)
    return document


@router.delete(
    "/{name}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a schema by name",
)
def delete_schema(name: str, store: SchemaStore = Depends(get_schema_store)):
    store.delete_by_name(name)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
