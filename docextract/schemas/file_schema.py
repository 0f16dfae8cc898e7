"""
file_schema.py (schemas)

Pydantic models for the schema definition endpoints.

Field names are snake_case in Python and camelCase on the wire
(schemaName, jsonSchema). Both spellings are accepted on input.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreateFileSchemaRequest(BaseModel):
    """
    Request body for POST /file-schemas.
    """

    model_config = ConfigDict(populate_by_name=True)

    schema_name: str = Field(
        ...,
        alias="schemaName",
        min_length=3,
        description="Unique name used to reference the schema",
        examples=["ServiceContract"],
    )

    description: Optional[str] = Field(
        default=None,
        description="Human readable description",
        examples=["Service Contract"],
    )

    json_schema: Dict[str, Any] = Field(
        ...,
        alias="jsonSchema",
        description="Schema definition written in the extraction DSL",
        examples=[{"amount": "string", "due_date": "date", "status": "Paid | Open | null"}],
    )

    @field_validator("schema_name")
    @classmethod
    def name_must_not_be_blank(cls, value: str) -> str:
        if len(value.strip()) < 3:
            raise ValueError("schemaName must have at least 3 non-blank characters")
        return value.strip()

    @field_validator("json_schema")
    @classmethod
    def schema_must_not_be_empty(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        if not value:
            raise ValueError("jsonSchema must not be empty")
        return value


class StoredSchemaDocument(BaseModel):
    """
    A schema definition as kept by the schema store.
    """

    model_config = ConfigDict(populate_by_name=True)

    schema_name: str = Field(..., alias="schemaName")
    description: Optional[str] = None
    json_schema: Dict[str, Any] = Field(..., alias="jsonSchema")
    created_at: datetime = Field(..., alias="createdAt")
