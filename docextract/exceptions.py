"""
exceptions.py

Typed errors raised by the extraction service.

Every stage of the pipeline translates its failures into one of these
before they reach the API layer. Each error knows:
- its HTTP status code
- the "error" kind name sent to the client
- any extra fields for the JSON payload

The original exception (if any) is kept on `original` for logging.
It is never put in the response payload.
"""

from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base exception for all application errors."""

    status_code: int = 500
    kind: str = "InternalError"

    def __init__(self, message: str, original: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original = original

    def __str__(self):
        if self.original:
            return f"{self.message} (caused by: {self.original})"
        return self.message

    def extra_payload(self) -> Dict[str, Any]:
        return {}

    def to_payload(self) -> Dict[str, Any]:
        """Build the JSON body returned to the client."""
        payload: Dict[str, Any] = {"error": self.kind, "message": self.message}
        payload.update(self.extra_payload())
        return payload


class ConfigurationError(AppError):
    """Raised at startup when required settings are missing."""

    kind = "ConfigurationError"


class UnsupportedFileType(AppError):
    """File extension is not PDF, PNG, JPG or JPEG."""

    status_code = 415
    kind = "UnsupportedFileType"

    def __init__(self, filename: str):
        super().__init__(f"Unsupported file type: '{filename}'")
        self.filename = filename

    def extra_payload(self) -> Dict[str, Any]:
        return {"filename": self.filename}


class InvalidSchemaDefinition(AppError):
    """Inline schema could not be used (bad JSON, not an object, ...)."""

    status_code = 400
    kind = "InvalidSchemaDefinition"


class SchemaTooDeepError(InvalidSchemaDefinition):
    """Schema nesting is deeper than the configured limit."""

    kind = "SchemaTooDeep"

    def __init__(self, max_depth: int):
        super().__init__(f"Schema nesting exceeds the maximum depth of {max_depth}")
        self.max_depth = max_depth

    def extra_payload(self) -> Dict[str, Any]:
        return {"max_depth": self.max_depth}


class SchemaNotFound(AppError):
    """A named schema does not exist in the store."""

    status_code = 404
    kind = "SchemaNotFound"

    def __init__(self, schema_name: str):
        super().__init__(f"Schema '{schema_name}' not found")
        self.schema_name = schema_name

    def extra_payload(self) -> Dict[str, Any]:
        return {"schemaName": self.schema_name}


class SchemaConflict(AppError):
    """A schema with the same name is already stored."""

    status_code = 409
    kind = "SchemaConflict"

    def __init__(self, schema_name: str):
        super().__init__(f"A schema named '{schema_name}' already exists")
        self.schema_name = schema_name

    def extra_payload(self) -> Dict[str, Any]:
        return {"schemaName": self.schema_name}


class SchemaStoreError(AppError):
    """The schema file could not be written. The store is left unchanged."""

    kind = "SchemaStoreError"


class TextExtractionError(AppError):
    """PDF parsing, OCR or image preprocessing failed."""

    kind = "TextExtractionError"


class LLMEmptyResponse(AppError):
    """The model answered with no text."""

    status_code = 502
    kind = "LLMEmptyResponse"

    def __init__(self, message: str = "The model returned an empty response."):
        super().__init__(message)


class LLMCommunicationError(AppError):
    """The model call failed (network, auth, timeout, ...)."""

    status_code = 502
    kind = "LLMCommunicationError"


class ResponseParseError(AppError):
    """The model reply is not valid JSON."""

    status_code = 502
    kind = "ResponseParseError"

    def __init__(self, raw_response: str, original: Optional[Exception] = None):
        super().__init__("The model response is not valid JSON.", original=original)
        self.raw_response = raw_response

    def extra_payload(self) -> Dict[str, Any]:
        return {"rawResponse": self.raw_response}


class ValidationError(AppError):
    """
    The parsed reply does not match the schema.

    The extracted data is kept in the payload so the caller can
    inspect what the model actually produced.
    """

    status_code = 422
    kind = "ValidationError"

    def __init__(self, field_errors: Dict[str, List[str]], extracted_data: Any):
        super().__init__(
            "The LLM response is invalid. Please check the validation errors."
        )
        self.field_errors = field_errors
        self.extracted_data = extracted_data

    def extra_payload(self) -> Dict[str, Any]:
        return {
            "validationErrors": self.field_errors,
            "extractedData": self.extracted_data,
        }
