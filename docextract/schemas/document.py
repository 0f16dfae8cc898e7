"""
document.py (schemas)

Models used by the document processing endpoint.

Successful responses are the extracted JSON itself (or markdown
text), so only the output format and the error body are modelled.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class OutputFormat(str, Enum):
    JSON = "json"
    MARKDOWN = "md"


class ErrorResponse(BaseModel):
    """
    Body returned for every pipeline failure.

    Only some kinds fill the optional fields:
    - ValidationError: validationErrors, extractedData
    - ResponseParseError: rawResponse
    """

    error: str = Field(..., description="Error kind", examples=["ValidationError"])
    message: str = Field(..., description="Human readable message")

    validationErrors: Optional[Dict[str, List[str]]] = Field(
        default=None,
        description="Per-path validation messages",
        examples=[{"due_date": ["Expected date, received null"]}],
    )
    extractedData: Optional[Any] = Field(
        default=None, description="What the model actually produced"
    )
    rawResponse: Optional[str] = Field(
        default=None, description="Unparseable model reply"
    )
