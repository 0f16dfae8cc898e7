"""
document.py (API Route)

Defines the /document/process endpoint.

What this file does:
- Accepts the uploaded file and form fields
- Checks the upload (present, not empty, not too large)
- Reads the optional inline schema from its JSON text
- Runs the extraction pipeline in the thread pool
- Returns JSON or markdown

What this file does NOT do:
- Extract text, call the model or validate (see services/pipeline.py)
- Format error bodies (see the AppError handler in main.py)

Flow:
User uploads file → This API → ExtractionPipeline → JSON / markdown
"""

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, PlainTextResponse

from docextract.api.deps import get_pipeline
from docextract.config import Settings, get_settings
from docextract.exceptions import InvalidSchemaDefinition
from docextract.schemas.document import ErrorResponse, OutputFormat
from docextract.services.pipeline import ExtractionPipeline

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/process",
    status_code=status.HTTP_200_OK,
    summary="Extract structured data from a document",
    description=(
        "Upload a PDF, PNG, JPG or JPEG document. Its text is extracted, sent to the "
        "LLM together with the schema (stored by name or sent inline as JSON), and "
        "the validated result is returned as JSON or as a markdown list. "
        "Without a schema the model infers the structure."
    ),
    responses={
        200: {"content": {"application/json": {}, "text/markdown": {}}},
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        413: {"description": "File too large"},
        415: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def process_document(
    file: UploadFile = File(...),
    format_to: OutputFormat = Form(OutputFormat.JSON),
    schema_name: Optional[str] = Form(None),
    schema_json: Optional[str] = Form(None, alias="schema"),
    pipeline: ExtractionPipeline = Depends(get_pipeline),
    settings: Settings = Depends(get_settings),
):
    """
    Document processing endpoint.

    Step-by-step process:
    1. Validate the upload
    2. Parse the inline schema (if any)
    3. Run the pipeline
    4. Return JSON or markdown

    Errors raised by the pipeline are AppError subclasses and are
    turned into JSON error bodies by the handler in main.py.
    """

    # Step 1: Validate the upload
    if not file.filename:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Document file is required",
        )

    content = await file.read()

    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded document is empty",
        )

    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"Uploaded document exceeds {settings.max_upload_bytes} bytes",
        )

    # Step 2: Parse the inline schema
    inline_schema = _parse_inline_schema(schema_json)

    # Step 3: Run the pipeline (blocking work, keep it off the event loop)
    result = await run_in_threadpool(
        pipeline.run,
        file.filename,
        content,
        format_to,
        (schema_name or "").strip() or None,
        inline_schema,
    )

    # Step 4: Return the formatted result
    if result.output_format is OutputFormat.MARKDOWN:
        return PlainTextResponse(result.content, media_type="text/markdown")
    return JSONResponse(jsonable_encoder(result.content))


def _parse_inline_schema(schema_json: Optional[str]) -> Optional[Any]:
    if schema_json is None or not schema_json.strip():
        return None
    try:
        return json.loads(schema_json)
    except ValueError as error:
        raise InvalidSchemaDefinition(
            "The 'schema' field is not valid JSON.", original=error
        ) from error
