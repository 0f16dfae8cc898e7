"""
pipeline.py

Document extraction pipeline:
  1. resolve schema   -> by name (schema store) or inline definition
  2. extract text     -> PDF text layer / OCR, chosen by file extension
  3. build prompt     -> schema mode or inference mode
  4. call the model   -> JSON mode, low temperature, no retries
  5. parse the reply  -> must be valid JSON
  6. validate         -> only when a schema was resolved
  7. format           -> JSON value or markdown bullet list

Every failure is raised as one of the typed errors in exceptions.py.
Nothing is retried and nothing runs in parallel: each stage needs the
previous stage's output.
"""

import json
import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

from docextract.exceptions import (
    AppError,
    InvalidSchemaDefinition,
    LLMCommunicationError,
    ResponseParseError,
    SchemaNotFound,
    TextExtractionError,
    UnsupportedFileType,
    ValidationError,
)
from docextract.schema_dsl.compiler import compile_schema
from docextract.schema_dsl.nodes import SchemaNode
from docextract.schema_dsl.validator import ValidationVerdict, validate
from docextract.schemas.document import OutputFormat
from docextract.services.markdown import to_markdown
from docextract.services.prompt_builder import build_prompt

logger = logging.getLogger(__name__)

PDF_EXTENSIONS = (".pdf",)
IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg")

# Keys of a stored schema document, accepted as an inline wrapper
_DOCUMENT_KEYS = {"schemaName", "schema_name", "description", "jsonSchema", "json_schema"}
_DOCUMENT_NAME_KEYS = {"schemaName", "schema_name"}
_DOCUMENT_SCHEMA_KEYS = {"jsonSchema", "json_schema"}


@dataclass
class ExtractionJob:
    """State of one pipeline run. Lives for a single request."""

    filename: str
    output_format: OutputFormat
    file_kind: Optional[str] = None
    raw_schema: Optional[Dict[str, Any]] = None
    text: Optional[str] = None
    prompt: Optional[str] = None
    raw_reply: Optional[str] = None
    parsed: Any = None
    verdict: Optional[ValidationVerdict] = None

    @property
    def inference_mode(self) -> bool:
        return self.raw_schema is None


@dataclass(frozen=True)
class ExtractionResult:
    """
    Final pipeline output.

    `data` is the validated (or, in inference mode, raw) JSON value.
    `content` is what the client receives: `data` itself for JSON,
    or the markdown string.
    """

    output_format: OutputFormat
    data: Any
    content: Any
    job: ExtractionJob


def detect_file_kind(filename: str) -> str:
    """
    Map a file name to "pdf" or "image" using its extension only.

    Raises:
    - UnsupportedFileType for anything else
    """

    extension = os.path.splitext(filename or "")[1].lower()
    if extension in PDF_EXTENSIONS:
        return "pdf"
    if extension in IMAGE_EXTENSIONS:
        return "image"
    raise UnsupportedFileType(filename)


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON and cannot be sent back to the client
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_reply(raw_reply: str) -> Any:
    """
    Parse the model reply as JSON.

    A single wrapping markdown code fence is tolerated.
    NaN, Infinity and -Infinity are rejected.

    Raises:
    - ResponseParseError with the raw reply attached
    """

    text = raw_reply.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]

    try:
        return json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as error:
        logger.error("Failed to parse model response as JSON: %s", error)
        raise ResponseParseError(raw_reply, original=error) from error


class ExtractionPipeline:
    """
    Runs one document through extraction, prompting and validation.

    Collaborators are passed in when the pipeline is built:
    - schema_store: find_by_name(name) -> StoredSchemaDocument | None
    - text_extractor: extract_from_pdf(bytes) / extract_from_image(bytes)
    - llm_client: complete(prompt) -> reply text
    - image_processor: optional, process_image(bytes, name, type) -> bytes
    """

    def __init__(
        self,
        schema_store,
        text_extractor,
        llm_client,
        image_processor=None,
        max_schema_depth: Optional[int] = None,
        reject_unknown_keys: bool = False,
    ):
        self.schema_store = schema_store
        self.text_extractor = text_extractor
        self.llm_client = llm_client
        self.image_processor = image_processor
        self.max_schema_depth = max_schema_depth
        self.reject_unknown_keys = reject_unknown_keys

    def run(
        self,
        filename: str,
        content: bytes,
        output_format: Union[OutputFormat, str] = OutputFormat.JSON,
        schema_name: Optional[str] = None,
        inline_schema: Optional[Any] = None,
    ) -> ExtractionResult:
        """
        Process one uploaded document.

        Parameters:
        - filename: original file name (decides PDF vs image)
        - content: file bytes
        - output_format: "json" or "md"
        - schema_name: name of a stored schema
        - inline_schema: schema definition sent with the request

        Returns:
        - ExtractionResult

        Raises:
        - any AppError subclass, see exceptions.py
        """

        job = ExtractionJob(filename=filename, output_format=OutputFormat(output_format))
        logger.info("Processing '%s' (%d bytes, format=%s)", filename, len(content), job.output_format.value)

        # ── Step 1: resolve schema ─────────────────────────────────────
        job.raw_schema = self._resolve_schema(schema_name, inline_schema)
        schema_node: Optional[SchemaNode] = None
        if job.raw_schema is not None:
            schema_node = compile_schema(job.raw_schema, self.max_schema_depth)
            logger.info("Step 1/7: schema resolved (%d top-level fields)", len(job.raw_schema))
        else:
            logger.info("Step 1/7: no schema, running in inference mode")

        # ── Step 2: extract text ───────────────────────────────────────
        job.file_kind = detect_file_kind(filename)
        job.text = self._extract_text(job.file_kind, filename, content)
        logger.info("Step 2/7: extracted %d chars from %s", len(job.text), job.file_kind)

        # ── Step 3: build prompt ───────────────────────────────────────
        job.prompt = build_prompt(job.text, job.raw_schema, job.output_format.value)
        logger.info("Step 3/7: prompt built (%d chars)", len(job.prompt))

        # ── Step 4: call the model ─────────────────────────────────────
        job.raw_reply = self._call_model(job.prompt)
        logger.info("Step 4/7: model replied (%d chars)", len(job.raw_reply))

        # ── Step 5: parse reply ────────────────────────────────────────
        job.parsed = parse_reply(job.raw_reply)
        logger.info("Step 5/7: reply parsed")

        # ── Step 6: validate ───────────────────────────────────────────
        data = job.parsed
        if schema_node is not None:
            job.verdict = validate(schema_node, job.parsed, self.reject_unknown_keys)
            if not job.verdict.success:
                logger.warning(
                    "Step 6/7: validation failed on %d path(s): %s",
                    len(job.verdict.field_errors),
                    ", ".join(job.verdict.field_errors),
                )
                raise ValidationError(job.verdict.field_errors, job.parsed)
            data = job.verdict.data
            logger.info("Step 6/7: validation passed")
        else:
            logger.info("Step 6/7: validation skipped (no schema)")

        # ── Step 7: format ─────────────────────────────────────────────
        if job.output_format is OutputFormat.MARKDOWN:
            formatted = to_markdown(data, self.max_schema_depth)
        else:
            formatted = data
        logger.info("Step 7/7: formatted as %s", job.output_format.value)

        return ExtractionResult(
            output_format=job.output_format, data=data, content=formatted, job=job
        )

    def _resolve_schema(
        self, schema_name: Optional[str], inline_schema: Optional[Any]
    ) -> Optional[Dict[str, Any]]:
        if schema_name and inline_schema is not None:
            raise InvalidSchemaDefinition(
                "Provide either a schema name or an inline schema, not both."
            )

        if schema_name:
            document = self.schema_store.find_by_name(schema_name)
            if document is None:
                raise SchemaNotFound(schema_name)
            return document.json_schema

        if inline_schema is None:
            return None

        if not isinstance(inline_schema, dict):
            raise InvalidSchemaDefinition("The inline schema must be a JSON object.")

        keys = set(inline_schema)
        if (
            keys <= _DOCUMENT_KEYS
            and keys & _DOCUMENT_NAME_KEYS
            and keys & _DOCUMENT_SCHEMA_KEYS
        ):
            wrapped = inline_schema.get("jsonSchema", inline_schema.get("json_schema"))
            if isinstance(wrapped, dict):
                inline_schema = wrapped

        if not inline_schema:
            raise InvalidSchemaDefinition("The inline schema must not be empty.")
        return inline_schema

    def _extract_text(self, file_kind: str, filename: str, content: bytes) -> str:
        try:
            if file_kind == "pdf":
                text = self.text_extractor.extract_from_pdf(content)
            else:
                if self.image_processor is not None:
                    content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
                    content = self.image_processor.process_image(content, filename, content_type)
                text = self.text_extractor.extract_from_image(content)
        except AppError:
            raise
        except Exception as error:
            logger.exception("Text extraction failed for '%s'", filename)
            raise TextExtractionError(
                "Internal server error while extracting text from the document.",
                original=error,
            ) from error

        if not text or not text.strip():
            logger.warning("No text found in '%s'", filename)
            return ""
        return text

    def _call_model(self, prompt: str) -> str:
        try:
            return self.llm_client.complete(prompt)
        except AppError:
            raise
        except Exception as error:
            logger.exception("Model client failed")
            raise LLMCommunicationError(
                "Failed to communicate with the AI service.", original=error
            ) from error
