"""
deps.py

FastAPI dependencies that build the long-lived services.

Each service is created once per process from Settings. Tests
replace these through app.dependency_overrides.
"""

from functools import lru_cache

from docextract.config import get_settings
from docextract.services.image_processor import ImageProcessorClient
from docextract.services.llm import LLMClient
from docextract.services.ocr import OCRService
from docextract.services.pipeline import ExtractionPipeline
from docextract.services.schema_store import SchemaStore


@lru_cache(maxsize=1)
def get_schema_store() -> SchemaStore:
    return SchemaStore(get_settings().schema_store_path)


@lru_cache(maxsize=1)
def get_pipeline() -> ExtractionPipeline:
    """
    Wire the extraction pipeline.

    The image processor is only used when IMAGE_PROCESSOR_URL is set.
    """

    settings = get_settings()

    image_processor = None
    if settings.ocr.image_processor_url:
        image_processor = ImageProcessorClient(
            settings.ocr.image_processor_url,
            timeout=settings.ocr.image_processor_timeout,
        )

    return ExtractionPipeline(
        schema_store=get_schema_store(),
        text_extractor=OCRService(settings.ocr),
        llm_client=LLMClient(settings.llm),
        image_processor=image_processor,
        max_schema_depth=settings.depth_limit,
        reject_unknown_keys=settings.reject_unknown_keys,
    )
