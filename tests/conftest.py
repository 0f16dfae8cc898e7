"""Shared fakes and fixtures."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from docextract.api.deps import get_pipeline, get_schema_store
from docextract.config import Settings, get_settings
from docextract.main import create_app
from docextract.services.pipeline import ExtractionPipeline
from docextract.services.schema_store import SchemaStore


class FakeTextExtractor:
    def __init__(self, text: str = "Invoice due 2024-01-01, amount $500", error=None):
        self.text = text
        self.error = error
        self.calls = []

    def extract_from_pdf(self, file_bytes: bytes) -> str:
        self.calls.append(("pdf", file_bytes))
        if self.error:
            raise self.error
        return self.text

    def extract_from_image(self, file_bytes: bytes) -> str:
        self.calls.append(("image", file_bytes))
        if self.error:
            raise self.error
        return self.text


class FakeLLMClient:
    def __init__(self, reply: str = "{}", error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


class FakeImageProcessor:
    def __init__(self):
        self.calls = []

    def process_image(self, file_bytes: bytes, filename: str, content_type: str) -> bytes:
        self.calls.append((filename, content_type))
        return b"processed:" + file_bytes


@pytest.fixture
def store() -> SchemaStore:
    return SchemaStore()


@pytest.fixture
def extractor() -> FakeTextExtractor:
    return FakeTextExtractor()


@pytest.fixture
def llm() -> FakeLLMClient:
    return FakeLLMClient()


@pytest.fixture
def pipeline(store, extractor, llm) -> ExtractionPipeline:
    return ExtractionPipeline(
        schema_store=store,
        text_extractor=extractor,
        llm_client=llm,
        max_schema_depth=8,
    )


@pytest.fixture
def settings() -> Settings:
    settings = Settings()
    settings.llm.api_key = "test-key"
    settings.max_upload_bytes = 1024
    settings.log_level = "WARNING"
    return settings


@pytest.fixture
def client(settings, store, pipeline) -> TestClient:
    app = create_app(settings)
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_schema_store] = lambda: store
    app.dependency_overrides[get_pipeline] = lambda: pipeline
    return TestClient(app)
