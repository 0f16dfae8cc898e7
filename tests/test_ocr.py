"""OCR service tests (vision client and Tesseract replaced by fakes)."""

from __future__ import annotations

import io
from types import SimpleNamespace

import fitz
import pytest
from PIL import Image

from docextract.config import OCRConfig
from docextract.services import ocr
from docextract.services.ocr import MIN_VISION_CHARS, OCRService

VISION_TEXT = "INVOICE 2024-001\nTotal due: 500.00 EUR\nDue date: 2024-01-01"


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    def image_url(self, index: int = 0) -> str:
        content = self.calls[index]["messages"][0]["content"]
        return content[1]["image_url"]["url"]


class FakeTesseract:
    def __init__(self, text: str = "tesseract text"):
        self.text = text
        self.calls = 0

    def __call__(self, image, config=""):
        self.calls += 1
        return self.text


@pytest.fixture
def tesseract(monkeypatch) -> FakeTesseract:
    fake = FakeTesseract()
    monkeypatch.setattr(ocr.pytesseract, "image_to_string", fake)
    return fake


def _service(completions=None) -> OCRService:
    config = OCRConfig(
        api_key="",
        vision_model="gpt-vision-test",
        use_vision=completions is not None,
        tesseract_cmd=None,
        pdf_render_dpi=72,
    )
    client = None
    if completions is not None:
        client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return OCRService(config, openai_client=client)


def _pdf(*page_texts: str) -> bytes:
    document = fitz.open()
    for text in page_texts:
        page = document.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = document.tobytes()
    document.close()
    return data


def _image(image_format: str) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (200, 80), "white").save(buffer, format=image_format)
    return buffer.getvalue()


def test_pdf_text_layer_is_read_without_ocr(tesseract) -> None:
    completions = FakeCompletions(content=VISION_TEXT)

    text = _service(completions).extract_from_pdf(_pdf("Invoice total 500", "Page two"))

    assert "Invoice total 500" in text
    assert "Page two" in text
    assert completions.calls == []
    assert tesseract.calls == 0


def test_textless_pdf_page_goes_to_vision(tesseract) -> None:
    completions = FakeCompletions(content=VISION_TEXT)

    text = _service(completions).extract_from_pdf(_pdf("Cover letter", ""))

    assert text == "Cover letter\n\n" + VISION_TEXT
    assert len(completions.calls) == 1
    assert completions.image_url().startswith("data:image/png;base64,")
    assert tesseract.calls == 0


def test_short_vision_reply_falls_back_to_tesseract(tesseract) -> None:
    completions = FakeCompletions(content="x" * MIN_VISION_CHARS)

    text = _service(completions).extract_from_image(_image("PNG"))

    assert text == "tesseract text"
    assert len(completions.calls) == 1
    assert tesseract.calls == 1


def test_vision_failure_falls_back_to_tesseract(tesseract) -> None:
    completions = FakeCompletions(error=RuntimeError("rate limited"))

    assert _service(completions).extract_from_image(_image("PNG")) == "tesseract text"


def test_tesseract_only_when_vision_is_not_configured(tesseract) -> None:
    assert _service().extract_from_image(_image("PNG")) == "tesseract text"


def test_vision_receives_the_real_image_type(tesseract) -> None:
    completions = FakeCompletions(content=VISION_TEXT)

    text = _service(completions).extract_from_image(_image("JPEG"))

    assert text == VISION_TEXT
    assert completions.image_url().startswith("data:image/jpeg;base64,")
