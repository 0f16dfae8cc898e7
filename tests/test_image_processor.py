"""Image preprocessing client tests (HTTP session replaced by a fake)."""

from __future__ import annotations

import base64

import pytest
import requests

from docextract.exceptions import TextExtractionError
from docextract.services.image_processor import ImageProcessorClient


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self.body = body

    def json(self):
        if self.body is None:
            raise ValueError("no json")
        return self.body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, files=None, timeout=None):
        self.calls.append((url, files, timeout))
        if self.error:
            raise self.error
        return self.response


def test_processed_image_is_decoded() -> None:
    encoded = base64.b64encode(b"clean image").decode()
    session = FakeSession(FakeResponse(body={"filename": "a.png", "image_base64": encoded}))
    client = ImageProcessorClient("http://processor/process", timeout=3, session=session)

    result = client.process_image(b"raw", "a.png", "image/png")

    assert result == b"clean image"
    url, files, timeout = session.calls[0]
    assert url == "http://processor/process"
    assert files == {"file": ("a.png", b"raw", "image/png")}
    assert timeout == 3


def test_service_detail_is_surfaced() -> None:
    session = FakeSession(FakeResponse(status_code=400, body={"detail": "Image too blurry"}))
    client = ImageProcessorClient("http://processor", session=session)

    with pytest.raises(TextExtractionError, match="Error 400: Image too blurry"):
        client.process_image(b"raw", "a.png", "image/png")


@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=requests.ConnectionError("refused")),
        FakeSession(FakeResponse(status_code=502)),
        FakeSession(FakeResponse(body={"filename": "a.png"})),
        FakeSession(FakeResponse(body={"image_base64": "***not base64***"})),
    ],
)
def test_failures_become_text_extraction_errors(session) -> None:
    client = ImageProcessorClient("http://processor", session=session)

    with pytest.raises(TextExtractionError):
        client.process_image(b"raw", "a.png", "image/png")


def test_empty_file_is_rejected_without_calling_service() -> None:
    session = FakeSession()

    with pytest.raises(TextExtractionError):
        ImageProcessorClient("http://processor", session=session).process_image(b"", "a.png", "image/png")

    assert session.calls == []
