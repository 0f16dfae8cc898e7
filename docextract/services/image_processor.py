"""
image_processor.py

Client for the external image preprocessing service.

When IMAGE_PROCESSOR_URL is set, uploaded images are sent there
before OCR (deskew, contrast, cropping, ...). The service answers:

    {"filename": "...", "content_type": "image/png", "image_base64": "..."}

This client only moves bytes; it does not run OCR.
"""

import base64
import binascii
import logging

import requests

from docextract.exceptions import TextExtractionError

logger = logging.getLogger(__name__)


class ImageProcessorClient:
    """Sends one image as multipart/form-data and returns the processed bytes."""

    def __init__(self, url: str, timeout: float = 30, session: requests.Session = None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def process_image(self, file_bytes: bytes, filename: str, content_type: str) -> bytes:
        """
        Preprocess an image.

        Parameters:
        - file_bytes: original image data
        - filename: original file name
        - content_type: MIME type sent with the file

        Returns:
        - processed image bytes

        Raises:
        - TextExtractionError when the service fails or answers badly
        """

        if not file_bytes:
            logger.error("Tried to process an empty file.")
            raise TextExtractionError("The file is empty or corrupted.")

        logger.info("Sending image '%s' to be processed at %s", filename, self.url)

        try:
            response = self.session.post(
                self.url,
                files={"file": (filename, file_bytes, content_type)},
                timeout=self.timeout,
            )
        except requests.RequestException as error:
            logger.error("Error communicating with the image service: %s", error)
            raise TextExtractionError(
                "The image processing service failed or returned an unexpected response.",
                original=error,
            ) from error

        if not 200 <= response.status_code < 300:
            detail = "The image processing service failed or returned an unexpected response."
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("detail"), str):
                detail = body["detail"]
            logger.error("Image service returned %d: %s", response.status_code, detail)
            raise TextExtractionError(f"Error {response.status_code}: {detail}")

        try:
            processed = base64.b64decode(response.json()["image_base64"], validate=True)
        except (ValueError, KeyError, TypeError, binascii.Error) as error:
            logger.error("Image service response is missing image data: %s", error)
            raise TextExtractionError(
                "The image processing service returned an unexpected response.",
                original=error,
            ) from error

        logger.info("The image '%s' was processed successfully.", filename)
        return processed
