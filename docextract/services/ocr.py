"""
ocr.py

This file is used to read uploaded documents or images
and extract readable text from them.

Supported inputs:
- PDF (text layer; scanned pages are rendered and OCR'd)
- PNG / JPG / JPEG images

Extraction methods, in order:
1. OpenAI Vision API (best for photos and handwriting)
2. Tesseract OCR on an OpenCV-preprocessed image
3. Tesseract OCR on the raw image

This file:
- Only returns extracted text
- Does NOT save files anywhere
- Does NOT decide which file types are allowed (see pipeline.py)
"""

import base64
import io
import logging
from typing import List, Optional

import cv2
import fitz  # PyMuPDF
import numpy as np
import pytesseract
from openai import OpenAI
from PIL import Image

from docextract.config import OCRConfig

logger = logging.getLogger(__name__)

VISION_PROMPT = (
    "Extract ALL text from this document image. "
    "Preserve the reading order and line structure. "
    "Return ONLY the extracted text, without comments."
)

# Vision results shorter than this are treated as a miss
MIN_VISION_CHARS = 20


class OCRService:
    """
    OCRService reads PDFs and images and returns their text.

    Vision is used when an API key is configured and USE_VISION_OCR
    is on. Tesseract is always available as the fallback.
    """

    def __init__(self, config: OCRConfig, openai_client: Optional[OpenAI] = None):
        self.config = config

        if config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = config.tesseract_cmd

        self.openai_client = openai_client
        if self.openai_client is None and config.use_vision and config.api_key:
            self.openai_client = OpenAI(api_key=config.api_key)

    def extract_from_pdf(self, file_bytes: bytes) -> str:
        """
        Extract text from a PDF file.

        What happens here:
        1. Read the text layer of every page
        2. Pages without text are scanned pages: render them at high DPI
        3. OCR the rendered page (vision first, Tesseract fallback)
        4. Join pages with blank lines
        """

        extracted_pages: List[str] = []

        with fitz.open(stream=file_bytes, filetype="pdf") as pdf_document:
            logger.info("Reading PDF with %d page(s)", len(pdf_document))

            for page_index, page in enumerate(pdf_document):
                page_text = page.get_text().strip()
                if page_text:
                    extracted_pages.append(page_text)
                    continue

                logger.info("Page %d has no text layer, running OCR", page_index + 1)
                pixmap = page.get_pixmap(dpi=self.config.pdf_render_dpi)
                ocr_text = self._ocr_image_bytes(pixmap.tobytes("png"), "image/png")
                if ocr_text:
                    extracted_pages.append(ocr_text)

        return "\n\n".join(extracted_pages)

    def extract_from_image(self, file_bytes: bytes) -> str:
        """Extract text from an image file (PNG, JPG, JPEG)."""

        with Image.open(io.BytesIO(file_bytes)) as image:
            mime_type = Image.MIME.get(image.format or "", "image/png")
        return self._ocr_image_bytes(file_bytes, mime_type)

    def _ocr_image_bytes(self, image_bytes: bytes, mime_type: str) -> str:
        # Strategy 1: vision model
        vision_text = self._extract_with_openai_vision(image_bytes, mime_type)
        if vision_text and len(vision_text) > MIN_VISION_CHARS:
            return vision_text

        # Strategy 2: Tesseract, preprocessed then raw
        image = Image.open(io.BytesIO(image_bytes))
        text = pytesseract.image_to_string(
            self._preprocess_image(image), config="--oem 3 --psm 6"
        ).strip()
        if text:
            return text

        text = pytesseract.image_to_string(image).strip()
        if not text:
            logger.warning("Text extraction found no text in the image.")
        return text

    def _extract_with_openai_vision(self, image_bytes: bytes, mime_type: str) -> Optional[str]:
        """
        Ask the vision model to transcribe the image.

        Returns None when vision is not configured or the call fails,
        so the caller can fall back to Tesseract.
        """

        if not self.openai_client:
            return None

        base64_image = base64.b64encode(image_bytes).decode("utf-8")
        try:
            response = self.openai_client.chat.completions.create(
                model=self.config.vision_model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": VISION_PROMPT},
                            {
                                "type": "image_url",
                                "image_url": {"url": f"data:{mime_type};base64,{base64_image}"},
                            },
                        ],
                    }
                ],
                max_tokens=2000,
            )
        except Exception as error:
            logger.warning("OpenAI Vision API failed, falling back to Tesseract: %s", error)
            return None

        content = response.choices[0].message.content if response.choices else None
        return content.strip() if content else None

    def _preprocess_image(self, image: Image.Image) -> Image.Image:
        """
        Prepare an image for Tesseract.

        1. Grayscale
        2. Upscale small images to 1500px width
        3. CLAHE contrast enhancement
        4. Gentle denoising
        5. Otsu thresholding (inverted if the background is dark)
        """

        gray = np.array(image.convert("L"))

        height, width = gray.shape[:2]
        if width < 1500:
            scale = 1500 / width
            gray = cv2.resize(
                gray, (1500, int(height * scale)), interpolation=cv2.INTER_CUBIC
            )

        clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
        enhanced = clahe.apply(gray)
        denoised = cv2.fastNlMeansDenoising(enhanced, h=10)

        _, binary = cv2.threshold(denoised, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        if np.mean(binary) < 127:
            binary = cv2.bitwise_not(binary)

        return Image.fromarray(binary)
