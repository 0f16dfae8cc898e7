"""
config.py

Central place to load environment variables.

Values are read once into Settings. Services receive the pieces they
need (LLMConfig, OCRConfig, ...) when they are built, and never read
the environment themselves.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from docextract.exceptions import ConfigurationError

# Load variables from .env file into environment
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


@dataclass
class LLMConfig:
    # ── OpenAI chat model used for extraction ─────────────────────────
    api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o-mini"))
    temperature: float = field(
        default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.2"))
    )
    timeout_seconds: float = field(
        default_factory=lambda: float(os.getenv("LLM_TIMEOUT_SECONDS", "60"))
    )
    max_tokens: int = 4096


@dataclass
class OCRConfig:
    # ── Vision model (first choice for images and scanned pages) ──────
    api_key: str = field(default_factory=lambda: os.getenv("OPENAI_API_KEY", ""))
    vision_model: str = field(default_factory=lambda: os.getenv("VISION_MODEL", "gpt-4.1"))
    use_vision: bool = field(default_factory=lambda: _env_bool("USE_VISION_OCR", True))

    # ── Tesseract fallback ────────────────────────────────────────────
    tesseract_cmd: Optional[str] = field(default_factory=lambda: _env_optional("TESSERACT_CMD"))
    pdf_render_dpi: int = 300

    # ── External image preprocessing service (optional) ───────────────
    image_processor_url: Optional[str] = field(
        default_factory=lambda: _env_optional("IMAGE_PROCESSOR_URL")
    )
    image_processor_timeout: float = field(
        default_factory=lambda: float(os.getenv("IMAGE_PROCESSOR_TIMEOUT", "30"))
    )


@dataclass
class Settings:
    llm: LLMConfig = field(default_factory=LLMConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)

    # ── Schema store ──────────────────────────────────────────────────
    schema_store_path: Optional[str] = field(
        default_factory=lambda: _env_optional("SCHEMA_STORE_PATH")
    )

    # ── Limits ────────────────────────────────────────────────────────
    max_upload_bytes: int = field(
        default_factory=lambda: int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    )
    # 0 disables the cap
    max_schema_depth: int = field(
        default_factory=lambda: int(os.getenv("MAX_SCHEMA_DEPTH", "32"))
    )
    reject_unknown_keys: bool = field(
        default_factory=lambda: _env_bool("REJECT_UNKNOWN_KEYS", False)
    )

    # ── Logging ───────────────────────────────────────────────────────
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @property
    def depth_limit(self) -> Optional[int]:
        return self.max_schema_depth if self.max_schema_depth > 0 else None

    def validate(self) -> None:
        """Fail fast on settings the service cannot run without."""
        if not self.llm.api_key or not self.llm.api_key.strip():
            raise ConfigurationError("OPENAI_API_KEY is not set.")
        if self.max_upload_bytes <= 0:
            raise ConfigurationError("MAX_UPLOAD_BYTES must be positive.")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
