"""
main.py

This is the main entry point of the FastAPI application.
Here we create the FastAPI app, register the API routes and the
handler that turns AppError into JSON error bodies.

This file does NOT contain business logic.
It only wires everything together.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from docextract.api.document import router as document_router
from docextract.api.file_schemas import router as file_schemas_router
from docextract.api.health import router as health_router
from docextract.config import Settings, get_settings
from docextract.exceptions import AppError
from docextract.logging_config import setup_logging

logger = logging.getLogger(__name__)


async def handle_app_error(request: Request, error: AppError) -> JSONResponse:
    """Render any AppError as {"error": kind, "message": ..., ...}."""

    logger.warning(
        "%s %s failed: %s (%s)", request.method, request.url.path, error.kind, error.message
    )
    return JSONResponse(
        status_code=error.status_code,
        content=jsonable_encoder(error.to_payload()),
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Creates and returns the FastAPI application instance.

    Settings are checked once when the app starts (lifespan), so a
    missing API key stops the server instead of failing every request.
    """

    settings = settings or get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        settings.validate()
        logger.info("Settings validated, model=%s", settings.llm.model)
        yield

    app = FastAPI(
        title="Document Extraction Service",
        description="Schema-driven structured data extraction from PDFs and images",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Register API routes
    app.include_router(health_router, prefix="/health", tags=["Health"])
    app.include_router(document_router, prefix="/document", tags=["Document"])
    app.include_router(file_schemas_router, prefix="/file-schemas", tags=["File Schemas"])

    app.add_exception_handler(AppError, handle_app_error)

    return app


# Create the FastAPI app instance
app = create_app()
